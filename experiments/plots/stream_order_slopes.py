"""Line plot of predicted habitat slopes across stream orders."""

from __future__ import annotations

from typing import Optional

import plotly.express as px
import plotly.graph_objects as go
import xarray as xr

from salmonvuln.datahub.config import HABITAT_LABELS
from .save_config import PlotSaveDestinations, write_figure

FACETS_PER_ROW = 5


def plot_stream_order_slopes(
    slopes: xr.Dataset,
    save_to: Optional[PlotSaveDestinations] = None,
) -> go.Figure:
    """Posterior mean slope per spawning ecotype, one facet per habitat indicator."""
    df = slopes.to_dataframe().reset_index()
    df["habitat_label"] = df["habitat"].map(lambda h: HABITAT_LABELS.get(str(h), str(h)))

    fig = px.line(
        df,
        x="stream_order",
        y="mean",
        color="spawn_ecotype",
        facet_col="habitat_label",
        facet_col_wrap=FACETS_PER_ROW,
        error_y=df["upper"] - df["mean"],
        error_y_minus=df["mean"] - df["lower"],
        markers=True,
        title="Predicted slope by stream order",
        labels={
            "stream_order": "Stream order",
            "mean": "Slope (log-trend per unit pressure)",
            "spawn_ecotype": "Spawning ecotype",
            "habitat_label": "Habitat",
        },
    )
    fig.add_hline(y=0.0, line_dash="dot", line_color="grey")

    write_figure(fig, save_to)
    return fig


__all__ = ["plot_stream_order_slopes"]
