"""Dot-grid figures of summarised metrics (one marker per present cell)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import plotly.graph_objects as go
from plotly.subplots import make_subplots

from salmonvuln.axes import AxisVocabulary
from salmonvuln.datahub.config import HABITAT_LABELS
from salmonvuln.metrics import CutoffTables, Cutoffs, EvidenceCategory, SummaryCell, SummaryTables
from .save_config import PlotSaveDestinations, write_figure

POSITIVE_COLOR = (0, 73, 111)
NEGATIVE_COLOR = (221, 65, 36)
FADED_ALPHA = 0x50 / 255
BASE_MARKER_PX = 12

EFFECT_PANELS: Tuple[Tuple[str, str], ...] = (
    ("sensitivity", "a) Sensitivity"),
    ("exposure", "b) Exposure"),
    ("threat", "c) Threat"),
)
VULNERABILITY_PANELS: Tuple[Tuple[str, str], ...] = (
    ("threatTotal", "a) Total threat"),
    ("status", "b) Status"),
    ("vulnerability", "c) Vulnerability"),
)


def _rgba(rgb: Tuple[int, int, int], alpha: float) -> str:
    r, g, b = rgb
    return f"rgba({r},{g},{b},{alpha:.3f})"


@dataclass(frozen=True)
class MarkerStyle:
    symbol: str
    size: float
    fill: str
    line: str


def marker_style(summary: SummaryCell, cutoffs: Cutoffs) -> MarkerStyle:
    """Encode direction, evidence and magnitude of one summary as a marker.

    Triangles point in the direction of the mean; cells without evidence are
    circles.  Only strong evidence gets a solid fill and strong or moderate
    evidence a solid outline.  An exactly-zero mean is an open black circle.
    """
    if summary.mean == 0:
        return MarkerStyle(symbol="circle-open", size=1.0, fill="rgba(0,0,0,0)", line="rgba(0,0,0,1.000)")

    rgb = POSITIVE_COLOR if summary.mean > 0 else NEGATIVE_COLOR
    category = summary.category
    if category is EvidenceCategory.NONE:
        symbol = "circle"
    else:
        symbol = "triangle-up" if summary.mean > 0 else "triangle-down"
    fill_alpha = 1.0 if category is EvidenceCategory.STRONG else FADED_ALPHA
    line_alpha = 1.0 if category in (EvidenceCategory.STRONG, EvidenceCategory.MODERATE) else FADED_ALPHA
    return MarkerStyle(
        symbol=symbol,
        size=cutoffs.point_size(summary.mean),
        fill=_rgba(rgb, fill_alpha),
        line=_rgba(rgb, line_alpha),
    )


def _grid_trace(
    points: Sequence[Tuple[str, str, SummaryCell]],
    cutoffs_for: Dict[str, Cutoffs],
    default_cutoffs: Cutoffs,
) -> go.Scatter:
    xs: List[str] = []
    ys: List[str] = []
    styles: List[MarkerStyle] = []
    hover: List[str] = []
    for x, y, summary in points:
        style = marker_style(summary, cutoffs_for.get(x, default_cutoffs))
        xs.append(x)
        ys.append(y)
        styles.append(style)
        hover.append(
            f"mean={summary.mean:.4g}<br>evidence={summary.category.value}"
            f"<br>interval=[{summary.lower:.4g}, {summary.upper:.4g}]"
        )
    return go.Scatter(
        x=xs,
        y=ys,
        mode="markers",
        hovertext=hover,
        hoverinfo="text",
        showlegend=False,
        marker=dict(
            symbol=[style.symbol for style in styles],
            size=[style.size * BASE_MARKER_PX for style in styles],
            color=[style.fill for style in styles],
            line=dict(color=[style.line for style in styles], width=1),
        ),
    )


def _panel_figure(titles: Sequence[str], fazs: Sequence[str], x_labels: Sequence[str], title: str) -> go.Figure:
    fig = make_subplots(rows=1, cols=len(titles), shared_yaxes=True, subplot_titles=list(titles))
    fig.update_yaxes(categoryorder="array", categoryarray=list(reversed(fazs)), type="category")
    fig.update_xaxes(categoryorder="array", categoryarray=list(x_labels), type="category", tickangle=-90)
    fig.update_yaxes(title_text="Freshwater Adaptive Zone (FAZ)", row=1, col=1)
    fig.update_layout(title=title, plot_bgcolor="white", height=max(400, 30 * len(fazs) + 200))
    return fig


def plot_species_effects(
    summaries: SummaryTables,
    cutoffs: CutoffTables,
    vocabulary: AxisVocabulary,
    save_to: Optional[PlotSaveDestinations] = None,
) -> Dict[str, go.Figure]:
    """Sensitivity, exposure and threat by (habitat × FAZ), one figure per species."""
    labels = {h: HABITAT_LABELS.get(h, h) for h in vocabulary.habitat}
    figures: Dict[str, go.Figure] = {}
    for species in vocabulary.species:
        fig = _panel_figure(
            [title for _, title in EFFECT_PANELS],
            vocabulary.faz,
            [labels[h] for h in vocabulary.habitat],
            title=species,
        )
        for col, (metric, _) in enumerate(EFFECT_PANELS, start=1):
            points = []
            for habitat in vocabulary.habitat:
                for faz in vocabulary.faz:
                    summary = summaries.get(metric, species, faz, habitat)
                    if summary is not None:
                        points.append((labels[habitat], faz, summary))
            per_habitat = {labels[h]: cutoffs.for_metric(metric, h) for h in vocabulary.habitat}
            fig.add_trace(_grid_trace(points, per_habitat, cutoffs.magnitude), row=1, col=col)

        figures[species] = fig
        write_figure(fig, save_to.child(species) if save_to else None)
    return figures


def plot_vulnerability(
    summaries: SummaryTables,
    cutoffs: CutoffTables,
    vocabulary: AxisVocabulary,
    save_to: Optional[PlotSaveDestinations] = None,
) -> go.Figure:
    """Total threat, status and vulnerability by (species × FAZ)."""
    fig = _panel_figure(
        [title for _, title in VULNERABILITY_PANELS],
        vocabulary.faz,
        vocabulary.species,
        title="Freshwater vulnerability",
    )
    for col, (metric, _) in enumerate(VULNERABILITY_PANELS, start=1):
        points = []
        for species in vocabulary.species:
            for faz in vocabulary.faz:
                summary = summaries.get(metric, species, faz)
                if summary is not None:
                    points.append((species, faz, summary))
        fig.add_trace(_grid_trace(points, {}, cutoffs.magnitude), row=1, col=col)

    write_figure(fig, save_to)
    return fig


__all__ = ["MarkerStyle", "marker_style", "plot_species_effects", "plot_vulnerability"]
