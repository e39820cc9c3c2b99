"""Tests for marker encoding and figure saving."""

from __future__ import annotations

from pathlib import Path
import sys

import numpy as np
import pandas as pd
import pytest
import xarray as xr

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from experiments.plots import (
    PlotSaveConfig,
    marker_style,
    plot_species_effects,
    plot_stream_order_slopes,
    plot_vulnerability,
)
from experiments.plots.save_config import slugify
from salmonvuln.axes import AxisVocabulary
from salmonvuln.metrics import (
    CutoffTables,
    Cutoffs,
    EvidenceCategory,
    SummaryCell,
    SummaryTables,
    magnitude_cutoffs,
)


def _summary(mean: float, category: EvidenceCategory) -> SummaryCell:
    return SummaryCell(mean=mean, category=category, lower=mean - 0.1, upper=mean + 0.1)


# ---------------------------------------------------------------------------
# Marker encoding


def test_strong_positive_is_solid_upward_triangle() -> None:
    style = marker_style(_summary(0.03, EvidenceCategory.STRONG), magnitude_cutoffs())

    assert style.symbol == "triangle-up"
    assert style.size == 1.5
    assert style.fill == "rgba(0,73,111,1.000)"
    assert style.line == "rgba(0,73,111,1.000)"


def test_moderate_negative_has_faded_fill_and_solid_outline() -> None:
    style = marker_style(_summary(-0.002, EvidenceCategory.MODERATE), magnitude_cutoffs())

    assert style.symbol == "triangle-down"
    assert style.size == 1.0
    assert style.fill == "rgba(221,65,36,0.314)"
    assert style.line == "rgba(221,65,36,1.000)"


@pytest.mark.parametrize("category", [EvidenceCategory.WEAK, EvidenceCategory.NONE])
def test_weak_and_absent_evidence_are_faded(category: EvidenceCategory) -> None:
    style = marker_style(_summary(0.5, category), magnitude_cutoffs())

    assert style.symbol == ("circle" if category is EvidenceCategory.NONE else "triangle-up")
    assert style.size == 2.0
    assert style.fill == style.line == "rgba(0,73,111,0.314)"


def test_zero_mean_is_open_black_circle() -> None:
    style = marker_style(SummaryCell(0.0, EvidenceCategory.NONE, 0.0, 0.0), Cutoffs((1.0, 2.0, 3.0)))

    assert style.symbol == "circle-open"
    assert style.size == 1.0


# ---------------------------------------------------------------------------
# Figures


def _tables() -> SummaryTables:
    effect_rows = [
        {"species": "Coho", "faz": "LFR", "habitat": "agriculture", "mean": 0.02, "category": "strong", "lower": 0.01, "upper": 0.03},
        {"species": "Coho", "faz": "UFR", "habitat": "agriculture", "mean": -0.4, "category": "weak", "lower": -1.0, "upper": 0.2},
    ]
    cell_rows = [
        {"species": "Coho", "faz": "LFR", "mean": 0.1, "category": "moderate", "lower": -0.01, "upper": 0.2},
        {"species": "Coho", "faz": "UFR", "mean": 0.0, "category": "none", "lower": 0.0, "upper": 0.0},
    ]
    frames = {}
    for metric in ("sensitivity", "exposure", "threat"):
        frames[metric] = pd.DataFrame(effect_rows)
    for metric in ("status", "threatTotal", "vulnerability"):
        frames[metric] = pd.DataFrame(cell_rows)
    return SummaryTables(frames)


def _vocabulary() -> AxisVocabulary:
    return AxisVocabulary.from_lists(
        species=["Coho"],
        faz=["LFR", "UFR"],
        habitat=["agriculture"],
        spawn_ecotype=["stream"],
        rear_ecotype=["river"],
        maz=["Coast"],
    )


def test_figures_are_written_as_html(tmp_path: Path) -> None:
    cutoffs = CutoffTables(magnitude=magnitude_cutoffs(), exposure={"agriculture": Cutoffs((0.1, 0.2, 0.3))})
    config = PlotSaveConfig(base_dir=tmp_path, run_tag="run", save_static=False, save_html=True)

    figures = plot_species_effects(_tables(), cutoffs, _vocabulary(), save_to=config.for_plot("sens_exp_threat"))
    fig = plot_vulnerability(_tables(), cutoffs, _vocabulary(), save_to=config.for_plot("Vulnerability"))

    assert set(figures) == {"Coho"}
    assert len(figures["Coho"].data) == 3
    assert list(fig.data[2].marker.symbol) == ["triangle-up", "circle-open"]
    assert (tmp_path / "run" / "sens_exp_threat-coho.html").exists()
    assert (tmp_path / "run" / "vulnerability.html").exists()
    assert not (tmp_path / "run" / "vulnerability.png").exists()


def test_stream_order_slopes_figure(tmp_path: Path) -> None:
    dims = ("spawn_ecotype", "habitat", "stream_order")
    mean = np.array([[[0.1, 0.2, 0.3]]])
    slopes = xr.Dataset(
        {"mean": (dims, mean), "lower": (dims, mean - 0.05), "upper": (dims, mean + 0.05)},
        coords={"spawn_ecotype": ["stream"], "habitat": ["eca"], "stream_order": [2.0, 4.0, 6.0]},
    )
    config = PlotSaveConfig(base_dir=tmp_path, run_tag="slopes")

    fig = plot_stream_order_slopes(slopes, save_to=config.for_plot("stream_order_slopes"))

    assert len(fig.data) == 1
    assert (tmp_path / "slopes" / "stream_order_slopes.html").exists()


def test_slugify() -> None:
    assert slugify("Sockeye (lake)") == "sockeye-lake"
    assert slugify("  ") == "plot"
