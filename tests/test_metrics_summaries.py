"""Tests for evidence classification and per-cell summary tables."""

from __future__ import annotations

from pathlib import Path
import sys

import numpy as np
import pytest
import xarray as xr

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from salmonvuln.axes import AxisVocabulary
from salmonvuln.errors import InconsistentEvidence, MalformedInput
from salmonvuln.metrics import (
    EvidenceCategory,
    EvidenceClassifier,
    EvidenceThresholds,
    MetricCells,
    SummaryCell,
    SummaryTables,
    classify,
    summarize,
)


def _draws(n_nonpositive: int, total: int = 1000) -> np.ndarray:
    return np.concatenate([-np.ones(n_nonpositive), np.full(total - n_nonpositive, 2.0)])


# ---------------------------------------------------------------------------
# EvidenceClassifier


def test_all_positive_draws_are_strong() -> None:
    summary = classify(np.linspace(0.5, 1.5, 101))

    assert summary.category is EvidenceCategory.STRONG
    assert summary.mean == pytest.approx(1.0)
    assert summary.sign == 1


def test_symmetric_draws_have_no_evidence() -> None:
    summary = classify(np.linspace(-1.0, 1.0, 1001))

    assert summary.category is EvidenceCategory.NONE
    assert summary.lower == pytest.approx(-0.95)
    assert summary.upper == pytest.approx(0.95)


@pytest.mark.parametrize(
    ("n_nonpositive", "expected"),
    [
        (24, EvidenceCategory.STRONG),
        (25, EvidenceCategory.MODERATE),
        (99, EvidenceCategory.MODERATE),
        (100, EvidenceCategory.WEAK),
        (174, EvidenceCategory.WEAK),
        (175, EvidenceCategory.NONE),
        (500, EvidenceCategory.NONE),
        (976, EvidenceCategory.STRONG),
    ],
)
def test_category_thresholds_are_strict(n_nonpositive: int, expected: EvidenceCategory) -> None:
    assert classify(_draws(n_nonpositive)).category is expected


def test_zero_counts_as_nonpositive() -> None:
    draws = np.concatenate([np.zeros(30), np.ones(970)])

    assert classify(draws).category is EvidenceCategory.MODERATE


def test_point_mass_at_zero_has_no_evidence() -> None:
    summary = classify(np.zeros(50))

    assert summary.mean == 0.0
    assert summary.category is EvidenceCategory.NONE
    assert summary.sign == 0


def test_missing_draws_are_ignored() -> None:
    summary = classify(np.array([1.0, np.nan, 3.0]))

    assert summary.mean == pytest.approx(2.0)
    with pytest.raises(MalformedInput):
        classify(np.array([np.nan, np.nan]))


def test_zero_mean_with_evidence_is_fatal() -> None:
    draws = np.concatenate([[-40.0], np.ones(40)])

    with pytest.raises(InconsistentEvidence):
        classify(draws)


def test_custom_thresholds_are_validated() -> None:
    relaxed = EvidenceClassifier(EvidenceThresholds(strong=0.05, moderate=0.2, weak=0.3))
    assert relaxed.classify(_draws(40)).category is EvidenceCategory.STRONG

    with pytest.raises(ValueError):
        EvidenceThresholds(strong=0.2, moderate=0.1, weak=0.3)
    with pytest.raises(ValueError):
        EvidenceThresholds(strong=0.0)
    with pytest.raises(ValueError):
        EvidenceClassifier(credible_interval=1.0)


# ---------------------------------------------------------------------------
# SummaryCell


def test_summary_cell_guard() -> None:
    with pytest.raises(InconsistentEvidence):
        SummaryCell(mean=0.0, category=EvidenceCategory.WEAK, lower=-1.0, upper=1.0)

    cell = SummaryCell(mean=0.0, category="none", lower=0.0, upper=0.0)  # type: ignore[arg-type]
    assert cell.category is EvidenceCategory.NONE
    assert EvidenceCategory.STRONG.rank == 1 and EvidenceCategory.NONE.rank == 4


# ---------------------------------------------------------------------------
# summarize


def _cells(status: np.ndarray) -> MetricCells:
    n = status.size
    vocab = AxisVocabulary.from_lists(
        species=["A"],
        faz=["F1", "F2"],
        habitat=["agriculture"],
        spawn_ecotype=["s1"],
        rear_ecotype=["r1"],
        maz=["M1"],
    )
    per_habitat = np.full((1, 2, 1, n), np.nan)
    aggregate = np.full((1, 2, n), np.nan)

    sensitivity = per_habitat.copy()
    sensitivity[0, 0, 0] = np.linspace(0.5, 1.5, n)
    exposure = per_habitat.copy()
    exposure[0, 0, 0] = 0.0
    threat = sensitivity * exposure
    status_arr = aggregate.copy()
    status_arr[0, 0] = status
    threat_total = threat[:, :, 0, :]
    vulnerability = status_arr + threat_total

    dims4 = ("species", "faz", "habitat", "draw")
    dims3 = ("species", "faz", "draw")
    dataset = xr.Dataset(
        {
            "sensitivity": (dims4, sensitivity),
            "exposure": (dims4, exposure),
            "threat": (dims4, threat),
            "status": (dims3, status_arr),
            "threatTotal": (dims3, threat_total),
            "vulnerability": (dims3, vulnerability),
            "present": (("species", "faz"), np.array([[True, False]])),
        },
        coords={**vocab.coords("species", "faz", "habitat"), "draw": np.arange(n)},
    )
    return MetricCells(dataset=dataset, vocabulary=vocab)


def test_summarize_covers_present_cells_only() -> None:
    tables = summarize(_cells(np.linspace(-1.0, 1.0, 41)))

    sensitivity = tables.get("sensitivity", "A", "F1", "agriculture")
    assert sensitivity is not None and sensitivity.category is EvidenceCategory.STRONG
    exposure = tables.get("exposure", "A", "F1", "agriculture")
    assert exposure is not None and exposure.mean == 0.0 and exposure.category is EvidenceCategory.NONE
    status = tables.get("status", "A", "F1")
    assert status is not None and status.category is EvidenceCategory.NONE

    assert tables.get("threat", "A", "F2", "agriculture") is None
    assert tables.get("vulnerability", "A", "F2") is None
    assert len(tables.frame("sensitivity")) == 1
    assert list(tables.frame("status").columns) == ["species", "faz", "mean", "category", "lower", "upper"]
    with pytest.raises(ValueError):
        tables.get("threat", "A", "F1")


def test_summarize_names_the_inconsistent_cell() -> None:
    status = np.concatenate([[-40.0], np.ones(40)])

    with pytest.raises(InconsistentEvidence) as excinfo:
        summarize(_cells(status))

    assert excinfo.value.cell == ("A", "F1")
    assert "status" in str(excinfo.value)


def test_summary_tables_csv_round_trip(tmp_path: Path) -> None:
    tables = summarize(_cells(np.linspace(0.1, 0.5, 41)))

    written = tables.to_csv(tmp_path / "summaries")
    restored = SummaryTables.from_csv(tmp_path / "summaries")

    assert set(written) == {"sensitivity", "exposure", "threat", "status", "threatTotal", "vulnerability"}
    original = tables.get("vulnerability", "A", "F1")
    reloaded = restored.get("vulnerability", "A", "F1")
    assert original is not None and reloaded is not None
    assert reloaded.category is original.category
    assert reloaded.mean == pytest.approx(original.mean)
    assert reloaded.upper == pytest.approx(original.upper)
    assert restored.get("status", "A", "F2") is None


def test_metric_cells_validate_coordinates() -> None:
    cells = _cells(np.ones(5))
    renamed = cells.dataset.assign_coords(faz=["F2", "F1"])

    with pytest.raises(MalformedInput):
        MetricCells(dataset=renamed, vocabulary=cells.vocabulary)
    with pytest.raises(MalformedInput):
        MetricCells(dataset=cells.dataset.drop_vars("status"), vocabulary=cells.vocabulary)
