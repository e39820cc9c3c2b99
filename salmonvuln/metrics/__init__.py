"""Derived vulnerability metrics, evidence summaries and plotting cutoffs."""

from .coverage import (
    count_cell_populations,
    count_exposed_populations,
    count_intercept_support,
    mean_exposure_by_zone,
)
from .cutoffs import CutoffTables, Cutoffs, exposure_cutoffs, magnitude_cutoffs
from .engine import AGGREGATE_METRICS, METRICS, PER_HABITAT_METRICS, MetricCells, MetricEngine, compute_metrics
from .evidence import EvidenceClassifier, EvidenceThresholds, classify
from .records import EvidenceCategory, SummaryCell
from .stream_order import predict_slope_by_stream_order
from .summaries import SummaryTables, summarize

__all__ = [
    "AGGREGATE_METRICS",
    "METRICS",
    "PER_HABITAT_METRICS",
    "CutoffTables",
    "Cutoffs",
    "EvidenceCategory",
    "EvidenceClassifier",
    "EvidenceThresholds",
    "MetricCells",
    "MetricEngine",
    "SummaryCell",
    "SummaryTables",
    "classify",
    "compute_metrics",
    "count_cell_populations",
    "count_exposed_populations",
    "count_intercept_support",
    "exposure_cutoffs",
    "magnitude_cutoffs",
    "mean_exposure_by_zone",
    "predict_slope_by_stream_order",
    "summarize",
]
