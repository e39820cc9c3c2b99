"""Per-cell summaries (mean, evidence category, credible interval) for every metric."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import numpy as np
import pandas as pd
from tqdm import tqdm

from ..errors import InconsistentEvidence, MalformedInput
from .engine import METRICS, PER_HABITAT_METRICS, MetricCells, MetricName
from .evidence import EvidenceClassifier
from .records import EvidenceCategory, SummaryCell

VALUE_COLUMNS = ["mean", "category", "lower", "upper"]


def key_columns(metric: str) -> List[str]:
    """Identifying columns of a metric's summary frame."""
    if metric in PER_HABITAT_METRICS:
        return ["species", "faz", "habitat"]
    return ["species", "faz"]


@dataclass(frozen=True)
class SummaryTables:
    """Tidy per-metric summary frames covering present cells only."""

    frames: Mapping[str, pd.DataFrame]

    def __post_init__(self) -> None:
        for metric, frame in self.frames.items():
            missing = [c for c in key_columns(metric) + VALUE_COLUMNS if c not in frame.columns]
            if missing:
                raise MalformedInput(f"Summary frame for '{metric}' is missing columns: {', '.join(missing)}")

    def frame(self, metric: MetricName) -> pd.DataFrame:
        try:
            return self.frames[metric]
        except KeyError as exc:
            raise KeyError(f"No summary table for metric '{metric}'.") from exc

    def get(
        self,
        metric: MetricName,
        species: str,
        faz: str,
        habitat: Optional[str] = None,
    ) -> Optional[SummaryCell]:
        """The summary of one cell, or ``None`` when the cell has no populations."""
        frame = self.frame(metric)
        keys = {"species": species, "faz": faz}
        if metric in PER_HABITAT_METRICS:
            if habitat is None:
                raise ValueError(f"'{metric}' is indexed by habitat; pass habitat=...")
            keys["habitat"] = habitat
        mask = np.ones(len(frame), dtype=bool)
        for column, value in keys.items():
            mask &= (frame[column] == value).to_numpy()
        matches = frame.loc[mask]
        if matches.empty:
            return None
        row = matches.iloc[0]
        return SummaryCell(
            mean=float(row["mean"]),
            category=EvidenceCategory.parse(row["category"]),
            lower=float(row["lower"]),
            upper=float(row["upper"]),
        )

    def to_csv(self, directory: Path) -> Dict[str, Path]:
        directory.mkdir(parents=True, exist_ok=True)
        written: Dict[str, Path] = {}
        for metric, frame in self.frames.items():
            path = directory / f"{metric}_summary.csv"
            frame.to_csv(path, index=False)
            written[metric] = path
        print(f"[metrics] Wrote {len(written)} summary tables to {directory}")
        return written

    @classmethod
    def from_csv(cls, directory: Path) -> "SummaryTables":
        frames: Dict[str, pd.DataFrame] = {}
        for metric in METRICS:
            path = directory / f"{metric}_summary.csv"
            if not path.exists():
                raise FileNotFoundError(f"Missing summary table: {path}")
            frames[metric] = pd.read_csv(path, dtype={column: str for column in key_columns(metric)})
        return cls(frames)


def _summary_row(keys: Dict[str, str], summary: SummaryCell) -> Dict[str, object]:
    return {
        **keys,
        "mean": summary.mean,
        "category": summary.category.value,
        "lower": summary.lower,
        "upper": summary.upper,
    }


def summarize(cells: MetricCells, classifier: Optional[EvidenceClassifier] = None) -> SummaryTables:
    """Classify every present cell of every metric.

    Raises :class:`InconsistentEvidence` naming the offending cell when a summary
    has an exactly-zero mean but a category other than ``none``.
    """
    classifier = classifier or EvidenceClassifier()
    vocab = cells.vocabulary
    rows: Dict[str, List[Dict[str, object]]] = {metric: [] for metric in METRICS}

    present_cells = [
        (species, faz) for species in vocab.species for faz in vocab.faz if cells.is_present(species, faz)
    ]
    for species, faz in tqdm(present_cells, desc="Summaries", leave=False):
        for metric in METRICS:
            habitats: List[Optional[str]] = list(vocab.habitat) if metric in PER_HABITAT_METRICS else [None]
            for habitat in habitats:
                draws = cells.cell(metric, species, faz, habitat)
                if draws is None:
                    continue
                keys = {"species": species, "faz": faz}
                if habitat is not None:
                    keys["habitat"] = habitat
                try:
                    summary = classifier.classify(draws)
                except InconsistentEvidence as exc:
                    cell = tuple(keys.values())
                    raise InconsistentEvidence(f"{metric} {cell}: {exc}", cell=cell) from exc
                rows[metric].append(_summary_row(keys, summary))

    frames = {
        metric: pd.DataFrame(metric_rows, columns=key_columns(metric) + VALUE_COLUMNS)
        for metric, metric_rows in rows.items()
    }
    print(f"[metrics] Summarised {len(present_cells)} present cells across {len(METRICS)} metrics.")
    return SummaryTables(frames)


__all__ = ["SummaryTables", "VALUE_COLUMNS", "key_columns", "summarize"]
