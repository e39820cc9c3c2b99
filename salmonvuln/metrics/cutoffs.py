"""Four-bin magnitude and exposure cutoffs used to size plotted points."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..datahub.tables import WatershedTable
from ..errors import MalformedInput

# Annual proportional changes separating implausibly small, small, moderate and large effects.
MAGNITUDE_CHANGES: Tuple[float, float, float] = (1.001, 1.01, 1.05)
EXPOSURE_QUANTILES: Tuple[float, float, float] = (0.25, 0.5, 0.75)


@dataclass(frozen=True)
class Cutoffs:
    """Three ascending edges splitting absolute values into four bins.

    Bins are half-open: ``[0, e0)``, ``[e0, e1)``, ``[e1, e2)``, ``[e2, inf)``,
    so a value equal to an edge falls into the upper bin.
    """

    edges: Tuple[float, float, float]

    def __post_init__(self) -> None:
        edges = tuple(float(edge) for edge in self.edges)
        if len(edges) != 3:
            raise MalformedInput(f"Cutoffs need exactly three edges, got {len(edges)}.")
        if not all(np.isfinite(edges)):
            raise MalformedInput("Cutoff edges must be finite.")
        if any(b < a for a, b in zip(edges, edges[1:])):
            raise MalformedInput(f"Cutoff edges must be non-decreasing, got {edges}.")
        object.__setattr__(self, "edges", edges)

    def bins(self, values: Union[Sequence[float], np.ndarray]) -> np.ndarray:
        arr = np.abs(np.asarray(values, dtype=float))
        if np.isnan(arr).any():
            raise ValueError("Cannot bin NaN values.")
        return np.searchsorted(np.asarray(self.edges), arr, side="right")

    def bin(self, value: float) -> int:
        """Bin index 0..3 of ``|value|``."""
        return int(self.bins([value])[0])

    def point_size(self, value: float) -> float:
        return (self.bin(value) + 1) / 2


def magnitude_cutoffs() -> Cutoffs:
    """Fixed log-trend edges shared by sensitivity, threat, status and vulnerability."""
    return Cutoffs(tuple(float(np.log(change)) for change in MAGNITUDE_CHANGES))


def exposure_cutoffs(
    watersheds: WatershedTable,
    exclude_ids: Iterable[str] = (),
) -> Dict[str, Cutoffs]:
    """Quartiles of each habitat's positive reference-watershed pressures.

    Excluded watersheds are dropped, negative values are clamped to zero and
    only strictly positive values enter the linear-interpolation quantiles.
    """
    excluded = {str(i) for i in exclude_ids}
    keep = np.array([str(i) not in excluded for i in watersheds.ids], dtype=bool)
    values = watersheds.pressures.values[keep]
    print(f"[cutoffs] Using {int(keep.sum())}/{keep.size} reference watersheds ({len(excluded)} exclusions).")

    cutoffs: Dict[str, Cutoffs] = {}
    for j, habitat in enumerate(watersheds.habitat):
        column = values[:, j]
        column = np.clip(column[~np.isnan(column)], 0.0, None)
        positive = column[column > 0]
        if positive.size == 0:
            raise MalformedInput(f"Habitat '{habitat}' has no positive reference values for exposure cutoffs.")
        quartiles = np.quantile(positive, EXPOSURE_QUANTILES)
        cutoffs[habitat] = Cutoffs(tuple(float(q) for q in quartiles))
    return cutoffs


@dataclass(frozen=True)
class CutoffTables:
    """Magnitude cutoffs plus per-habitat exposure cutoffs."""

    magnitude: Cutoffs
    exposure: Mapping[str, Cutoffs]

    def for_metric(self, metric: str, habitat: Optional[str] = None) -> Cutoffs:
        if metric != "exposure":
            return self.magnitude
        if habitat is None:
            raise ValueError("Exposure cutoffs are per habitat; pass habitat=...")
        try:
            return self.exposure[habitat]
        except KeyError as exc:
            raise KeyError(f"No exposure cutoffs for habitat '{habitat}'.") from exc

    def to_frame(self) -> pd.DataFrame:
        e0, e1, e2 = self.magnitude.edges
        rows = [{"table": "magnitude", "habitat": None, "edge_1": e0, "edge_2": e1, "edge_3": e2}]
        for habitat, cutoffs in self.exposure.items():
            e0, e1, e2 = cutoffs.edges
            rows.append({"table": "exposure", "habitat": habitat, "edge_1": e0, "edge_2": e1, "edge_3": e2})
        return pd.DataFrame(rows)

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> "CutoffTables":
        magnitude: Optional[Cutoffs] = None
        exposure: Dict[str, Cutoffs] = {}
        for row in frame.itertuples(index=False):
            edges = (float(row.edge_1), float(row.edge_2), float(row.edge_3))
            if row.table == "magnitude":
                magnitude = Cutoffs(edges)
            elif row.table == "exposure":
                exposure[str(row.habitat)] = Cutoffs(edges)
            else:
                raise MalformedInput(f"Unknown cutoff table {row.table!r}.")
        if magnitude is None:
            raise MalformedInput("Cutoff frame has no magnitude row.")
        return cls(magnitude=magnitude, exposure=exposure)

    @classmethod
    def from_watersheds(cls, watersheds: WatershedTable, exclude_ids: Iterable[str] = ()) -> "CutoffTables":
        return cls(magnitude=magnitude_cutoffs(), exposure=exposure_cutoffs(watersheds, exclude_ids))


__all__ = [
    "EXPOSURE_QUANTILES",
    "MAGNITUDE_CHANGES",
    "CutoffTables",
    "Cutoffs",
    "exposure_cutoffs",
    "magnitude_cutoffs",
]
