"""Shared ordered name lists used as axis coordinates across the pipeline.

Every dense array in the project is an ``xarray`` object whose dimensions are
named after the fields of :class:`AxisVocabulary`.  Consumers compare
vocabularies before combining arrays, so a reordered name list fails loudly
instead of silently mislabelling cells.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Dict, Iterable, Sequence, Tuple

import pandas as pd

from .errors import MalformedInput

AXIS_NAMES: Tuple[str, ...] = ("species", "faz", "habitat", "spawn_ecotype", "rear_ecotype", "maz")


def _as_names(axis: str, values: Iterable[object]) -> Tuple[str, ...]:
    names = tuple(str(value) for value in values)
    if not names:
        raise MalformedInput(f"Axis '{axis}' must contain at least one name.")
    if len(set(names)) != len(names):
        duplicates = sorted({name for name in names if names.count(name) > 1})
        raise MalformedInput(f"Axis '{axis}' contains duplicate names: {', '.join(duplicates)}")
    return names


@dataclass(frozen=True)
class AxisVocabulary:
    """Ordered labels for every grouping level the model and metrics use."""

    species: Tuple[str, ...]
    faz: Tuple[str, ...]
    habitat: Tuple[str, ...]
    spawn_ecotype: Tuple[str, ...]
    rear_ecotype: Tuple[str, ...]
    maz: Tuple[str, ...]

    def __post_init__(self) -> None:
        for item in fields(self):
            object.__setattr__(self, item.name, _as_names(item.name, getattr(self, item.name)))

    @classmethod
    def from_lists(
        cls,
        species: Sequence[str],
        faz: Sequence[str],
        habitat: Sequence[str],
        spawn_ecotype: Sequence[str],
        rear_ecotype: Sequence[str],
        maz: Sequence[str],
    ) -> "AxisVocabulary":
        return cls(
            species=tuple(species),
            faz=tuple(faz),
            habitat=tuple(habitat),
            spawn_ecotype=tuple(spawn_ecotype),
            rear_ecotype=tuple(rear_ecotype),
            maz=tuple(maz),
        )

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        columns: Dict[str, str],
        habitat: Sequence[str],
    ) -> "AxisVocabulary":
        """Derive sorted vocabularies from the categorical columns of a population frame.

        ``columns`` maps axis names (``species``, ``faz``, ...) to frame column names.
        Habitat names are taken as given since they label pressure columns, not values.
        """
        missing = [axis for axis in AXIS_NAMES if axis != "habitat" and axis not in columns]
        if missing:
            raise MalformedInput(f"Column map is missing axes: {', '.join(missing)}")

        def _levels(axis: str) -> Tuple[str, ...]:
            column = columns[axis]
            if column not in frame.columns:
                raise MalformedInput(f"Population table has no '{column}' column for axis '{axis}'.")
            return tuple(sorted({str(value) for value in frame[column].dropna()}))

        return cls(
            species=_levels("species"),
            faz=_levels("faz"),
            habitat=tuple(habitat),
            spawn_ecotype=_levels("spawn_ecotype"),
            rear_ecotype=_levels("rear_ecotype"),
            maz=_levels("maz"),
        )

    def names(self, axis: str) -> Tuple[str, ...]:
        """Return the ordered names for ``axis``."""
        if axis not in AXIS_NAMES:
            raise KeyError(f"Unknown axis '{axis}'. Available: {list(AXIS_NAMES)}")
        return getattr(self, axis)

    def size(self, axis: str) -> int:
        return len(self.names(axis))

    def position(self, axis: str, name: str) -> int:
        """Return the zero-based position of ``name`` along ``axis``."""
        names = self.names(axis)
        try:
            return names.index(name)
        except ValueError as exc:
            raise MalformedInput(f"'{name}' is not a known {axis} name.") from exc

    def codes(self, axis: str, values: Iterable[object]) -> list[int]:
        """Encode labels into positions, failing on any label outside the vocabulary."""
        lookup = {name: idx for idx, name in enumerate(self.names(axis))}
        encoded: list[int] = []
        unknown: set[str] = set()
        for value in values:
            label = str(value)
            if label not in lookup:
                unknown.add(label)
                continue
            encoded.append(lookup[label])
        if unknown:
            raise MalformedInput(f"Unknown {axis} labels: {', '.join(sorted(unknown))}")
        return encoded

    def coords(self, *axes: str) -> Dict[str, list[str]]:
        """Coordinate mapping suitable for ``xarray`` constructors."""
        return {axis: list(self.names(axis)) for axis in axes}

    def require_same(self, other: "AxisVocabulary", context: str = "") -> None:
        """Raise when two vocabularies disagree on any axis, including order."""
        for axis in AXIS_NAMES:
            if self.names(axis) != other.names(axis):
                where = f" ({context})" if context else ""
                raise MalformedInput(f"Axis '{axis}' differs between inputs{where}.")


__all__ = ["AXIS_NAMES", "AxisVocabulary"]
