"""Name → column lookup for flattened posterior sample arrays.

MCMC output arrives as a ``(chain, iteration, parameter)`` array whose last axis
is labelled with JAGS-style column names such as ``beta0`` or ``beta1[2,7]``.
:class:`PosteriorIndex` turns those labels into a read-only mapping from a
parameter name plus its grouping-level indices (zero-based) to a column offset.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Sequence, Tuple, Union

import numpy as np

from ..errors import MalformedInput, UnknownGroupIndex, UnknownParameter

GroupIndex = Tuple[int, ...]
_COLUMN_PATTERN = re.compile(r"^\s*(?P<name>[A-Za-z_][\w.]*)\s*(?:\[(?P<indices>[\d,\s]+)\])?\s*$")


def parse_column_name(column: str, one_based: bool = True) -> Tuple[str, GroupIndex]:
    """Split ``"beta1[2,7]"`` into ``("beta1", (1, 6))`` (zero-based when ``one_based``)."""
    match = _COLUMN_PATTERN.match(column)
    if match is None:
        raise MalformedInput(f"Cannot parse posterior column name {column!r}.")
    raw_indices = match.group("indices")
    if raw_indices is None:
        return match.group("name"), ()
    shift = 1 if one_based else 0
    indices = tuple(int(part) - shift for part in raw_indices.split(","))
    if any(idx < 0 for idx in indices):
        raise MalformedInput(f"Column {column!r} has an index below the {'1' if one_based else '0'}-based origin.")
    return match.group("name"), indices


@dataclass(frozen=True)
class PosteriorIndex:
    """Immutable mapping ``name -> {group indices -> column offset}``."""

    entries: Mapping[str, Mapping[GroupIndex, int]]

    def __post_init__(self) -> None:
        frozen: Dict[str, Mapping[GroupIndex, int]] = {}
        seen_offsets: Dict[int, str] = {}
        for name, table in self.entries.items():
            if not table:
                raise MalformedInput(f"Parameter '{name}' has no registered offsets.")
            arities = {len(indices) for indices in table}
            if len(arities) != 1:
                raise MalformedInput(f"Parameter '{name}' mixes index tuples of different lengths.")
            for indices, offset in table.items():
                offset = int(offset)
                if offset < 0:
                    raise MalformedInput(f"Negative offset {offset} for {name}{list(indices)}.")
                if offset in seen_offsets:
                    raise MalformedInput(
                        f"Offset {offset} is claimed by both '{seen_offsets[offset]}' and '{name}'."
                    )
                seen_offsets[offset] = name
            frozen[name] = MappingProxyType({tuple(int(i) for i in k): int(v) for k, v in table.items()})
        object.__setattr__(self, "entries", MappingProxyType(frozen))

    @classmethod
    def from_column_names(cls, columns: Sequence[str], one_based: bool = True) -> "PosteriorIndex":
        """Build the index from the ordered parameter-axis labels of a sample array."""
        entries: Dict[str, Dict[GroupIndex, int]] = {}
        for offset, column in enumerate(columns):
            name, indices = parse_column_name(str(column), one_based=one_based)
            table = entries.setdefault(name, {})
            if indices in table:
                raise MalformedInput(f"Duplicate posterior column {column!r}.")
            table[indices] = offset
        return cls(entries)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Union[int, Mapping[GroupIndex, int]]]) -> "PosteriorIndex":
        """Build the index from ``{name: offset}`` (scalars) or ``{name: {indices: offset}}``."""
        entries: Dict[str, Dict[GroupIndex, int]] = {}
        for name, value in mapping.items():
            if isinstance(value, Mapping):
                entries[name] = {tuple(indices): int(offset) for indices, offset in value.items()}
            else:
                entries[name] = {(): int(value)}
        return cls(entries)

    def __contains__(self, name: object) -> bool:
        return name in self.entries

    def parameter_names(self) -> Tuple[str, ...]:
        return tuple(self.entries)

    def offset(self, name: str, *indices: int) -> int:
        """Return the column offset for ``name`` at zero-based ``indices``."""
        table = self._table(name)
        key = tuple(int(i) for i in indices)
        try:
            return table[key]
        except KeyError as exc:
            raise UnknownGroupIndex(name, key) from exc

    def shape(self, name: str) -> Tuple[int, ...]:
        """Extent of each grouping level, inferred from the largest registered index."""
        table = self._table(name)
        keys = list(table)
        if keys[0] == ():
            return ()
        return tuple(max(key[dim] for key in keys) + 1 for dim in range(len(keys[0])))

    def offset_table(self, name: str, shape: Sequence[int]) -> np.ndarray:
        """Dense integer array of offsets for every index combination within ``shape``.

        Every combination must be registered; a gap raises :class:`UnknownGroupIndex`.
        """
        dims = tuple(int(size) for size in shape)
        table = self._table(name)
        arity = len(next(iter(table)))
        if arity != len(dims):
            raise MalformedInput(f"Parameter '{name}' has {arity} grouping levels, requested shape {dims}.")
        offsets = np.empty(dims, dtype=np.intp)
        for indices in np.ndindex(*dims):
            offsets[indices] = self.offset(name, *indices)
        return offsets

    def max_offset(self) -> int:
        return max(offset for table in self.entries.values() for offset in table.values())

    def columns(self, one_based: bool = True) -> list[str]:
        """Reconstruct JAGS-style column labels ordered by offset."""
        shift = 1 if one_based else 0
        labelled: list[Tuple[int, str]] = []
        for name, table in self.entries.items():
            for indices, offset in table.items():
                label = name if not indices else f"{name}[{','.join(str(i + shift) for i in indices)}]"
                labelled.append((offset, label))
        return [label for _, label in sorted(labelled)]

    def _table(self, name: str) -> Mapping[GroupIndex, int]:
        try:
            return self.entries[name]
        except KeyError as exc:
            raise UnknownParameter(name) from exc


def build_index(columns: Iterable[str], one_based: bool = True) -> PosteriorIndex:
    """Convenience wrapper around :meth:`PosteriorIndex.from_column_names`."""
    return PosteriorIndex.from_column_names(list(columns), one_based=one_based)


__all__ = ["GroupIndex", "PosteriorIndex", "build_index", "parse_column_name"]
