"""Error taxonomy shared by the posterior, resampling, and metric layers."""

from __future__ import annotations

from typing import Optional, Tuple

CellKey = Tuple[str, ...]


class UnknownParameter(KeyError):
    """A parameter name has no registered offset in the posterior index."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown posterior parameter '{self.name}'."


class UnknownGroupIndex(KeyError):
    """A registered parameter was queried with an index tuple it does not carry."""

    def __init__(self, name: str, indices: Tuple[int, ...]) -> None:
        super().__init__(name, indices)
        self.name = name
        self.indices = indices

    def __str__(self) -> str:
        return f"Parameter '{self.name}' has no entry for group indices {self.indices}."


class MalformedInput(ValueError):
    """Input arrays or tables have the wrong shape, labels, or vocabulary."""


class InconsistentEvidence(RuntimeError):
    """A summarized cell has an exactly-zero mean but a non-'none' evidence category."""

    def __init__(self, message: str, cell: Optional[CellKey] = None) -> None:
        super().__init__(message)
        self.cell = cell


__all__ = [
    "CellKey",
    "InconsistentEvidence",
    "MalformedInput",
    "UnknownGroupIndex",
    "UnknownParameter",
]
