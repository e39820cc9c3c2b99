"""Shared data records for metric summaries."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from ..errors import InconsistentEvidence


class EvidenceCategory(str, Enum):
    """Discrete strength of evidence that a quantity differs from zero."""

    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"
    NONE = "none"

    @property
    def rank(self) -> int:
        """1 for strong through 4 for none."""
        return _RANKS[self]

    @classmethod
    def parse(cls, value: Union[str, "EvidenceCategory"]) -> "EvidenceCategory":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unknown evidence category {value!r}.") from exc


_RANKS = {
    EvidenceCategory.STRONG: 1,
    EvidenceCategory.MODERATE: 2,
    EvidenceCategory.WEAK: 3,
    EvidenceCategory.NONE: 4,
}


@dataclass(frozen=True)
class SummaryCell:
    """Posterior mean, evidence category and central credible interval of one cell."""

    mean: float
    category: EvidenceCategory
    lower: float
    upper: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", EvidenceCategory.parse(self.category))
        if self.mean == 0.0 and self.category is not EvidenceCategory.NONE:
            raise InconsistentEvidence(
                f"Summary has an exactly-zero mean but '{self.category.value}' evidence."
            )

    @property
    def sign(self) -> int:
        """-1, 0 or 1 following the sign of the mean."""
        return int(self.mean > 0) - int(self.mean < 0)


__all__ = ["EvidenceCategory", "SummaryCell"]
