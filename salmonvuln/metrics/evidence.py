"""Evidence categories derived from the empirical probability of crossing zero."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

from ..errors import MalformedInput
from .records import EvidenceCategory, SummaryCell


@dataclass(frozen=True)
class EvidenceThresholds:
    """Tail probabilities that separate the evidence categories.

    With ``p`` the fraction of draws at or below zero, a cell is ``strong`` when
    ``p < strong`` or ``p > 1 - strong``, then ``moderate`` and ``weak`` likewise;
    everything else is ``none``.  The defaults correspond to draws falling
    outside the 95%, 80% and 65% central intervals.
    """

    strong: float = 0.025
    moderate: float = 0.10
    weak: float = 0.175

    def __post_init__(self) -> None:
        tails = (self.strong, self.moderate, self.weak)
        if not all(0.0 < tail < 0.5 for tail in tails):
            raise ValueError("Evidence tail probabilities must fall within (0, 0.5).")
        if not self.strong < self.moderate < self.weak:
            raise ValueError("Evidence tail probabilities must increase from strong to weak.")

    def category(self, p_nonpositive: float) -> EvidenceCategory:
        """Map the fraction of non-positive draws onto a category."""
        p = float(p_nonpositive)
        if not 0.0 <= p <= 1.0:
            raise ValueError(f"Probability {p} falls outside [0, 1].")
        if p < self.strong or p > 1.0 - self.strong:
            return EvidenceCategory.STRONG
        if p < self.moderate or p > 1.0 - self.moderate:
            return EvidenceCategory.MODERATE
        if p < self.weak or p > 1.0 - self.weak:
            return EvidenceCategory.WEAK
        return EvidenceCategory.NONE


class EvidenceClassifier:
    """Reduces a draw distribution to a :class:`SummaryCell`."""

    def __init__(
        self,
        thresholds: EvidenceThresholds | None = None,
        credible_interval: float = 0.95,
    ) -> None:
        if not 0 < credible_interval < 1:
            raise ValueError("credible_interval must fall within (0, 1).")
        self.thresholds = thresholds or EvidenceThresholds()
        self.credible_interval = credible_interval

    def classify(self, draws: Union[Sequence[float], np.ndarray]) -> SummaryCell:
        values = np.asarray(draws, dtype=float).ravel()
        values = values[~np.isnan(values)]
        if values.size == 0:
            raise MalformedInput("Cannot summarise a cell without any draws.")

        mean = float(values.mean())
        # A point mass at zero carries no evidence of an effect in either direction.
        if np.all(values == 0):
            category = EvidenceCategory.NONE
        else:
            category = self.thresholds.category(float(np.mean(values <= 0)))

        tail = (1.0 - self.credible_interval) / 2.0
        lower, upper = np.quantile(values, [tail, 1.0 - tail])
        return SummaryCell(mean=mean, category=category, lower=float(lower), upper=float(upper))


def classify(
    draws: Union[Sequence[float], np.ndarray],
    thresholds: EvidenceThresholds | None = None,
    credible_interval: float = 0.95,
) -> SummaryCell:
    """Classify ``draws`` with a throwaway :class:`EvidenceClassifier`."""
    return EvidenceClassifier(thresholds, credible_interval).classify(draws)


__all__ = ["EvidenceClassifier", "EvidenceThresholds", "classify"]
