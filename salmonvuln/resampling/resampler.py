"""Seeded joint resampling of posterior draws and population rows.

The consumption order of the random stream is fixed: ``n_draws`` chain indices,
then ``n_draws`` iteration indices (shared by every cell), then one block of
``n_draws`` row indices per occupied (species, FAZ) cell with species as the
outer loop and FAZ as the inner loop.  Empty cells consume nothing.  Changing
this order changes every reported number.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple, Union

import numpy as np

from ..axes import AxisVocabulary
from ..pipelines.bucketing import CellKey, CellPlan


@dataclass(frozen=True)
class PosteriorDraw:
    """Chain and iteration indices selected from the posterior grid."""

    chains: np.ndarray
    iterations: np.ndarray

    def __len__(self) -> int:
        return int(self.chains.shape[0])


@dataclass(frozen=True)
class NoData:
    """Marker for a cell without any supporting population rows."""

    cell: CellKey


@dataclass(frozen=True)
class DrawIndex:
    """Aligned posterior-draw and population-row indices for one cell."""

    cell: CellKey
    chains: np.ndarray
    iterations: np.ndarray
    rows: np.ndarray

    def __post_init__(self) -> None:
        n = self.chains.shape
        if self.iterations.shape != n or self.rows.shape != n or len(n) != 1:
            raise ValueError("DrawIndex arrays must be 1-D and of equal length.")

    def __len__(self) -> int:
        return int(self.chains.shape[0])


CellDraws = Union[DrawIndex, NoData]


@dataclass(frozen=True)
class DrawPlan:
    """Resampling outcome for every (species, FAZ) cell, in consumption order.

    ``vocabulary`` and ``n_rows`` identify the population table the row indices
    were drawn from; ``n_chains`` and ``n_iterations`` the posterior grid.
    """

    n_draws: int
    posterior: PosteriorDraw
    cells: Dict[CellKey, CellDraws]
    vocabulary: AxisVocabulary
    n_rows: int
    n_chains: int
    n_iterations: int

    def get(self, key: CellKey) -> CellDraws:
        try:
            return self.cells[key]
        except KeyError as exc:
            raise KeyError(f"No draw plan for cell {key}.") from exc

    def occupied(self) -> Iterator[DrawIndex]:
        for draws in self.cells.values():
            if isinstance(draws, DrawIndex):
                yield draws

    def empty_cells(self) -> List[CellKey]:
        return [key for key, draws in self.cells.items() if isinstance(draws, NoData)]


class Resampler:
    """Owns the generator that every resampling call consumes from."""

    def __init__(
        self,
        n_draws: int,
        seed: Optional[int] = None,
        generator: Optional[np.random.Generator] = None,
    ) -> None:
        if n_draws < 1:
            raise ValueError("n_draws must be at least 1.")
        if generator is not None and seed is not None:
            raise ValueError("Pass either a seed or a generator, not both.")
        self.n_draws = int(n_draws)
        self.generator = generator if generator is not None else np.random.default_rng(seed)

    def draw_posterior(self, n_chains: int, n_iterations: int) -> PosteriorDraw:
        """Uniformly draw (chain, iteration) pairs with replacement from the full grid."""
        if n_chains < 1 or n_iterations < 1:
            raise ValueError("The posterior grid must have at least one chain and one iteration.")
        chains = self.generator.integers(0, n_chains, size=self.n_draws)
        iterations = self.generator.integers(0, n_iterations, size=self.n_draws)
        return PosteriorDraw(chains=chains.astype(np.intp), iterations=iterations.astype(np.intp))

    def draw_rows(self, candidates: np.ndarray, cell: CellKey) -> Union[np.ndarray, NoData]:
        """Draw ``n_draws`` population rows with replacement, or ``NoData`` for an empty cell."""
        candidates = np.asarray(candidates, dtype=np.intp)
        if candidates.size == 0:
            return NoData(cell)
        picks = self.generator.integers(0, candidates.size, size=self.n_draws)
        return candidates[picks]

    def plan(self, cells: CellPlan, n_chains: int, n_iterations: int) -> DrawPlan:
        """Resample the posterior once, then the data for every cell in frozen order."""
        posterior = self.draw_posterior(n_chains, n_iterations)
        planned: Dict[CellKey, CellDraws] = {}
        for key in cells.cells():
            rows = self.draw_rows(cells.rows(key), key)
            if isinstance(rows, NoData):
                planned[key] = rows
                continue
            planned[key] = DrawIndex(
                cell=key,
                chains=posterior.chains,
                iterations=posterior.iterations,
                rows=rows,
            )

        occupied = sum(1 for draws in planned.values() if isinstance(draws, DrawIndex))
        print(
            f"[resample] Drew {self.n_draws} posterior samples; "
            f"{occupied}/{len(planned)} species × FAZ cells have populations."
        )
        return DrawPlan(
            n_draws=self.n_draws,
            posterior=posterior,
            cells=planned,
            vocabulary=cells.vocabulary,
            n_rows=cells.n_rows,
            n_chains=n_chains,
            n_iterations=n_iterations,
        )


def seeded_plan(
    cells: CellPlan,
    n_chains: int,
    n_iterations: int,
    n_draws: int,
    seed: int,
) -> Tuple[Resampler, DrawPlan]:
    """Build a fresh resampler from ``seed`` and return it with its plan."""
    resampler = Resampler(n_draws, seed=seed)
    return resampler, resampler.plan(cells, n_chains, n_iterations)


__all__ = [
    "CellDraws",
    "DrawIndex",
    "DrawPlan",
    "NoData",
    "PosteriorDraw",
    "Resampler",
    "seeded_plan",
]
