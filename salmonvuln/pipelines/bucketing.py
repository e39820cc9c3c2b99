from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple

import numpy as np

from ..axes import AxisVocabulary
from ..datahub.tables import PopulationTable

CellKey = Tuple[str, str]


@dataclass(frozen=True)
class CellPlan:
    """Population rows grouped by (species, FAZ) cell, in vocabulary order."""

    vocabulary: AxisVocabulary
    indices: Dict[CellKey, np.ndarray]
    n_rows: int

    def rows(self, key: CellKey) -> np.ndarray:
        """Row positions for ``key``; empty when no population falls in the cell."""
        return self.indices.get(key, np.empty(0, dtype=np.intp))

    def sizes(self) -> Dict[CellKey, int]:
        return {key: int(self.rows(key).size) for key in self.cells()}

    def cells(self) -> Iterator[CellKey]:
        """Every (species, FAZ) pair: species outer loop, FAZ inner loop."""
        for species in self.vocabulary.species:
            for faz in self.vocabulary.faz:
                yield species, faz

    def occupied(self) -> List[CellKey]:
        return [key for key in self.cells() if self.rows(key).size > 0]


def build_cell_plan(table: PopulationTable) -> CellPlan:
    """Group population rows by their (species, FAZ) codes, keeping ascending row order."""
    vocab = table.vocabulary
    buckets: Dict[CellKey, List[int]] = defaultdict(list)
    species_codes = table.codes["species"]
    faz_codes = table.codes["faz"]
    for row in range(table.n_rows):
        key = (vocab.species[species_codes[row]], vocab.faz[faz_codes[row]])
        buckets[key].append(row)

    indices = {key: np.asarray(rows, dtype=np.intp) for key, rows in buckets.items()}
    return CellPlan(vocabulary=vocab, indices=indices, n_rows=table.n_rows)


__all__ = ["CellKey", "CellPlan", "build_cell_plan"]
