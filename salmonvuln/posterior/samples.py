"""Read-only wrapper around the raw ``(chain, iteration, parameter)`` MCMC array."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, cast

import numpy as np
import xarray as xr
from arviz import InferenceData

from ..errors import MalformedInput
from .index import PosteriorIndex


@dataclass(frozen=True)
class PosteriorSamples:
    """Posterior draws paired with the index that names their parameter axis.

    The array is exposed through a non-writeable view; lookups index only the
    requested draws so the full array is never copied.
    """

    values: np.ndarray
    index: PosteriorIndex

    def __post_init__(self) -> None:
        arr = np.asarray(self.values)
        if arr.ndim != 3:
            raise MalformedInput(f"Posterior samples must be 3-D (chain × iteration × parameter), got shape {arr.shape}")
        if 0 in arr.shape:
            raise MalformedInput(f"Posterior samples cannot have an empty axis, got shape {arr.shape}")
        if not np.issubdtype(arr.dtype, np.floating):
            arr = arr.astype(np.float64)
        view = arr.view()
        view.flags.writeable = False
        if self.index.max_offset() >= view.shape[2]:
            raise MalformedInput(
                f"Posterior index references column {self.index.max_offset()} "
                f"but the sample array only has {view.shape[2]} parameters."
            )
        object.__setattr__(self, "values", view)

    @property
    def n_chains(self) -> int:
        return int(self.values.shape[0])

    @property
    def n_iterations(self) -> int:
        return int(self.values.shape[1])

    @property
    def n_parameters(self) -> int:
        return int(self.values.shape[2])

    def column(self, name: str, *indices: int) -> np.ndarray:
        """All ``(chain, iteration)`` draws of a single parameter column."""
        return self.values[:, :, self.index.offset(name, *indices)]

    def take(self, chains: np.ndarray, iterations: np.ndarray, offsets: np.ndarray) -> np.ndarray:
        """Gather values at ``(chains[j], iterations[j], offsets[j, ...])`` for every draw ``j``.

        ``chains`` and ``iterations`` are 1-D of length N; ``offsets`` has N as its
        leading dimension (or is broadcastable against it).
        """
        chains = np.asarray(chains, dtype=np.intp)
        iterations = np.asarray(iterations, dtype=np.intp)
        if chains.shape != iterations.shape or chains.ndim != 1:
            raise ValueError("chains and iterations must be aligned 1-D index arrays.")
        offsets = np.asarray(offsets, dtype=np.intp)
        extra = (slice(None),) + (None,) * max(offsets.ndim - 1, 0)
        return self.values[chains[extra], iterations[extra], offsets]

    def scalar(self, name: str, chains: np.ndarray, iterations: np.ndarray) -> np.ndarray:
        """Values of a scalar parameter at the selected draws."""
        offset = self.index.offset(name)
        return self.values[np.asarray(chains, dtype=np.intp), np.asarray(iterations, dtype=np.intp), offset]

    def offset_table(self, name: str, shape: Sequence[int]) -> np.ndarray:
        return self.index.offset_table(name, shape)

    @classmethod
    def from_array(cls, values: np.ndarray, columns: Sequence[str], one_based: bool = True) -> "PosteriorSamples":
        """Pair a raw array with its JAGS-style column labels."""
        arr = np.asarray(values)
        if arr.ndim == 3 and arr.shape[2] != len(columns):
            raise MalformedInput(
                f"Sample array has {arr.shape[2]} parameters but {len(columns)} column names were supplied."
            )
        return cls(arr, PosteriorIndex.from_column_names(list(columns), one_based=one_based))

    @classmethod
    def from_inference_data(
        cls,
        idata: InferenceData,
        var_names: Optional[Iterable[str]] = None,
    ) -> "PosteriorSamples":
        """Flatten the ``posterior`` group of an ArviZ InferenceData into named columns."""
        posterior = getattr(idata, "posterior", None)
        if posterior is None:
            raise MalformedInput("InferenceData has no posterior group.")
        dataset = cast(xr.Dataset, posterior)
        names = list(var_names) if var_names is not None else list(dataset.data_vars)
        if not names:
            raise MalformedInput("Posterior group contains no variables.")

        blocks: List[np.ndarray] = []
        columns: List[str] = []
        for name in names:
            if name not in dataset:
                raise MalformedInput(f"Posterior group has no variable '{name}'.")
            data = dataset[name].transpose("chain", "draw", ...)
            arr = np.asarray(data.values, dtype=np.float64)
            group_shape: Tuple[int, ...] = arr.shape[2:]
            blocks.append(arr.reshape(arr.shape[0], arr.shape[1], -1))
            if not group_shape:
                columns.append(name)
                continue
            for indices in np.ndindex(*group_shape):
                columns.append(f"{name}[{','.join(str(i + 1) for i in indices)}]")

        return cls.from_array(np.concatenate(blocks, axis=2), columns)


__all__ = ["PosteriorSamples"]
