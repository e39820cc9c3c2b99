"""Population counts and mean exposure that show how much data backs each estimate."""

from __future__ import annotations

import numpy as np
import xarray as xr

from ..datahub.tables import PopulationTable


def _counts(table: PopulationTable, *axes: str) -> np.ndarray:
    vocab = table.vocabulary
    counts = np.zeros(tuple(vocab.size(axis) for axis in axes), dtype=np.int64)
    np.add.at(counts, tuple(table.codes[axis] for axis in axes), 1)
    return counts


def count_cell_populations(table: PopulationTable) -> xr.DataArray:
    """Number of populations in each (species, FAZ) cell."""
    counts = _counts(table, "species", "faz")
    return xr.DataArray(
        counts,
        dims=("species", "faz"),
        coords=table.vocabulary.coords("species", "faz"),
        name="populations",
    )


def count_intercept_support(table: PopulationTable) -> xr.DataArray:
    """Number of populations informing each (MAZ, rearing ecotype) intercept."""
    counts = _counts(table, "maz", "rear_ecotype")
    return xr.DataArray(
        counts,
        dims=("maz", "rear_ecotype"),
        coords=table.vocabulary.coords("maz", "rear_ecotype"),
        name="populations",
    )


def count_exposed_populations(table: PopulationTable) -> xr.DataArray:
    """Populations with a positive pressure, by (spawning ecotype, habitat, FAZ)."""
    vocab = table.vocabulary
    exposed = table.pressures.values > 0
    counts = np.zeros((vocab.size("spawn_ecotype"), vocab.size("habitat"), vocab.size("faz")), dtype=np.int64)
    spawn = table.codes["spawn_ecotype"]
    faz = table.codes["faz"]
    for h in range(vocab.size("habitat")):
        rows = exposed[:, h]
        np.add.at(counts[:, h, :], (spawn[rows], faz[rows]), 1)
    return xr.DataArray(
        counts,
        dims=("spawn_ecotype", "habitat", "faz"),
        coords=vocab.coords("spawn_ecotype", "habitat", "faz"),
        name="exposed_populations",
    )


def mean_exposure_by_zone(table: PopulationTable) -> xr.DataArray:
    """Mean pressure per (habitat, FAZ); FAZs without populations are NaN."""
    vocab = table.vocabulary
    n_faz = vocab.size("faz")
    faz = table.codes["faz"]
    totals = np.zeros((n_faz, vocab.size("habitat")))
    np.add.at(totals, faz, table.pressures.values)
    counts = np.bincount(faz, minlength=n_faz).astype(float)
    with np.errstate(invalid="ignore", divide="ignore"):
        means = np.where(counts[:, None] > 0, totals / counts[:, None], np.nan)
    return xr.DataArray(
        means.T,
        dims=("habitat", "faz"),
        coords=vocab.coords("habitat", "faz"),
        name="mean_exposure",
    )


__all__ = [
    "count_cell_populations",
    "count_exposed_populations",
    "count_intercept_support",
    "mean_exposure_by_zone",
]
