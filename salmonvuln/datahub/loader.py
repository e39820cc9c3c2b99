"""Readers for the population, watershed, exclusion, vocabulary and posterior inputs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Sequence

import arviz as az
import numpy as np
import pandas as pd

from ..axes import AXIS_NAMES, AxisVocabulary
from ..errors import MalformedInput
from ..posterior import PosteriorSamples
from .config import (
    POPULATION_COLUMNS,
    STREAM_ORDER_CENTER,
    WATERSHED_COLUMNS,
    PopulationColumns,
)
from .helpers import ensure_columns
from .tables import PopulationTable, WatershedTable


def load_vocabulary_json(path: Path) -> AxisVocabulary:
    """Read the ordered axis names the model was fit with (one list per axis)."""
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise MalformedInput(f"{path} must hold a JSON object of axis name lists.")
    missing = [axis for axis in AXIS_NAMES if axis not in payload]
    if missing:
        raise MalformedInput(f"{path} is missing axes: {', '.join(missing)}")
    vocabulary = AxisVocabulary.from_lists(**{axis: payload[axis] for axis in AXIS_NAMES})
    print(f"[datahub] Loaded axis vocabulary from {path}")
    return vocabulary


def save_vocabulary_json(path: Path, vocabulary: AxisVocabulary) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump({axis: list(vocabulary.names(axis)) for axis in AXIS_NAMES}, handle, indent=2)


def load_population_csv(
    path: Path,
    habitat: Sequence[str],
    vocabulary: Optional[AxisVocabulary] = None,
    columns: PopulationColumns = POPULATION_COLUMNS,
    stream_order_center: float = STREAM_ORDER_CENTER,
) -> PopulationTable:
    """Read the one-row-per-population table and encode it against the vocabulary."""
    frame = pd.read_csv(path)
    print(f"[datahub] Loaded {len(frame)} populations from {path}")
    return PopulationTable.from_frame(
        frame,
        vocabulary=vocabulary,
        habitat=habitat,
        columns=columns,
        stream_order_center=stream_order_center,
    )


def load_watershed_csv(
    path: Path,
    habitat: Sequence[str],
    id_column: str = WATERSHED_COLUMNS["watershed_id"],
) -> WatershedTable:
    """Read the one-row-per-watershed reference pressure table; ids are kept as text."""
    frame = pd.read_csv(path, dtype={id_column: str})
    print(f"[datahub] Loaded {len(frame)} reference watersheds from {path}")
    return WatershedTable.from_frame(frame, habitat=habitat, id_column=id_column)


def load_exclusion_ids(path: Optional[Path], column: str = WATERSHED_COLUMNS["exclusion_id"]) -> tuple[str, ...]:
    """Watershed ids flagged as data-deficient; an absent file means no exclusions."""
    if path is None:
        return ()
    frame = pd.read_csv(path, dtype={column: str})
    ensure_columns(frame, [column], "Exclusion")
    ids = tuple(frame[column].dropna().str.strip())
    print(f"[datahub] Excluding {len(ids)} watersheds listed in {path}")
    return ids


def load_posterior(path: Path) -> PosteriorSamples:
    """Load posterior draws from ``.npz`` (``samples`` + ``names``) or ArviZ NetCDF."""
    suffix = path.suffix.lower()
    if suffix == ".npz":
        with np.load(path, allow_pickle=False) as payload:
            if "samples" not in payload or "names" not in payload:
                raise MalformedInput(f"{path} must contain 'samples' and 'names' arrays.")
            samples = payload["samples"]
            names = [str(name) for name in payload["names"]]
        posterior = PosteriorSamples.from_array(samples, names)
    elif suffix in {".nc", ".netcdf"}:
        posterior = PosteriorSamples.from_inference_data(az.from_netcdf(str(path)))
    else:
        raise MalformedInput(f"Unsupported posterior format '{path.suffix}'. Use .npz or .nc.")
    print(
        f"[datahub] Loaded posterior {posterior.n_chains} chains × {posterior.n_iterations} iterations "
        f"× {posterior.n_parameters} parameters from {path}"
    )
    return posterior


def save_posterior_npz(path: Path, samples: np.ndarray, names: Sequence[str]) -> None:
    """Persist a raw sample array with its column labels in the ``.npz`` layout."""
    path.parent.mkdir(parents=True, exist_ok=True)
    np.savez(path, samples=np.asarray(samples), names=np.asarray(list(names), dtype=str))


__all__ = [
    "load_exclusion_ids",
    "load_population_csv",
    "load_posterior",
    "load_vocabulary_json",
    "load_watershed_csv",
    "save_posterior_npz",
    "save_vocabulary_json",
]
