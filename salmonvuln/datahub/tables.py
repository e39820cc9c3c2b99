"""Validated, read-only views of the population and reference-watershed tables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
import xarray as xr

from ..axes import AxisVocabulary
from ..errors import MalformedInput
from .config import POPULATION_COLUMNS, STREAM_ORDER_CENTER, WATERSHED_COLUMNS, PopulationColumns
from .helpers import as_labels, clip_negative, ensure_columns, freeze, to_float_array

_CATEGORICAL_AXES = ("species", "faz", "maz", "spawn_ecotype", "rear_ecotype")


@dataclass(frozen=True)
class PopulationRecord:
    """A single monitored population."""

    species: str
    spawn_ecotype: str
    rear_ecotype: str
    maz: str
    faz: str
    stream_order: float
    pressures: Mapping[str, float]
    stream_order_centered: Optional[float] = None


@dataclass(frozen=True)
class PopulationTable:
    """Integer-coded population rows aligned with an :class:`AxisVocabulary`.

    Attributes
    ----------
    codes:
        Mapping from categorical axis (``species``, ``faz``, ``maz``,
        ``spawn_ecotype``, ``rear_ecotype``) to an int array of positions in the
        vocabulary, one entry per population row.
    stream_order:
        Raw stream order from the population table.
    stream_order_centered:
        Stream order on the scale the model was fit with (raw minus the modal
        order); this is the value the sensitivity slope must be evaluated at.
    pressures:
        ``(population, habitat)`` DataArray of non-negative pressure values.
    """

    vocabulary: AxisVocabulary
    codes: Mapping[str, np.ndarray]
    stream_order: np.ndarray
    stream_order_centered: np.ndarray
    pressures: xr.DataArray

    def __post_init__(self) -> None:
        n_rows = self.stream_order.shape[0]
        for axis in _CATEGORICAL_AXES:
            if axis not in self.codes:
                raise MalformedInput(f"Population codes are missing axis '{axis}'.")
            if self.codes[axis].shape != (n_rows,):
                raise MalformedInput(f"Population codes for '{axis}' do not match the row count {n_rows}.")
        if self.stream_order_centered.shape != (n_rows,):
            raise MalformedInput("Centered stream order does not match the row count.")
        if self.pressures.dims != ("population", "habitat"):
            raise MalformedInput(f"Pressures must have dims (population, habitat), got {self.pressures.dims}")
        if tuple(str(h) for h in self.pressures["habitat"].values) != self.vocabulary.habitat:
            raise MalformedInput("Pressure columns are not ordered like the habitat vocabulary.")
        if self.pressures.shape[0] != n_rows:
            raise MalformedInput("Pressure rows do not match the row count.")
        if bool((self.pressures < 0).any()):
            raise MalformedInput("Pressure values must be non-negative after clipping.")

    @property
    def n_rows(self) -> int:
        return int(self.stream_order.shape[0])

    def rows_for(self, species: str, faz: str) -> np.ndarray:
        """Ascending row positions of populations of ``species`` located in ``faz``."""
        s = self.vocabulary.position("species", species)
        i = self.vocabulary.position("faz", faz)
        mask = (self.codes["species"] == s) & (self.codes["faz"] == i)
        return np.flatnonzero(mask)

    def record(self, row: int) -> PopulationRecord:
        vocab = self.vocabulary
        return PopulationRecord(
            species=vocab.species[self.codes["species"][row]],
            spawn_ecotype=vocab.spawn_ecotype[self.codes["spawn_ecotype"][row]],
            rear_ecotype=vocab.rear_ecotype[self.codes["rear_ecotype"][row]],
            maz=vocab.maz[self.codes["maz"][row]],
            faz=vocab.faz[self.codes["faz"][row]],
            stream_order=float(self.stream_order[row]),
            stream_order_centered=float(self.stream_order_centered[row]),
            pressures={h: float(v) for h, v in zip(vocab.habitat, self.pressures.values[row])},
        )

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        vocabulary: Optional[AxisVocabulary] = None,
        habitat: Optional[Sequence[str]] = None,
        columns: PopulationColumns = POPULATION_COLUMNS,
        stream_order_center: float = STREAM_ORDER_CENTER,
    ) -> "PopulationTable":
        """Validate and encode a raw population frame.

        When ``vocabulary`` is omitted it is derived from the frame (sorted labels)
        using ``habitat`` as the ordered pressure columns.  The centered stream
        order column is used when present, otherwise it is derived from the raw
        column by subtracting ``stream_order_center``.
        """
        if frame.empty:
            raise MalformedInput("Population table has no rows.")
        if vocabulary is None:
            if habitat is None:
                raise MalformedInput("Either a vocabulary or the habitat column list is required.")
            vocabulary = AxisVocabulary.from_frame(frame, dict(columns), habitat)
        elif habitat is not None and tuple(habitat) != vocabulary.habitat:
            raise MalformedInput("Habitat columns disagree with the vocabulary's habitat axis.")

        required = [columns[axis] for axis in _CATEGORICAL_AXES] + list(vocabulary.habitat)
        ensure_columns(frame, required, "Population")

        codes: Dict[str, np.ndarray] = {}
        for axis in _CATEGORICAL_AXES:
            labels = as_labels(frame[columns[axis]].tolist())
            codes[axis] = freeze(np.asarray(vocabulary.codes(axis, labels), dtype=np.intp))

        centered_column = columns["stream_order_centered"]
        raw_column = columns["stream_order"]
        if raw_column in frame.columns:
            raw = to_float_array(frame[raw_column], name=raw_column)
        elif centered_column in frame.columns:
            raw = np.full(len(frame), np.nan)
        else:
            raise MalformedInput(f"Population table needs '{raw_column}' or '{centered_column}'.")
        if centered_column in frame.columns:
            centered = to_float_array(frame[centered_column], name=centered_column)
        else:
            centered = raw - float(stream_order_center)

        pressure_values = np.column_stack(
            [to_float_array(frame[h], name=h) for h in vocabulary.habitat]
        )
        pressures = xr.DataArray(
            freeze(clip_negative(pressure_values)),
            dims=("population", "habitat"),
            coords={"population": np.arange(len(frame)), "habitat": list(vocabulary.habitat)},
            name="pressure",
        )

        return cls(
            vocabulary=vocabulary,
            codes=codes,
            stream_order=freeze(raw),
            stream_order_centered=freeze(centered),
            pressures=pressures,
        )

    @classmethod
    def from_records(
        cls,
        records: Iterable[PopulationRecord],
        vocabulary: AxisVocabulary,
        columns: PopulationColumns = POPULATION_COLUMNS,
        stream_order_center: float = STREAM_ORDER_CENTER,
    ) -> "PopulationTable":
        rows = []
        for record in records:
            row: Dict[str, object] = {
                columns["species"]: record.species,
                columns["spawn_ecotype"]: record.spawn_ecotype,
                columns["rear_ecotype"]: record.rear_ecotype,
                columns["maz"]: record.maz,
                columns["faz"]: record.faz,
                columns["stream_order"]: record.stream_order,
            }
            if record.stream_order_centered is not None:
                row[columns["stream_order_centered"]] = record.stream_order_centered
            for h in vocabulary.habitat:
                if h not in record.pressures:
                    raise MalformedInput(f"Population record is missing pressure '{h}'.")
                row[h] = record.pressures[h]
            rows.append(row)
        frame = pd.DataFrame(rows)
        centered_column = columns["stream_order_centered"]
        if centered_column in frame.columns and frame[centered_column].isna().any():
            raise MalformedInput("Either every record or none may carry a centered stream order.")
        return cls.from_frame(frame, vocabulary=vocabulary, columns=columns, stream_order_center=stream_order_center)


@dataclass(frozen=True)
class WatershedTable:
    """Reference spatial units used only for exposure cutoffs; values are kept raw."""

    ids: np.ndarray
    pressures: xr.DataArray

    def __post_init__(self) -> None:
        if self.pressures.dims != ("watershed", "habitat"):
            raise MalformedInput(f"Watershed pressures must have dims (watershed, habitat), got {self.pressures.dims}")
        if self.pressures.shape[0] != self.ids.shape[0]:
            raise MalformedInput("Watershed ids do not match the pressure rows.")

    @property
    def habitat(self) -> tuple[str, ...]:
        return tuple(str(h) for h in self.pressures["habitat"].values)

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        habitat: Sequence[str],
        id_column: str = WATERSHED_COLUMNS["watershed_id"],
    ) -> "WatershedTable":
        ensure_columns(frame, [id_column, *habitat], "Watershed")
        ids = frame[id_column].astype(str).str.strip().to_numpy()
        values = np.column_stack(
            [pd.to_numeric(frame[h], errors="coerce").to_numpy(dtype=np.float64) for h in habitat]
        )
        pressures = xr.DataArray(
            values,
            dims=("watershed", "habitat"),
            coords={"watershed": ids, "habitat": list(habitat)},
            name="pressure",
        )
        return cls(ids=freeze(ids), pressures=pressures)


__all__ = ["PopulationRecord", "PopulationTable", "WatershedTable"]
