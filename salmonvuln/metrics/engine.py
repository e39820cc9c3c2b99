"""Draw-level sensitivity, exposure, threat, status and vulnerability per cell.

For a (species s, FAZ i) cell with resampled rows ``r_j`` and posterior draws
``(c_j, t_j)`` the engine evaluates, for every habitat indicator ``h``::

    sensitivity = beta1[spawn(r_j), h] + phi[h] * order(r_j) + thetaFAZ[faz(r_j), h]
    exposure    = pressure(r_j, h)
    threat      = sensitivity * exposure
    status      = beta0 + thetaMAZ[maz(r_j), rear(r_j)]
    threatTotal = sum over h of threat
    vulnerability = status + threatTotal

where ``order`` is the re-centered stream order the model was fit with.
Cells without populations are left absent (NaN storage, ``present`` False).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Literal, Optional, Tuple

import numpy as np
import xarray as xr
from tqdm import tqdm

from ..axes import AXIS_NAMES, AxisVocabulary
from ..datahub.config import PARAMETERS, ParameterNames
from ..datahub.tables import PopulationTable
from ..errors import MalformedInput
from ..posterior import PosteriorSamples
from ..resampling import DrawIndex, DrawPlan

MetricName = Literal["sensitivity", "exposure", "threat", "status", "threatTotal", "vulnerability"]
PER_HABITAT_METRICS: Tuple[MetricName, ...] = ("sensitivity", "exposure", "threat")
AGGREGATE_METRICS: Tuple[MetricName, ...] = ("status", "threatTotal", "vulnerability")
METRICS: Tuple[MetricName, ...] = PER_HABITAT_METRICS + AGGREGATE_METRICS


@dataclass(frozen=True)
class MetricCells:
    """Named-axis container for every draw-level metric array."""

    dataset: xr.Dataset
    vocabulary: AxisVocabulary

    def __post_init__(self) -> None:
        missing = [name for name in (*METRICS, "present") if name not in self.dataset]
        if missing:
            raise MalformedInput(f"Metric dataset is missing variables: {', '.join(missing)}")
        for axis in ("species", "faz", "habitat"):
            coords = tuple(str(v) for v in self.dataset[axis].values)
            if coords != self.vocabulary.names(axis):
                raise MalformedInput(f"Metric dataset '{axis}' coordinates disagree with the vocabulary.")

    @property
    def n_draws(self) -> int:
        return int(self.dataset.sizes["draw"])

    @property
    def present(self) -> xr.DataArray:
        return self.dataset["present"]

    def is_present(self, species: str, faz: str) -> bool:
        return bool(self.present.sel(species=species, faz=faz))

    def cell(
        self,
        metric: MetricName,
        species: str,
        faz: str,
        habitat: Optional[str] = None,
    ) -> Optional[np.ndarray]:
        """Draws for one cell, or ``None`` when the cell has no populations."""
        if metric not in METRICS:
            raise KeyError(f"Unknown metric '{metric}'. Available: {list(METRICS)}")
        per_habitat = metric in PER_HABITAT_METRICS
        if per_habitat and habitat is None:
            raise ValueError(f"'{metric}' is indexed by habitat; pass habitat=...")
        if not per_habitat and habitat is not None:
            raise ValueError(f"'{metric}' is aggregated across habitats; habitat must be None.")
        if not self.is_present(species, faz):
            return None
        selection: Dict[str, str] = {"species": species, "faz": faz}
        if habitat is not None:
            selection["habitat"] = habitat
        return np.asarray(self.dataset[metric].sel(selection).values)

    def to_netcdf(self, path: Path) -> None:
        """Persist the draws so summaries and figures can be rebuilt without resampling."""
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = self.dataset.copy()
        payload.attrs["vocabulary"] = json.dumps({axis: list(self.vocabulary.names(axis)) for axis in AXIS_NAMES})
        payload.to_netcdf(path, engine="h5netcdf")

    @classmethod
    def from_netcdf(cls, path: Path) -> "MetricCells":
        dataset = xr.load_dataset(path, engine="h5netcdf")
        raw = dataset.attrs.pop("vocabulary", None)
        if raw is None:
            raise MalformedInput(f"{path} carries no axis vocabulary.")
        vocabulary = AxisVocabulary.from_lists(**json.loads(raw))
        dataset["present"] = dataset["present"].astype(bool)
        return cls(dataset=dataset, vocabulary=vocabulary)


class MetricEngine:
    """Combines resampled posterior draws with resampled population rows."""

    def __init__(
        self,
        samples: PosteriorSamples,
        table: PopulationTable,
        parameters: ParameterNames = PARAMETERS,
    ) -> None:
        self.samples = samples
        self.table = table
        self.parameters = parameters
        vocab = table.vocabulary
        n_hab = vocab.size("habitat")
        self._beta0 = samples.index.offset(parameters["beta0"])
        self._beta1 = self._offsets(parameters["beta1"], (vocab.size("spawn_ecotype"), n_hab))
        self._phi = self._offsets(parameters["phi"], (n_hab,))
        self._theta_faz = self._offsets(parameters["theta_faz"], (vocab.size("faz"), n_hab))
        self._theta_maz = self._offsets(parameters["theta_maz"], (vocab.size("maz"), vocab.size("rear_ecotype")))

    def _offsets(self, name: str, expected: Tuple[int, ...]) -> np.ndarray:
        shape = self.samples.index.shape(name)
        if shape != expected:
            raise MalformedInput(
                f"Posterior parameter '{name}' has grouping shape {shape}, "
                f"but the axis vocabulary implies {expected}."
            )
        return self.samples.offset_table(name, expected)

    def cell_metrics(self, draws: DrawIndex) -> Dict[MetricName, np.ndarray]:
        """Evaluate all six metrics for one cell.

        Per-habitat metrics come back as ``(habitat, draw)``; aggregates as ``(draw,)``.
        """
        codes = self.table.codes
        rows = draws.rows
        chains, iterations = draws.chains, draws.iterations

        spawn = codes["spawn_ecotype"][rows]
        faz = codes["faz"][rows]
        maz = codes["maz"][rows]
        rear = codes["rear_ecotype"][rows]
        order = self.table.stream_order_centered[rows]

        beta1 = self.samples.take(chains, iterations, self._beta1[spawn])
        phi = self.samples.take(chains, iterations, self._phi[np.newaxis, :])
        theta_faz = self.samples.take(chains, iterations, self._theta_faz[faz])
        sensitivity = beta1 + phi * order[:, np.newaxis] + theta_faz

        exposure = self.table.pressures.values[rows]
        threat = sensitivity * exposure

        beta0 = self.samples.values[chains, iterations, self._beta0]
        status = beta0 + self.samples.take(chains, iterations, self._theta_maz[maz, rear])

        # Accumulate in habitat order so the total is reproducible term by term.
        threat_total = threat[:, 0].copy()
        for h in range(1, threat.shape[1]):
            threat_total = threat_total + threat[:, h]
        vulnerability = status + threat_total

        return {
            "sensitivity": sensitivity.T,
            "exposure": exposure.T,
            "threat": threat.T,
            "status": status,
            "threatTotal": threat_total,
            "vulnerability": vulnerability,
        }

    def check_plan(self, plan: DrawPlan) -> None:
        """Raise when ``plan`` was drawn from a different table or posterior grid."""
        plan.vocabulary.require_same(self.table.vocabulary, context="draw plan vs population table")
        if plan.n_rows != self.table.n_rows:
            raise MalformedInput(
                f"Draw plan was built from {plan.n_rows} population rows, the table has {self.table.n_rows}."
            )
        grid = (plan.n_chains, plan.n_iterations)
        if grid != (self.samples.n_chains, self.samples.n_iterations):
            raise MalformedInput(
                f"Draw plan covers a {grid[0]} × {grid[1]} posterior grid, the samples hold "
                f"{self.samples.n_chains} × {self.samples.n_iterations}."
            )
        chains, iterations = plan.posterior.chains, plan.posterior.iterations
        if chains.size and (
            chains.min() < 0
            or chains.max() >= self.samples.n_chains
            or iterations.min() < 0
            or iterations.max() >= self.samples.n_iterations
        ):
            raise MalformedInput("Draw plan posterior indices fall outside the sample grid.")

    def compute(self, plan: DrawPlan) -> MetricCells:
        """Fill the draw-level arrays for every occupied cell of ``plan``."""
        self.check_plan(plan)
        vocab = self.table.vocabulary
        n_species, n_faz, n_hab = vocab.size("species"), vocab.size("faz"), vocab.size("habitat")
        n = plan.n_draws

        per_habitat = {name: np.full((n_species, n_faz, n_hab, n), np.nan) for name in PER_HABITAT_METRICS}
        aggregate = {name: np.full((n_species, n_faz, n), np.nan) for name in AGGREGATE_METRICS}
        present = np.zeros((n_species, n_faz), dtype=bool)

        occupied = list(plan.occupied())
        print(f"[metrics] Computing metrics for {len(occupied)} cells × {n} draws.")
        for draws in tqdm(occupied, desc="Metric cells", leave=False):
            species, faz = draws.cell
            s = vocab.position("species", species)
            i = vocab.position("faz", faz)
            values = self.cell_metrics(draws)
            for name in PER_HABITAT_METRICS:
                per_habitat[name][s, i] = values[name]
            for name in AGGREGATE_METRICS:
                aggregate[name][s, i] = values[name]
            present[s, i] = True

        coords: Dict[str, object] = {**vocab.coords("species", "faz", "habitat"), "draw": np.arange(n)}
        data_vars = {
            name: (("species", "faz", "habitat", "draw"), arr) for name, arr in per_habitat.items()
        }
        data_vars.update({name: (("species", "faz", "draw"), arr) for name, arr in aggregate.items()})
        data_vars["present"] = (("species", "faz"), present)
        dataset = xr.Dataset(data_vars=data_vars, coords=coords)
        dataset = dataset.assign_coords(
            chain=("draw", plan.posterior.chains),
            iteration=("draw", plan.posterior.iterations),
        )
        return MetricCells(dataset=dataset, vocabulary=vocab)


def compute_metrics(
    samples: PosteriorSamples,
    table: PopulationTable,
    plan: DrawPlan,
    parameters: ParameterNames = PARAMETERS,
) -> MetricCells:
    """One-call wrapper around :class:`MetricEngine`."""
    return MetricEngine(samples, table, parameters=parameters).compute(plan)


__all__ = [
    "AGGREGATE_METRICS",
    "METRICS",
    "PER_HABITAT_METRICS",
    "MetricCells",
    "MetricEngine",
    "MetricName",
    "compute_metrics",
]
