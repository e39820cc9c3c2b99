from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Tuple

import pandas as pd
import xarray as xr

from salmonvuln.axes import AxisVocabulary
from salmonvuln.datahub import (
    PopulationTable,
    WatershedTable,
    load_exclusion_ids,
    load_population_csv,
    load_posterior,
    load_vocabulary_json,
    load_watershed_csv,
)
from salmonvuln.datahub.config import (
    DEFAULT_DATA_ROOT,
    DEFAULT_EXCLUSION_FILE,
    DEFAULT_N_DRAWS,
    DEFAULT_OUTPUT_ROOT,
    DEFAULT_POPULATION_FILE,
    DEFAULT_POSTERIOR_FILE,
    DEFAULT_SEED,
    DEFAULT_VOCABULARY_FILE,
    DEFAULT_WATERSHED_FILE,
    HABITAT_INDICATORS,
    STREAM_ORDER_CENTER,
)
from salmonvuln.metrics import (
    CutoffTables,
    EvidenceClassifier,
    EvidenceThresholds,
    MetricCells,
    MetricEngine,
    SummaryTables,
    count_cell_populations,
    count_exposed_populations,
    count_intercept_support,
    mean_exposure_by_zone,
    predict_slope_by_stream_order,
    summarize,
)
from salmonvuln.pipelines import build_cell_plan
from salmonvuln.posterior import PosteriorSamples
from salmonvuln.resampling import Resampler

CELLS_FILE = "metric_cells.nc"
COVERAGE_FILE = "coverage.nc"
SLOPES_FILE = "stream_order_slopes.nc"
CUTOFFS_FILE = "cutoffs.csv"
SUMMARY_DIR = "summaries"


@dataclass(frozen=True)
class RunConfig:
    """Inputs and knobs for one vulnerability run."""

    data_root: Path = DEFAULT_DATA_ROOT
    output_root: Path = DEFAULT_OUTPUT_ROOT
    population_file: str = DEFAULT_POPULATION_FILE
    watershed_file: str = DEFAULT_WATERSHED_FILE
    exclusion_file: Optional[str] = DEFAULT_EXCLUSION_FILE
    posterior_file: str = DEFAULT_POSTERIOR_FILE
    vocabulary_file: Optional[str] = DEFAULT_VOCABULARY_FILE
    habitat: Tuple[str, ...] = HABITAT_INDICATORS
    n_draws: int = DEFAULT_N_DRAWS
    seed: int = DEFAULT_SEED
    credible_interval: float = 0.95
    stream_order_center: float = STREAM_ORDER_CENTER
    thresholds: EvidenceThresholds = field(default_factory=EvidenceThresholds)

    def validate(self) -> None:
        if self.n_draws < 1:
            raise ValueError("n_draws must be at least 1.")
        if not 0 < self.credible_interval < 1:
            raise ValueError("credible_interval must fall within (0, 1).")
        if not self.habitat:
            raise ValueError("At least one habitat indicator is required.")

    def input_path(self, name: Optional[str]) -> Optional[Path]:
        if name is None:
            return None
        return self.data_root / name

    def optional_input(self, name: Optional[str]) -> Optional[Path]:
        """Like :meth:`input_path`, but a file that does not exist resolves to None."""
        path = self.input_path(name)
        if path is None or not path.exists():
            return None
        return path


@dataclass(frozen=True)
class VulnerabilityRun:
    """Everything one run produces; the report figures are drawn from this."""

    cells: MetricCells
    summaries: SummaryTables
    cutoffs: CutoffTables
    coverage: xr.Dataset
    slopes: xr.Dataset


def coverage_dataset(table: PopulationTable) -> xr.Dataset:
    return xr.Dataset(
        {
            "cell_populations": count_cell_populations(table),
            "intercept_support": count_intercept_support(table),
            "exposed_populations": count_exposed_populations(table),
            "mean_exposure": mean_exposure_by_zone(table),
        }
    )


def compute_vulnerability(
    samples: PosteriorSamples,
    table: PopulationTable,
    watersheds: WatershedTable,
    exclude_ids: Sequence[str] = (),
    config: Optional[RunConfig] = None,
) -> VulnerabilityRun:
    """Resample, compute draw-level metrics, and summarise them for in-memory inputs."""
    config = config or RunConfig(habitat=table.vocabulary.habitat)
    config.validate()
    if watersheds.habitat != table.vocabulary.habitat:
        raise ValueError("Watershed habitat columns must match the population habitat axis.")

    plan = build_cell_plan(table)
    resampler = Resampler(config.n_draws, seed=config.seed)
    draw_plan = resampler.plan(plan, samples.n_chains, samples.n_iterations)

    cells = MetricEngine(samples, table).compute(draw_plan)
    classifier = EvidenceClassifier(config.thresholds, credible_interval=config.credible_interval)
    summaries = summarize(cells, classifier)
    cutoffs = CutoffTables.from_watersheds(watersheds, exclude_ids)
    slopes = predict_slope_by_stream_order(
        samples,
        table.vocabulary,
        posterior=draw_plan.posterior,
        credible_interval=config.credible_interval,
        stream_order_center=config.stream_order_center,
    )
    return VulnerabilityRun(
        cells=cells,
        summaries=summaries,
        cutoffs=cutoffs,
        coverage=coverage_dataset(table),
        slopes=slopes,
    )


def run_vulnerability(config: RunConfig) -> VulnerabilityRun:
    """Load every input named by ``config`` and compute the full run."""
    config.validate()
    print(f"[run] Starting vulnerability run (n_draws={config.n_draws}, seed={config.seed}).")
    vocabulary: Optional[AxisVocabulary] = None
    vocabulary_path = config.optional_input(config.vocabulary_file)
    if vocabulary_path is not None:
        vocabulary = load_vocabulary_json(vocabulary_path)
    else:
        print("[run] No vocabulary file; axis names are taken from the population table in sorted order.")

    samples = load_posterior(config.data_root / config.posterior_file)
    table = load_population_csv(
        config.data_root / config.population_file,
        habitat=config.habitat,
        vocabulary=vocabulary,
        stream_order_center=config.stream_order_center,
    )
    watersheds = load_watershed_csv(config.data_root / config.watershed_file, habitat=config.habitat)
    exclude_ids = load_exclusion_ids(config.optional_input(config.exclusion_file))

    run = compute_vulnerability(samples, table, watersheds, exclude_ids, config)
    print("[run] Vulnerability run complete.")
    return run


def save_run(run: VulnerabilityRun, directory: Path) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    run.cells.to_netcdf(directory / CELLS_FILE)
    run.summaries.to_csv(directory / SUMMARY_DIR)
    run.cutoffs.to_frame().to_csv(directory / CUTOFFS_FILE, index=False)
    run.coverage.to_netcdf(directory / COVERAGE_FILE, engine="h5netcdf")
    run.slopes.to_netcdf(directory / SLOPES_FILE, engine="h5netcdf")
    print(f"[run] Saved run outputs under {directory}")


def load_run(directory: Path) -> VulnerabilityRun:
    """Reload a saved run so figures can be redrawn without resampling."""
    if not directory.exists():
        raise FileNotFoundError(f"No saved run at {directory}")
    return VulnerabilityRun(
        cells=MetricCells.from_netcdf(directory / CELLS_FILE),
        summaries=SummaryTables.from_csv(directory / SUMMARY_DIR),
        cutoffs=CutoffTables.from_frame(pd.read_csv(directory / CUTOFFS_FILE, dtype={"habitat": str})),
        coverage=xr.load_dataset(directory / COVERAGE_FILE, engine="h5netcdf"),
        slopes=xr.load_dataset(directory / SLOPES_FILE, engine="h5netcdf"),
    )


__all__ = [
    "RunConfig",
    "VulnerabilityRun",
    "compute_vulnerability",
    "coverage_dataset",
    "load_run",
    "run_vulnerability",
    "save_run",
]
