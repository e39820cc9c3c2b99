"""Static configuration: default paths, column names, and model parameter names."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Tuple, TypedDict


class PopulationColumns(TypedDict):
    species: str
    spawn_ecotype: str
    rear_ecotype: str
    maz: str
    faz: str
    stream_order: str
    stream_order_centered: str


class WatershedColumns(TypedDict):
    watershed_id: str
    exclusion_id: str


class ParameterNames(TypedDict):
    beta0: str
    beta1: str
    phi: str
    theta_faz: str
    theta_maz: str


# Default directories used by the Typer CLI; callers may override these.
DEFAULT_DATA_ROOT = Path("data")
DEFAULT_OUTPUT_ROOT = Path("output")

DEFAULT_POPULATION_FILE = "population_data.csv"
DEFAULT_WATERSHED_FILE = "habitat_pressure_by_watershed.csv"
DEFAULT_EXCLUSION_FILE = "forest_disturbance_dd.csv"
DEFAULT_POSTERIOR_FILE = "posterior.npz"
DEFAULT_VOCABULARY_FILE = "axis_vocabulary.json"

# ---------------------------------------------------------------------------
# Column and parameter naming used by the fitted model and its input tables.

POPULATION_COLUMNS: PopulationColumns = {
    "species": "SPECIES",
    "spawn_ecotype": "spawnEco",
    "rear_ecotype": "rearEco",
    "maz": "MAZ",
    "faz": "FAZ",
    "stream_order": "StreamOrder",
    "stream_order_centered": "streamOrderCentered",
}

WATERSHED_COLUMNS: WatershedColumns = {
    "watershed_id": "WTRSHD_FID",
    "exclusion_id": "wtrshd_fid",
}

PARAMETERS: ParameterNames = {
    "beta0": "beta0",
    "beta1": "beta1",
    "phi": "phi",
    "theta_faz": "thetaFAZ",
    "theta_maz": "thetaMAZ",
}

# Habitat-pressure indicator columns, in model order.
HABITAT_INDICATORS: Tuple[str, ...] = (
    "agriculture",
    "urban_development",
    "riparian_disturbance",
    "linear_development",
    "forestry_roads",
    "non_forestry_roads",
    "stream_crossings",
    "forest_disturbance",
    "eca",
    "pine_beetle",
)

HABITAT_LABELS: Dict[str, str] = {
    "agriculture": "Agriculture",
    "urban_development": "Urban devel.",
    "riparian_disturbance": "Riparian dist.",
    "linear_development": "Linear devel.",
    "forestry_roads": "Forestry roads",
    "non_forestry_roads": "Non-forestry roads",
    "stream_crossings": "Stream crossings",
    "forest_disturbance": "Forest dist.",
    "eca": "ECA",
    "pine_beetle": "Pine beetle",
}

# The model was fit with stream order re-centered on the modal order.
STREAM_ORDER_CENTER = 4.0

DEFAULT_N_DRAWS = 10_000
DEFAULT_SEED = 4569


__all__ = [
    "DEFAULT_DATA_ROOT",
    "DEFAULT_EXCLUSION_FILE",
    "DEFAULT_N_DRAWS",
    "DEFAULT_OUTPUT_ROOT",
    "DEFAULT_POPULATION_FILE",
    "DEFAULT_POSTERIOR_FILE",
    "DEFAULT_SEED",
    "DEFAULT_VOCABULARY_FILE",
    "DEFAULT_WATERSHED_FILE",
    "HABITAT_INDICATORS",
    "HABITAT_LABELS",
    "PARAMETERS",
    "POPULATION_COLUMNS",
    "STREAM_ORDER_CENTER",
    "WATERSHED_COLUMNS",
    "ParameterNames",
    "PopulationColumns",
    "WatershedColumns",
]
