from .loader import (
    load_exclusion_ids,
    load_population_csv,
    load_posterior,
    load_vocabulary_json,
    load_watershed_csv,
    save_posterior_npz,
    save_vocabulary_json,
)
from .tables import PopulationRecord, PopulationTable, WatershedTable

__all__ = [
    "PopulationRecord",
    "PopulationTable",
    "WatershedTable",
    "load_exclusion_ids",
    "load_population_csv",
    "load_posterior",
    "load_vocabulary_json",
    "load_watershed_csv",
    "save_posterior_npz",
    "save_vocabulary_json",
]
