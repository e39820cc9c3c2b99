"""Grouping helpers that map population rows onto (species, FAZ) cells."""

from .bucketing import CellKey, CellPlan, build_cell_plan

__all__ = [
    "CellKey",
    "CellPlan",
    "build_cell_plan",
]
