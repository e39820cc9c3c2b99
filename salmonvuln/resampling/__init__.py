"""Seed-deterministic resampling of posterior draws and population rows."""

from .resampler import CellDraws, DrawIndex, DrawPlan, NoData, PosteriorDraw, Resampler, seeded_plan

__all__ = [
    "CellDraws",
    "DrawIndex",
    "DrawPlan",
    "NoData",
    "PosteriorDraw",
    "Resampler",
    "seeded_plan",
]
