"""Posterior sample storage and parameter lookup."""

from .index import GroupIndex, PosteriorIndex, build_index, parse_column_name
from .samples import PosteriorSamples

__all__ = [
    "GroupIndex",
    "PosteriorIndex",
    "PosteriorSamples",
    "build_index",
    "parse_column_name",
]
