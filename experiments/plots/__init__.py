"""Plotting utilities for vulnerability run results."""

from .dot_grid import MarkerStyle, marker_style, plot_species_effects, plot_vulnerability
from .save_config import PlotSaveConfig, PlotSaveDestinations, write_figure
from .stream_order_slopes import plot_stream_order_slopes

__all__ = [
    "marker_style",
    "plot_species_effects",
    "plot_stream_order_slopes",
    "plot_vulnerability",
    "write_figure",
    "MarkerStyle",
    "PlotSaveConfig",
    "PlotSaveDestinations",
]
