"""Shared configuration for storing Plotly figures on disk."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

import plotly.graph_objects as go

_SLUG_PATTERN = re.compile(r"[^A-Za-z0-9_.-]+")


def slugify(text: str) -> str:
    """File-name-safe version of a species or metric label."""
    return _SLUG_PATTERN.sub("-", text.strip()).strip("-").lower() or "plot"


@dataclass(frozen=True)
class PlotSaveDestinations:
    """Resolved destinations for saving a single figure."""

    directory: Path
    slug: str
    save_static: bool
    save_html: bool

    def ensure_dir(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    @property
    def png_path(self) -> Path:
        return self.directory / f"{self.slug}.png"

    @property
    def html_path(self) -> Path:
        return self.directory / f"{self.slug}.html"

    def child(self, suffix: str) -> "PlotSaveDestinations":
        """Destination for one figure of a multi-figure plot (e.g. one per species)."""
        return PlotSaveDestinations(
            directory=self.directory,
            slug=f"{self.slug}-{slugify(suffix)}",
            save_static=self.save_static,
            save_html=self.save_html,
        )


@dataclass(frozen=True)
class PlotSaveConfig:
    """Factory for per-figure destinations under ``base_dir / run_tag``."""

    base_dir: Path
    run_tag: str
    save_static: bool = False
    save_html: bool = True

    def for_plot(self, slug: str) -> PlotSaveDestinations:
        return PlotSaveDestinations(
            directory=self.base_dir / self.run_tag,
            slug=slugify(slug),
            save_static=self.save_static,
            save_html=self.save_html,
        )


def write_figure(fig: go.Figure, save_to: PlotSaveDestinations | None) -> None:
    """Write ``fig`` to its destinations, or open it interactively when none are given."""
    if save_to is None:
        fig.show()
        return
    save_to.ensure_dir()
    if save_to.save_static:
        fig.write_image(str(save_to.png_path), engine="kaleido")
    if save_to.save_html:
        fig.write_html(
            str(save_to.html_path),
            include_plotlyjs="cdn",
            full_html=True,
        )
    print(f"[plots] Saved {save_to.slug} under {save_to.directory}")


__all__ = ["PlotSaveConfig", "PlotSaveDestinations", "slugify", "write_figure"]
