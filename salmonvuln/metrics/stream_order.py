"""Predicted habitat slopes across a grid of stream orders."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import xarray as xr

from ..axes import AxisVocabulary
from ..datahub.config import PARAMETERS, STREAM_ORDER_CENTER, ParameterNames
from ..posterior import PosteriorSamples
from ..resampling import PosteriorDraw

DEFAULT_STREAM_ORDERS: Sequence[float] = tuple(float(order) for order in range(1, 9))


def predict_slope_by_stream_order(
    samples: PosteriorSamples,
    vocabulary: AxisVocabulary,
    stream_orders: Sequence[float] = DEFAULT_STREAM_ORDERS,
    posterior: Optional[PosteriorDraw] = None,
    credible_interval: float = 0.95,
    stream_order_center: float = STREAM_ORDER_CENTER,
    parameters: ParameterNames = PARAMETERS,
) -> xr.Dataset:
    """Posterior mean and central interval of ``beta1 + phi * (order - center)``.

    ``stream_orders`` are raw orders; the slope is evaluated on the centered
    scale the model was fit with.  When ``posterior`` is omitted every stored
    draw is used, otherwise only the resampled (chain, iteration) pairs.
    """
    if not 0 < credible_interval < 1:
        raise ValueError("credible_interval must fall within (0, 1).")
    orders = np.asarray(stream_orders, dtype=float)
    if orders.ndim != 1 or orders.size == 0:
        raise ValueError("stream_orders must be a non-empty 1-D sequence.")

    if posterior is None:
        chains, iterations = np.meshgrid(
            np.arange(samples.n_chains), np.arange(samples.n_iterations), indexing="ij"
        )
        chains, iterations = chains.ravel(), iterations.ravel()
    else:
        chains, iterations = posterior.chains, posterior.iterations

    n_spawn, n_hab = vocabulary.size("spawn_ecotype"), vocabulary.size("habitat")
    beta1_offsets = samples.offset_table(parameters["beta1"], (n_spawn, n_hab))
    phi_offsets = samples.offset_table(parameters["phi"], (n_hab,))

    beta1 = samples.take(chains, iterations, beta1_offsets[np.newaxis])  # (draw, spawn, habitat)
    phi = samples.take(chains, iterations, phi_offsets[np.newaxis])  # (draw, habitat)
    centered = orders - float(stream_order_center)
    slopes = beta1[..., np.newaxis] + phi[:, np.newaxis, :, np.newaxis] * centered

    tail = (1.0 - credible_interval) / 2.0
    lower, upper = np.quantile(slopes, [tail, 1.0 - tail], axis=0)
    dims = ("spawn_ecotype", "habitat", "stream_order")
    coords = {**vocabulary.coords("spawn_ecotype", "habitat"), "stream_order": orders}
    return xr.Dataset(
        {
            "mean": (dims, slopes.mean(axis=0)),
            "lower": (dims, lower),
            "upper": (dims, upper),
        },
        coords=coords,
        attrs={"credible_interval": credible_interval, "stream_order_center": float(stream_order_center)},
    )


__all__ = ["DEFAULT_STREAM_ORDERS", "predict_slope_by_stream_order"]
