from __future__ import annotations

from typing import Any, Iterable, Sequence

import numpy as np
import pandas as pd

from ..errors import MalformedInput


def ensure_columns(frame: pd.DataFrame, required: Iterable[str], table: str) -> None:
    """Fail fast when a table is missing any required column."""
    missing = [column for column in required if column not in frame.columns]
    if missing:
        raise MalformedInput(f"{table} table is missing columns: {', '.join(missing)}")


def to_float_array(values: Any, *, name: str) -> np.ndarray:
    """Coerce a column to float64, rejecting non-numeric and missing entries."""
    try:
        arr = pd.to_numeric(pd.Series(values), errors="raise").to_numpy(dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise MalformedInput(f"Column '{name}' contains non-numeric values.") from exc
    if np.isnan(arr).any():
        raise MalformedInput(f"Column '{name}' contains missing values.")
    return arr


def clip_negative(values: np.ndarray) -> np.ndarray:
    """Clamp negative pressure values to zero."""
    return np.clip(values, 0.0, None)


def freeze(arr: np.ndarray) -> np.ndarray:
    """Return ``arr`` with its write flag cleared."""
    arr.flags.writeable = False
    return arr


def as_labels(values: Sequence[Any]) -> list[str]:
    """Stringify labels while rejecting missing entries."""
    labels: list[str] = []
    for value in values:
        if value is None or (isinstance(value, float) and np.isnan(value)):
            raise MalformedInput("Categorical column contains missing labels.")
        labels.append(str(value))
    return labels


__all__ = ["as_labels", "clip_negative", "ensure_columns", "freeze", "to_float_array"]
