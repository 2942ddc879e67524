"""Deterministic ordering of discrete levels and facet keys."""

from __future__ import annotations

import math
import numbers
from collections.abc import Iterable
from typing import Any

import numpy as np
import pandas as pd


def is_missing(value: Any) -> bool:
    """True for None, NaN, NaT and pd.NA."""
    if value is None or value is pd.NA or value is pd.NaT:
        return True
    if isinstance(value, float | np.floating):
        return math.isnan(value)
    if isinstance(value, np.datetime64 | np.timedelta64):
        return bool(np.isnat(value))
    return False


def level_sort_key(value: Any) -> tuple:
    """Sort key: numbers naturally (False < True), strings lexically, missing values last.

    Values of different types never get compared with each other directly; they are
    grouped by type name first.
    """
    if is_missing(value):
        return (1, "", 0)
    if isinstance(value, bool | np.bool_ | numbers.Number) and not isinstance(value, complex):
        return (0, "number", float(value))
    return (0, type(value).__name__, value)


def sort_levels(values: pd.Series | Iterable[Any]) -> list[Any]:
    """Distinct observed values in display order.

    Categorical series keep their category order (unobserved categories are dropped),
    everything else is sorted with :func:`level_sort_key`.
    """
    series = values if isinstance(values, pd.Series) else pd.Series(list(values), dtype=object)
    observed = pd.unique(series)
    has_missing = any(is_missing(v) for v in observed)
    present = [v for v in observed if not is_missing(v)]

    if isinstance(series.dtype, pd.CategoricalDtype):
        present_set = set(present)
        ordered = [cat for cat in series.dtype.categories if cat in present_set]
    else:
        ordered = sorted(present, key=level_sort_key)

    if has_missing:
        ordered.append(None)
    return [v.item() if isinstance(v, np.generic) else v for v in ordered]


def level_positions(levels: Iterable[Any], values: Iterable[Any]) -> np.ndarray:
    """Index of each value within ``levels`` (missing values match a trailing ``None`` level).

    Values that are not among the levels get ``NaN``.
    """
    lookup: dict[Any, int] = {}
    missing_pos = np.nan
    for i, level in enumerate(levels):
        if level is None:
            missing_pos = float(i)
        else:
            lookup.setdefault(level, i)
    out = []
    for v in values:
        if is_missing(v):
            out.append(missing_pos)
        else:
            v = v.item() if isinstance(v, np.generic) else v
            out.append(float(lookup.get(v, np.nan)))
    return np.asarray(out, dtype=float)


__all__ = ["is_missing", "level_positions", "level_sort_key", "sort_levels"]
