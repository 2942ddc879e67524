"""Counting and binning helpers shared by the bar and histogram geometries."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import pandas as pd


DEFAULT_BINS = 30


def _finite(values: pd.Series | np.ndarray) -> np.ndarray:
    arr = pd.to_numeric(pd.Series(values), errors="coerce").to_numpy(dtype=float)
    return arr[np.isfinite(arr)]


def histogram_edges(
    values: pd.Series | np.ndarray,
    *,
    bins: int | None = None,
    binwidth: float | None = None,
    boundary: float | None = None,
) -> np.ndarray:
    """Bin edges covering every finite value.

    With ``binwidth`` the edges sit on ``boundary + k * binwidth`` (``boundary`` defaults
    to 0) so that bins line up with round numbers; otherwise ``bins`` equal-width bins span
    ``[min, max]``.

    Args:
        values: Continuous observations.
        bins: Number of bins when no ``binwidth`` is given (default: 30).
        binwidth: Fixed bin width, takes precedence over ``bins``.
        boundary: Position of one bin boundary when using ``binwidth``.

    Returns:
        Monotonically increasing edges (``len == n_bins + 1``).
    """
    finite = _finite(values)
    lo, hi = (float(finite.min()), float(finite.max())) if finite.size else (0.0, 1.0)

    if binwidth is not None:
        if binwidth <= 0:
            raise ValueError(f"binwidth must be positive, got {binwidth}")
        boundary = 0.0 if boundary is None else float(boundary)
        start = boundary + np.floor((lo - boundary) / binwidth) * binwidth
        n_bins = max(1, int(np.ceil((hi - start) / binwidth)))
        edges = start + binwidth * np.arange(n_bins + 1)
        if edges[-1] < hi:
            edges = np.append(edges, edges[-1] + binwidth)
        return edges

    bins = DEFAULT_BINS if bins is None else int(bins)
    if bins < 1:
        raise ValueError(f"bins must be at least 1, got {bins}")
    if lo == hi:
        lo, hi = lo - 0.5, hi + 0.5
    return np.linspace(lo, hi, bins + 1)


def bin_counts(values: pd.Series | np.ndarray, edges: Sequence[float] | np.ndarray) -> np.ndarray:
    """Count finite values per bin (last bin closed on the right, like :func:`numpy.histogram`)."""
    counts, _ = np.histogram(_finite(values), bins=np.asarray(edges, dtype=float))
    return counts


def count_rows(df: pd.DataFrame, keys: list[str]) -> pd.DataFrame:
    """Row count per distinct key tuple, in first-appearance order, missing keys kept."""
    return df.groupby(keys, sort=False, dropna=False, observed=True).size().reset_index(name="count")


def resolution(values: pd.Series | np.ndarray) -> float:
    """Smallest gap between distinct values (1.0 when there is fewer than two).

    Used to size bars and jitter on a continuous axis relative to the data spacing.
    """
    finite = np.unique(_finite(values))
    if finite.size < 2:
        return 1.0
    return float(np.min(np.diff(finite)))


__all__ = ["DEFAULT_BINS", "bin_counts", "count_rows", "histogram_edges", "resolution"]
