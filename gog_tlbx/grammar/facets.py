"""Facet specifications: split one plot into small multiples.

Panel keys are computed from the plot's base dataset and sorted (numbers naturally,
strings lexically, category order for categoricals, ``False < True``, missing keys last).
Every layer's dataset is then filtered to each key; a layer whose dataset lacks the
facet variables is drawn unchanged in every panel.
"""

from __future__ import annotations

import itertools
import math
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import numpy as np
import pandas as pd

from gog_tlbx.data.views import ColumnExpr, DatasetView, evaluate
from gog_tlbx.exceptions import UnknownColumnError
from gog_tlbx.utils.ordering import is_missing, level_positions, sort_levels


PanelKey = tuple[Any, ...]


class FacetScales(StrEnum):
    """Whether position scales are shared between panels."""

    FIXED = "fixed"
    FREE = "free"
    FREE_X = "free_x"
    FREE_Y = "free_y"

    @property
    def free_x(self) -> bool:
        return self in (FacetScales.FREE, FacetScales.FREE_X)

    @property
    def free_y(self) -> bool:
        return self in (FacetScales.FREE, FacetScales.FREE_Y)


def _scales(value: FacetScales | str) -> FacetScales:
    try:
        return FacetScales(value)
    except ValueError:
        valid = ", ".join(s.value for s in FacetScales)
        raise ValueError(f"Invalid scales='{value}'. Use one of: {valid}") from None


def _clean(value: Any) -> Any:
    if is_missing(value):
        return None
    return value.item() if isinstance(value, np.generic) else value


def _match(frame: pd.DataFrame, key: PanelKey) -> np.ndarray:
    """Boolean row mask selecting rows whose facet values equal ``key`` (missing matches None)."""
    mask = np.ones(len(frame), dtype=bool)
    for column, level in zip(frame.columns, key, strict=True):
        values = frame[column]
        if level is None:
            mask &= values.isna().to_numpy()
        else:
            hit = values == level
            mask &= np.where(hit.notna().to_numpy(), hit.to_numpy(), False).astype(bool)
    return mask


def _rows(view: DatasetView, mask: np.ndarray) -> DatasetView:
    return view.filter(lambda _: mask)


class Facet(ABC):
    """Base class for facet specifications."""

    scales: FacetScales

    @abstractmethod
    def key_frame(self, view: DatasetView) -> pd.DataFrame:
        """Per-row facet values of ``view`` (one column per facet variable).

        Raises:
            UnknownColumnError: If ``view`` lacks a facet variable.
        """
        ...

    @abstractmethod
    def panel_keys(self, view: DatasetView) -> list[PanelKey]:
        """Sorted panel keys derived from the base view."""
        ...

    @abstractmethod
    def panel_label(self, key: PanelKey) -> str:
        ...

    def panel_positions(self, keys: list[PanelKey]) -> list[tuple[int, int]]:
        """(row, column) of every panel in the figure layout."""
        return [(0, i) for i in range(len(keys))]

    def partition(self, view: DatasetView) -> list[tuple[PanelKey, DatasetView]]:
        """Split the base view into one sub-view per panel key (in panel order)."""
        frame = self.key_frame(view)
        return [(key, _rows(view, _match(frame, key))) for key in self.panel_keys(view)]

    def subset(self, view: DatasetView, key: PanelKey) -> DatasetView | None:
        """Rows of a layer's dataset belonging to ``key``; None when the dataset lacks the facet variables."""
        try:
            frame = self.key_frame(view)
        except UnknownColumnError:
            return None
        return _rows(view, _match(frame, key))


@dataclass(frozen=True)
class FacetNone(Facet):
    """No faceting: a single panel holding every row."""

    scales: FacetScales = FacetScales.FIXED

    def key_frame(self, view: DatasetView) -> pd.DataFrame:
        return pd.DataFrame(index=view.df.index)

    def panel_keys(self, view: DatasetView) -> list[PanelKey]:
        return [()]

    def panel_label(self, key: PanelKey) -> str:
        return ""

    def subset(self, view: DatasetView, key: PanelKey) -> DatasetView | None:
        return view


def _observed_keys(frame: pd.DataFrame) -> list[PanelKey]:
    """Distinct observed key tuples sorted by per-column level order."""
    levels = {col: sort_levels(frame[col]) for col in frame.columns}
    keys = {tuple(_clean(v) for v in row) for row in frame.drop_duplicates().itertuples(index=False, name=None)}
    return sorted(
        keys,
        key=lambda key: tuple(
            level_positions(levels[col], [part])[0] for col, part in zip(frame.columns, key, strict=True)
        ),
    )


@dataclass(frozen=True)
class FacetWrap(Facet):
    """One panel per observed combination of ``columns``, wrapped into rows of ``ncol`` panels."""

    columns: tuple[str, ...]
    ncol: int | None = None
    scales: FacetScales = FacetScales.FIXED

    def __post_init__(self) -> None:
        columns = (self.columns,) if isinstance(self.columns, str) else tuple(self.columns)
        if not columns:
            raise ValueError("facet_wrap needs at least one column")
        if self.ncol is not None and self.ncol < 1:
            raise ValueError(f"ncol must be at least 1, got {self.ncol}")
        object.__setattr__(self, "columns", columns)
        object.__setattr__(self, "scales", _scales(self.scales))

    def key_frame(self, view: DatasetView) -> pd.DataFrame:
        view.require(self.columns, context="facet_wrap")
        return view.df.loc[:, list(self.columns)]

    def panel_keys(self, view: DatasetView) -> list[PanelKey]:
        return _observed_keys(self.key_frame(view))

    def panel_label(self, key: PanelKey) -> str:
        return ", ".join("NA" if part is None else str(part) for part in key)

    def panel_positions(self, keys: list[PanelKey]) -> list[tuple[int, int]]:
        ncol = self.ncol or max(1, math.ceil(math.sqrt(len(keys))))
        return [divmod(i, ncol) for i in range(len(keys))]


@dataclass(frozen=True)
class FacetGrid(Facet):
    """Panels laid out as rows x columns over the full product of observed levels.

    Combinations absent from the data become empty panels so the grid stays rectangular.
    Either ``rows`` or ``cols`` may be None for a single-row/single-column grid.
    """

    rows: str | None = None
    cols: str | None = None
    scales: FacetScales = FacetScales.FIXED

    def __post_init__(self) -> None:
        if self.rows is None and self.cols is None:
            raise ValueError("facet_grid needs rows, cols or both")
        object.__setattr__(self, "scales", _scales(self.scales))

    @property
    def columns(self) -> tuple[str, ...]:
        return tuple(c for c in (self.rows, self.cols) if c is not None)

    def key_frame(self, view: DatasetView) -> pd.DataFrame:
        view.require(self.columns, context="facet_grid")
        return view.df.loc[:, list(self.columns)]

    def panel_keys(self, view: DatasetView) -> list[PanelKey]:
        frame = self.key_frame(view)
        return list(itertools.product(*(sort_levels(frame[c]) for c in self.columns)))

    def panel_label(self, key: PanelKey) -> str:
        return " | ".join(
            f"{name} = {'NA' if part is None else part}" for name, part in zip(self.columns, key, strict=True)
        )

    def panel_positions(self, keys: list[PanelKey]) -> list[tuple[int, int]]:
        if self.rows is None:
            return [(0, i) for i in range(len(keys))]
        if self.cols is None:
            return [(i, 0) for i in range(len(keys))]
        row_levels = list(dict.fromkeys(k[0] for k in keys))
        col_levels = list(dict.fromkeys(k[1] for k in keys))
        return [(row_levels.index(k[0]), col_levels.index(k[1])) for k in keys]


@dataclass(frozen=True)
class FacetCondition(Facet):
    """Split rows by the value of a derived condition, e.g. ``"gdp_percap > 10000"``.

    The condition may yield any discrete label (booleans being the common case).
    """

    condition: ColumnExpr
    name: str | None = None
    scales: FacetScales = FacetScales.FIXED
    label_format: str = field(default="{name}: {value}", compare=False)

    def __post_init__(self) -> None:
        if self.name is None:
            object.__setattr__(self, "name", self.condition if isinstance(self.condition, str) else "condition")
        object.__setattr__(self, "scales", _scales(self.scales))

    def key_frame(self, view: DatasetView) -> pd.DataFrame:
        values = evaluate(view.df, self.condition, context=f"facet condition '{self.name}'")
        return pd.DataFrame({self.name: values}, index=view.df.index)

    def panel_keys(self, view: DatasetView) -> list[PanelKey]:
        return _observed_keys(self.key_frame(view))

    def panel_label(self, key: PanelKey) -> str:
        value = "NA" if key[0] is None else key[0]
        return self.label_format.format(name=self.name, value=value)


def facet_wrap(columns: str | Iterable[str], *, ncol: int | None = None, scales: str = "fixed") -> FacetWrap:
    """Facet by one or more columns, e.g. ``facet_wrap("continent")``."""
    return FacetWrap(columns=(columns,) if isinstance(columns, str) else tuple(columns), ncol=ncol, scales=scales)


def facet_grid(rows: str | None = None, cols: str | None = None, *, scales: str = "fixed") -> FacetGrid:
    """Facet rows by ``rows`` and columns by ``cols``, e.g. ``facet_grid("continent", "decade")``."""
    return FacetGrid(rows=rows, cols=cols, scales=scales)


def facet_condition(condition: ColumnExpr, *, name: str | None = None, scales: str = "fixed") -> FacetCondition:
    """Facet by a derived condition, e.g. ``facet_condition("pop > 1e8", name="large")``."""
    return FacetCondition(condition=condition, name=name, scales=scales)


__all__ = [
    "Facet",
    "FacetCondition",
    "FacetGrid",
    "FacetNone",
    "FacetScales",
    "FacetWrap",
    "PanelKey",
    "facet_condition",
    "facet_grid",
    "facet_wrap",
]
