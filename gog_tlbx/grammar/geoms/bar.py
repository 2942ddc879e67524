"""Bar geometries: counted (``bar``) and summarized (``col``)."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pandas as pd

from gog_tlbx.analysis.binning import count_rows, resolution
from gog_tlbx.exceptions import AmbiguousAggregationError
from gog_tlbx.grammar.aes import AestheticMapping, Channel
from gog_tlbx.utils.ordering import level_positions, level_sort_key

from .base import Geom, GeomContext, GeomKind


POSITIONS = ("stack", "dodge", "identity")
AGGREGATIONS = ("sum", "mean", "median", "min", "max", "count", "first", "last")


def order_groups(marks: pd.DataFrame, keys: list[str], x_levels: tuple[Any, ...] | None) -> pd.DataFrame:
    """Sort aggregated marks by x (level order on a discrete axis) then by group level."""
    if marks.empty:
        return marks.reset_index(drop=True)
    sort_cols = {}
    for key in keys:
        if key == "x" and x_levels is not None:
            sort_cols[f"_sort_{key}"] = level_positions(x_levels, marks[key])
        else:
            sort_cols[f"_sort_{key}"] = [level_sort_key(v) for v in marks[key]]
    ordered = marks.assign(**sort_cols).sort_values(list(sort_cols), kind="stable")
    return ordered.drop(columns=list(sort_cols)).reset_index(drop=True)


def position_bars(marks: pd.DataFrame, position: str, width: float) -> pd.DataFrame:
    """Lay out bars sharing an x: stacked (``ymin``/``ymax`` cumulative), dodged or overlapping."""
    if position not in POSITIONS:
        raise ValueError(f"Invalid position='{position}'. Use one of: {', '.join(POSITIONS)}")
    marks = marks.copy()
    marks["width"] = float(width)
    if marks.empty:
        return marks.assign(ymin=pd.Series(dtype=float), ymax=pd.Series(dtype=float))

    by_x = marks.groupby("x", sort=False, dropna=False)
    if position == "stack":
        marks["ymax"] = by_x["y"].cumsum()
        marks["ymin"] = marks["ymax"] - marks["y"]
    elif position == "dodge":
        n_at_x = by_x["y"].transform("size")
        slot = by_x.cumcount()
        marks["width"] = width / n_at_x
        marks["x_offset"] = (slot - (n_at_x - 1) / 2) * marks["width"]
        marks["ymin"] = 0.0
        marks["ymax"] = marks["y"]
    else:
        marks["ymin"] = 0.0
        marks["ymax"] = marks["y"]
    return marks


class _BarLike(Geom):
    """Shared layout for rectangles anchored at zero."""

    def bar_width(self, mapping: AestheticMapping, params: Mapping[str, Any], ctx: GeomContext) -> float:
        if ctx.discrete_x:
            return float(params["width"])
        values = self.channel_values(ctx.layer_frame, mapping, Channel.X)
        return float(params["width"]) * (resolution(values) if values is not None else 1.0)

    def finish(
        self,
        marks: pd.DataFrame,
        keys: list[str],
        mapping: AestheticMapping,
        params: Mapping[str, Any],
        ctx: GeomContext,
    ) -> pd.DataFrame:
        if ctx.temporal_x:
            self.require_numeric_x(ctx)
        marks = order_groups(marks, keys, ctx.x_levels)
        for name, value in self.constant_channels(mapping).items():
            if name not in marks:
                marks[name] = [value] * len(marks)
        return position_bars(marks, params["position"], self.bar_width(mapping, params, ctx))

    def extent(self, marks: pd.DataFrame) -> tuple[list[Any], list[Any]]:
        if marks.empty:
            return [], []
        half = marks["width"] / 2
        xs = (marks["x_pos"] - half).tolist() + (marks["x_pos"] + half).tolist()
        ys = marks["ymin"].tolist() + marks["ymax"].tolist()
        return xs, ys


class BarGeom(_BarLike):
    """Counted bars: one bar per distinct x (split by fill/colour when mapped), height = row count."""

    kind = GeomKind.BAR
    required = frozenset({Channel.X})
    optional = {Channel.FILL: None, Channel.COLOR: None, Channel.ALPHA: 1.0}
    default_params = {"width": 0.9, "position": "stack"}

    def compute(
        self,
        frame: pd.DataFrame,
        mapping: AestheticMapping,
        params: Mapping[str, Any],
        ctx: GeomContext,
    ) -> pd.DataFrame:
        keys = ["x", *map(str, self.group_channels(mapping))]
        rows = self.row_marks(frame, mapping)
        counts = count_rows(rows[keys], keys) if not rows.empty else pd.DataFrame(columns=[*keys, "count"])
        counts["count"] = counts["count"].astype(int)
        counts["y"] = counts["count"]
        return self.finish(counts, keys, mapping, params, ctx)

    def get_description(self) -> str:
        return "Bar chart counting rows per x category (stacked or dodged by fill/colour)"


class ColGeom(_BarLike):
    """Summarized bars: the bar height is the y value already present in the data.

    Several rows landing on the same bar are ambiguous and rejected unless an ``agg``
    rule (sum, mean, median, ...) says how to combine them.
    """

    kind = GeomKind.COL
    required = frozenset({Channel.X, Channel.Y})
    optional = {Channel.FILL: None, Channel.COLOR: None, Channel.ALPHA: 1.0}
    default_params = {"width": 0.9, "position": "stack", "agg": None}

    def compute(
        self,
        frame: pd.DataFrame,
        mapping: AestheticMapping,
        params: Mapping[str, Any],
        ctx: GeomContext,
    ) -> pd.DataFrame:
        keys = ["x", *map(str, self.group_channels(mapping))]
        rows = self.row_marks(frame, mapping)[[*keys, "y"]]
        agg = params["agg"]

        if agg is None:
            duplicated = rows.duplicated(keys, keep=False)
            if duplicated.any():
                raise AmbiguousAggregationError(str(self.kind), pd.unique(rows.loc[duplicated, "x"]).tolist())
            bars = rows.assign(n=1)
        else:
            if agg not in AGGREGATIONS:
                raise ValueError(f"Invalid agg='{agg}'. Use one of: {', '.join(AGGREGATIONS)}")
            bars = (
                rows.groupby(keys, sort=False, dropna=False, observed=True)
                .agg(y=("y", agg), n=("y", "size"))
                .reset_index()
            )
        return self.finish(bars, keys, mapping, params, ctx)

    def get_description(self) -> str:
        return "Bar chart using the y value of each row as bar height (agg=... combines duplicates)"
