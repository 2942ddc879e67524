"""Box plot geometry."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pandas as pd

from gog_tlbx.analysis.box_summary import SUMMARY_COLUMNS, five_number_summary
from gog_tlbx.exceptions import GrammarError
from gog_tlbx.grammar.aes import AestheticMapping, Channel

from .bar import _BarLike, order_groups, position_bars
from .base import GeomContext, GeomKind


class BoxplotGeom(_BarLike):
    """Per x-partition five-number summary of y with Tukey whiskers and outliers.

    Boxes sharing an x (because fill/colour is mapped) are dodged side by side.
    """

    kind = GeomKind.BOXPLOT
    required = frozenset({Channel.X, Channel.Y})
    optional = {Channel.FILL: None, Channel.COLOR: None, Channel.ALPHA: 1.0}
    default_params = {"coef": 1.5, "width": 0.75}

    def compute(
        self,
        frame: pd.DataFrame,
        mapping: AestheticMapping,
        params: Mapping[str, Any],
        ctx: GeomContext,
    ) -> pd.DataFrame:
        if ctx.discrete_y:
            raise GrammarError(f"Geometry 'boxplot' needs a continuous y ({ctx.label}).")
        if ctx.temporal_x:
            self.require_numeric_x(ctx)

        keys = ["x", *map(str, self.group_channels(mapping))]
        rows = self.row_marks(frame, mapping).set_index("row_id", drop=False)
        records = []
        for key, part in rows.groupby(keys, sort=False, dropna=False, observed=True):
            key = key if isinstance(key, tuple) else (key,)
            records.append({**dict(zip(keys, key, strict=True)), **five_number_summary(part["y"], params["coef"])})

        boxes = pd.DataFrame(records, columns=[*keys, *SUMMARY_COLUMNS])
        boxes = order_groups(boxes, keys, ctx.x_levels)
        for name, value in self.constant_channels(mapping).items():
            if name not in boxes:
                boxes[name] = [value] * len(boxes)

        # reuse dodge layout; y is irrelevant for boxes
        laid_out = position_bars(boxes.assign(y=0.0), "dodge", self.bar_width(mapping, params, ctx))
        return laid_out.drop(columns=["y", "ymin", "ymax"])

    def extent(self, marks: pd.DataFrame) -> tuple[list[Any], list[Any]]:
        if marks.empty:
            return [], []
        half = marks["width"] / 2
        xs = (marks["x_pos"] - half).tolist() + (marks["x_pos"] + half).tolist()
        ys = marks["whisker_low"].tolist() + marks["whisker_high"].tolist()
        ys += [v for outliers in marks["outliers"] for v in outliers]
        return xs, ys

    def get_description(self) -> str:
        return "Box plot: median, quartiles, whiskers at 1.5 x IQR and outliers per x category"
