"""Line geometry."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pandas as pd

from gog_tlbx.grammar.aes import AestheticMapping, Channel
from gog_tlbx.utils.ordering import level_positions

from .base import Geom, GeomContext, GeomKind


class LineGeom(Geom):
    """Connects observations in x order, one path per ``group``.

    Only the ``group`` channel splits paths. When it is unbound every row belongs to a
    single path, so data holding several series (one per country, say) is drawn as one
    line jumping back and forth between the series: the classic "zig-zag" plot. Map
    ``group`` to the series identifier to get one path per series.
    """

    kind = GeomKind.LINE
    required = frozenset({Channel.X, Channel.Y})
    optional = {Channel.GROUP: None, Channel.COLOR: None, Channel.SIZE: 1.0, Channel.ALPHA: 1.0}

    def compute(
        self,
        frame: pd.DataFrame,
        mapping: AestheticMapping,
        params: Mapping[str, Any],
        ctx: GeomContext,
    ) -> pd.DataFrame:
        marks = self.row_marks(frame, mapping)
        if "group" not in marks:
            marks["group"] = 0

        path_codes, _ = pd.factorize(marks["group"], use_na_sentinel=False)
        if ctx.discrete_x:
            sort_x = pd.Series(level_positions(ctx.x_levels, marks["x"]))
        else:
            sort_x = marks["x"]

        marks = (
            marks.assign(_path=path_codes, _sort_x=sort_x.to_numpy())
            .sort_values(["_path", "_sort_x"], kind="stable", na_position="last")
            .reset_index(drop=True)
        )
        marks["order"] = marks.groupby("_path", sort=False).cumcount()
        return marks.drop(columns=["_path", "_sort_x"])

    def get_description(self) -> str:
        return "Line chart connecting rows in x order, one path per group (unbound group -> a single path)"
