"""Text and label geometries."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pandas as pd

from gog_tlbx.grammar.aes import AestheticMapping, Channel

from .base import Geom, GeomContext, GeomKind


class TextGeom(Geom):
    """One text mark per row at (x, y) showing the ``label`` channel."""

    kind = GeomKind.TEXT
    required = frozenset({Channel.X, Channel.Y, Channel.LABEL})
    optional = {Channel.COLOR: None, Channel.SIZE: 3.5, Channel.ALPHA: 1.0}
    default_params = {"nudge_x": 0.0, "nudge_y": 0.0}
    boxed = False

    def compute(
        self,
        frame: pd.DataFrame,
        mapping: AestheticMapping,
        params: Mapping[str, Any],
        ctx: GeomContext,
    ) -> pd.DataFrame:
        marks = self.row_marks(frame, mapping)
        marks["boxed"] = self.boxed
        if params["nudge_x"]:
            marks["x_offset"] = float(params["nudge_x"])
        if params["nudge_y"]:
            marks["y_offset"] = float(params["nudge_y"])
        return marks

    def get_description(self) -> str:
        return "Text annotations: the label channel drawn at (x, y)"


class LabelGeom(TextGeom):
    """Like :class:`TextGeom` but every label gets a background box with a border."""

    kind = GeomKind.LABEL
    optional = {**TextGeom.optional, Channel.FILL: "white"}
    default_params = {**TextGeom.default_params, "label_padding": 0.25}
    boxed = True

    def compute(
        self,
        frame: pd.DataFrame,
        mapping: AestheticMapping,
        params: Mapping[str, Any],
        ctx: GeomContext,
    ) -> pd.DataFrame:
        marks = super().compute(frame, mapping, params, ctx)
        marks["label_padding"] = float(params["label_padding"])
        return marks

    def get_description(self) -> str:
        return "Text annotations on a filled, bordered background box"
