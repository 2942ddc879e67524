"""Point and jittered-point geometries."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import numpy as np
import pandas as pd

from gog_tlbx.analysis.binning import resolution
from gog_tlbx.exceptions import GrammarError
from gog_tlbx.grammar.aes import AestheticMapping, Channel

from .base import Geom, GeomContext, GeomKind


class PointGeom(Geom):
    """Scatter plot: one mark per row at (x, y)."""

    kind = GeomKind.POINT
    required = frozenset({Channel.X, Channel.Y})
    optional = {Channel.COLOR: None, Channel.FILL: None, Channel.SHAPE: "o", Channel.SIZE: 1.5, Channel.ALPHA: 1.0}

    def compute(
        self,
        frame: pd.DataFrame,
        mapping: AestheticMapping,
        params: Mapping[str, Any],
        ctx: GeomContext,
    ) -> pd.DataFrame:
        return self.row_marks(frame, mapping)

    def get_description(self) -> str:
        return "Scatter plot with one point per row, colour/shape/size/alpha may vary per row"


class JitterGeom(PointGeom):
    """Points with bounded random displacement to reduce overplotting on discrete axes.

    ``width``/``height`` are fractions of the axis resolution (1 on a discrete axis, the
    smallest gap between distinct values on a continuous one); displacements are drawn
    uniformly from ``[-width, width]`` and ``[-height, height]``. With an explicit ``seed``
    the displacements are reproducible bit for bit; with ``seed=None`` every resolution
    draws fresh entropy.
    """

    kind = GeomKind.JITTER
    default_params = {"width": 0.4, "height": 0.0, "seed": None}

    def compute(
        self,
        frame: pd.DataFrame,
        mapping: AestheticMapping,
        params: Mapping[str, Any],
        ctx: GeomContext,
    ) -> pd.DataFrame:
        marks = self.row_marks(frame, mapping)
        width, height = float(params["width"]), float(params["height"])
        if width < 0 or height < 0:
            raise ValueError(f"Jitter width/height must be non-negative, got width={width}, height={height}")

        rng = ctx.rng if ctx.rng is not None else np.random.default_rng(params["seed"])
        n = len(marks)
        if width:
            if ctx.temporal_x:
                raise GrammarError(f"Cannot jitter a temporal x axis ({ctx.label}).")
            unit = 1.0 if ctx.discrete_x else self._axis_resolution(ctx, mapping, Channel.X)
            marks["x_offset"] = rng.uniform(-width, width, n) * unit
        if height:
            unit = 1.0 if ctx.discrete_y else self._axis_resolution(ctx, mapping, Channel.Y)
            marks["y_offset"] = rng.uniform(-height, height, n) * unit
        return marks

    def _axis_resolution(self, ctx: GeomContext, mapping: AestheticMapping, channel: Channel) -> float:
        values = self.channel_values(ctx.layer_frame, mapping, channel)
        return resolution(values) if values is not None else 1.0

    def get_description(self) -> str:
        return "Points with seeded random displacement along a (usually categorical) axis to reduce overplotting"
