"""Histogram geometry."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import numpy as np
import pandas as pd

from gog_tlbx.analysis.binning import bin_counts, histogram_edges
from gog_tlbx.grammar.aes import AestheticMapping, Channel
from gog_tlbx.utils.ordering import level_positions, sort_levels

from .bar import _BarLike, position_bars
from .base import GeomContext, GeomKind


class HistogramGeom(_BarLike):
    """Bins a continuous x and counts rows per bin.

    Bin edges come from the layer's whole dataset (not the panel subset), so faceted
    histograms share their bins. ``binwidth`` (aligned on ``boundary``) wins over ``bins``;
    without either, 30 bins span the data range.
    """

    kind = GeomKind.HISTOGRAM
    required = frozenset({Channel.X})
    optional = {Channel.FILL: None, Channel.COLOR: None, Channel.ALPHA: 1.0}
    default_params = {"bins": None, "binwidth": None, "boundary": None, "position": "stack"}

    def compute(
        self,
        frame: pd.DataFrame,
        mapping: AestheticMapping,
        params: Mapping[str, Any],
        ctx: GeomContext,
    ) -> pd.DataFrame:
        self.require_numeric_x(ctx)
        layer_x = self.channel_values(ctx.layer_frame, mapping, Channel.X)
        edges = histogram_edges(
            layer_x if layer_x is not None else [],
            bins=params["bins"],
            binwidth=params["binwidth"],
            boundary=params["boundary"],
        )

        group_keys = [str(ch) for ch in self.group_channels(mapping)]
        rows = self.row_marks(frame, mapping)
        if group_keys and not rows.empty:
            group_frame = rows[group_keys]
            parts = []
            for key, part in rows.groupby(group_keys, sort=False, dropna=False, observed=True):
                key = key if isinstance(key, tuple) else (key,)
                parts.append((dict(zip(group_keys, key, strict=True)), part["x"]))
            level_order = {k: sort_levels(group_frame[k]) for k in group_keys}
            parts.sort(key=lambda p: tuple(level_positions(level_order[k], [p[0][k]])[0] for k in group_keys))
        else:
            parts = [({}, rows["x"])]

        frames = []
        for labels, values in parts:
            counts = bin_counts(values, edges)
            frames.append(
                pd.DataFrame(
                    {
                        "xmin": edges[:-1],
                        "xmax": edges[1:],
                        "x": (edges[:-1] + edges[1:]) / 2,
                        "count": counts.astype(int),
                        **{k: [v] * len(counts) for k, v in labels.items()},
                    },
                ),
            )
        bins = pd.concat(frames, ignore_index=True)
        bins["y"] = bins["count"]
        bins = bins.sort_values("x", kind="stable").reset_index(drop=True)
        for name, value in self.constant_channels(mapping).items():
            if name not in bins:
                bins[name] = [value] * len(bins)
        return position_bars(bins, params["position"], float(np.diff(edges).min()))

    def get_description(self) -> str:
        return "Histogram counting rows per fixed-width (binwidth) or fixed-count (bins, default 30) bin"

