"""Position and legend scales trained by the resolver.

Position scales map data values to position units (discrete levels to ``0..k-1``,
continuous values to themselves). Legend scales map data values to visual values
(hex colours, marker codes, sizes, alphas) and are always shared by every panel.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import matplotlib as mpl
import numpy as np
import pandas as pd
from matplotlib.colors import to_hex

from gog_tlbx.exceptions import GrammarError
from gog_tlbx.grammar.aes import Channel
from gog_tlbx.utils.ordering import is_missing, level_positions


NA_COLOR = "#7F7F7F"
SHAPES: tuple[str, ...] = ("o", "^", "s", "D", "v", "P", "X", "*", "h", "<", ">", "p")
SIZE_RANGE: tuple[float, float] = (1.5, 6.0)
ALPHA_RANGE: tuple[float, float] = (0.1, 1.0)
EXPAND_CONTINUOUS = 0.05
EXPAND_DISCRETE = 0.6


class ScaleKind(StrEnum):
    DISCRETE = "discrete"
    CONTINUOUS = "continuous"
    TEMPORAL = "temporal"


def _level_label(level: Any) -> str:
    return "NA" if level is None else str(level)


@dataclass(frozen=True)
class PositionScale:
    """x or y axis scale.

    Attributes:
        channel: ``x`` or ``y``.
        kind: Discrete, continuous or temporal.
        levels: Discrete levels in axis order (None otherwise).
        limits: Unexpanded (min, max) in position units covering every mark, or None when
            nothing was drawn.
        title: Axis title.
    """

    channel: Channel
    kind: ScaleKind = ScaleKind.CONTINUOUS
    levels: tuple[Any, ...] | None = None
    limits: tuple[Any, Any] | None = None
    title: str = ""

    @property
    def is_discrete(self) -> bool:
        return self.kind == ScaleKind.DISCRETE

    def map(self, values: Iterable[Any]) -> np.ndarray | pd.Series:
        """Position units of ``values`` (level index on a discrete scale)."""
        if self.is_discrete:
            return level_positions(self.levels or (), values)
        if self.kind == ScaleKind.TEMPORAL:
            return pd.Series(pd.to_datetime(pd.Series(list(values)))).to_numpy()
        return pd.to_numeric(pd.Series(list(values)), errors="coerce").to_numpy(dtype=float)

    @property
    def breaks(self) -> list[float]:
        """Tick positions of a discrete scale."""
        return list(range(len(self.levels or ())))

    @property
    def break_labels(self) -> list[str]:
        return [_level_label(level) for level in self.levels or ()]

    def expanded_limits(self) -> tuple[Any, Any] | None:
        """Display limits: 5% padding on continuous scales, 0.6 units around discrete levels."""
        if self.is_discrete:
            lo, hi = -EXPAND_DISCRETE, len(self.levels or ()) - 1 + EXPAND_DISCRETE
            if self.limits is not None:
                lo, hi = min(lo, self.limits[0] - 0.1), max(hi, self.limits[1] + 0.1)
            return lo, hi
        if self.limits is None:
            return None
        lo, hi = self.limits
        span = hi - lo
        if not span:
            span = pd.Timedelta(days=1) if self.kind == ScaleKind.TEMPORAL else (abs(lo) or 1.0)
        return lo - span * EXPAND_CONTINUOUS, hi + span * EXPAND_CONTINUOUS


def train_limits(values: Sequence[Any]) -> tuple[Any, Any] | None:
    """(min, max) of the non-missing values, None when there is none."""
    present = [v for v in values if not is_missing(v)]
    if not present:
        return None
    series = pd.Series(present)
    return series.min(), series.max()


@dataclass(frozen=True)
class LegendScale:
    """Mapping from data values to visual values for one legend channel.

    Attributes:
        channel: colour, fill, shape, size or alpha.
        column: Column the channel is bound to (first layer binding it).
        title: Legend title.
        kind: Discrete (one key per level) or continuous (colour bar / range).
        levels: Discrete levels in legend order.
        values: Visual value per discrete level.
        limits: (min, max) of a continuous scale.
        palette: Colormap name of a continuous colour scale.
        output_range: Visual range of a continuous size/alpha scale.
    """

    channel: Channel
    column: str
    title: str
    kind: ScaleKind
    levels: tuple[Any, ...] | None = None
    values: tuple[Any, ...] | None = None
    limits: tuple[float, float] | None = None
    palette: str | None = None
    output_range: tuple[float, float] | None = None

    @property
    def is_discrete(self) -> bool:
        return self.kind == ScaleKind.DISCRETE

    def map(self, data: Iterable[Any]) -> list[Any]:
        """Visual values for ``data``."""
        data = list(data)
        if self.is_discrete:
            positions = level_positions(self.levels or (), data)
            fallback = NA_COLOR if self.channel in (Channel.COLOR, Channel.FILL) else None
            return [fallback if np.isnan(p) else self.values[int(p)] for p in positions]

        numeric = pd.to_numeric(pd.Series(data, dtype=object), errors="coerce").to_numpy(dtype=float)
        lo, hi = self.limits if self.limits is not None else (0.0, 1.0)
        scaled = (numeric - lo) / (hi - lo) if hi > lo else np.full(len(numeric), 0.5)
        if self.channel in (Channel.COLOR, Channel.FILL):
            cmap = mpl.colormaps[self.palette or "viridis"]
            return [NA_COLOR if np.isnan(s) else to_hex(cmap(float(s))) for s in scaled]
        low, high = self.output_range or (0.0, 1.0)
        return [None if np.isnan(s) else float(low + s * (high - low)) for s in scaled]

    def legend_entries(self) -> list[tuple[str, Any]]:
        """(label, visual value) pairs for a discrete legend; endpoints for a continuous one."""
        if self.is_discrete:
            return [(_level_label(level), value) for level, value in zip(self.levels or (), self.values or (), strict=True)]
        lo, hi = self.limits if self.limits is not None else (0.0, 1.0)
        ticks = np.linspace(lo, hi, 5)
        return list(zip((f"{t:g}" for t in ticks), self.map(ticks), strict=True))


def discrete_legend(
    channel: Channel,
    column: str,
    title: str,
    levels: Sequence[Any],
    colors: Sequence[str],
) -> LegendScale:
    """Discrete legend; ``colors`` are used for colour/fill (one per non-missing level)."""
    present = [level for level in levels if level is not None]
    n = len(present)
    if channel in (Channel.COLOR, Channel.FILL):
        visuals: list[Any] = list(colors[:n])
    elif channel == Channel.SHAPE:
        visuals = [SHAPES[i % len(SHAPES)] for i in range(n)]
    elif channel == Channel.SIZE:
        visuals = np.linspace(*SIZE_RANGE, n).tolist() if n > 1 else [SIZE_RANGE[1] / 2] * n
    elif channel == Channel.ALPHA:
        visuals = np.linspace(*ALPHA_RANGE, n).tolist() if n > 1 else [ALPHA_RANGE[1]] * n
    else:
        raise GrammarError(f"Channel '{channel}' has no legend.")
    if len(present) < len(levels):
        visuals.append(NA_COLOR if channel in (Channel.COLOR, Channel.FILL) else visuals[-1] if visuals else None)
    return LegendScale(
        channel=channel,
        column=column,
        title=title,
        kind=ScaleKind.DISCRETE,
        levels=tuple(levels),
        values=tuple(visuals),
    )


def continuous_legend(channel: Channel, column: str, title: str, values: Sequence[Any], cmap: str) -> LegendScale:
    if channel == Channel.SHAPE:
        raise GrammarError(f"A continuous column ('{column}') cannot be mapped to shape.")
    numeric = pd.to_numeric(pd.Series(list(values), dtype=object), errors="coerce").dropna()
    limits = (float(numeric.min()), float(numeric.max())) if not numeric.empty else None
    return LegendScale(
        channel=channel,
        column=column,
        title=title,
        kind=ScaleKind.CONTINUOUS,
        limits=limits,
        palette=cmap if channel in (Channel.COLOR, Channel.FILL) else None,
        output_range=SIZE_RANGE if channel == Channel.SIZE else ALPHA_RANGE if channel == Channel.ALPHA else None,
    )


@dataclass(frozen=True)
class ScaleSet:
    """Global scales of a resolved plot (panels may carry their own position limits)."""

    x: PositionScale
    y: PositionScale
    legends: Mapping[Channel, LegendScale] = field(default_factory=dict)

    def legend(self, channel: Channel | str) -> LegendScale | None:
        return self.legends.get(Channel.parse(channel))


__all__ = [
    "ALPHA_RANGE",
    "NA_COLOR",
    "SHAPES",
    "SIZE_RANGE",
    "LegendScale",
    "PositionScale",
    "ScaleKind",
    "ScaleSet",
    "continuous_legend",
    "discrete_legend",
    "train_limits",
]
