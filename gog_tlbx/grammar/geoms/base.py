"""Base class for geometry kinds."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, ClassVar

import numpy as np
import pandas as pd

from gog_tlbx.exceptions import GrammarError
from gog_tlbx.grammar.aes import AestheticMapping, Channel, ColumnBinding


class GeomKind(StrEnum):
    """Geometry kinds a layer can draw."""

    POINT = "point"
    JITTER = "jitter"
    LINE = "line"
    BAR = "bar"
    """Counted bars: height = number of rows per x."""
    COL = "col"
    """Summarized bars: height = the y value already present in the data."""
    BOXPLOT = "boxplot"
    HISTOGRAM = "histogram"
    TEXT = "text"
    LABEL = "label"


@dataclass(frozen=True)
class GeomContext:
    """Layer-wide information a geometry needs while computing one panel's marks.

    Attributes:
        layer_frame: The layer's whole effective dataset *before* facet filtering, so
            histogram bins, bar widths and jitter amplitudes are identical across panels.
        x_levels: Discrete x levels in display order, or None for a continuous x.
        y_levels: Discrete y levels in display order, or None for a continuous y.
        temporal_x: Whether x is bound to a temporal column.
        rng: Random generator shared by all panels of the layer (jitter only).
        label: Human-readable layer description for error messages.
    """

    layer_frame: pd.DataFrame
    x_levels: tuple[Any, ...] | None = None
    y_levels: tuple[Any, ...] | None = None
    temporal_x: bool = False
    rng: np.random.Generator | None = field(default=None, compare=False)
    label: str = "layer"

    @property
    def discrete_x(self) -> bool:
        return self.x_levels is not None

    @property
    def discrete_y(self) -> bool:
        return self.y_levels is not None


class Geom(ABC):
    """Base class for geometry kinds.

    Subclasses declare the channels they need (``required``), the optional channels
    they understand with their defaults (``optional``) and the parameters they accept
    (``default_params``). :meth:`compute` turns one panel's rows into a marks DataFrame.
    """

    kind: ClassVar[GeomKind]
    required: ClassVar[frozenset[Channel]] = frozenset()
    optional: ClassVar[Mapping[Channel, Any]] = {}
    default_params: ClassVar[Mapping[str, Any]] = {}

    def missing_channels(self, mapping: AestheticMapping) -> list[Channel]:
        """Required channels absent from ``mapping`` (in channel declaration order)."""
        return [ch for ch in Channel if ch in self.required and ch not in mapping]

    def resolve_params(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Merge ``params`` over the defaults, rejecting unknown names."""
        unknown = sorted(set(params) - set(self.default_params))
        if unknown:
            accepted = ", ".join(self.default_params) or "none"
            raise ValueError(f"Unknown parameter(s) {unknown} for geom '{self.kind}'. Accepted: {accepted}")
        return {**self.default_params, **params}

    def row_marks(self, frame: pd.DataFrame, mapping: AestheticMapping) -> pd.DataFrame:
        """One mark per row carrying every mapped channel (constants broadcast)."""
        data: dict[str, Any] = {"row_id": frame.index.to_numpy()}
        for channel, binding in mapping.items():
            if isinstance(binding, ColumnBinding):
                data[str(channel)] = frame[binding.column].to_numpy()
            else:
                data[str(channel)] = [binding.value] * len(frame)
        return pd.DataFrame(data)

    def channel_values(self, frame: pd.DataFrame, mapping: AestheticMapping, channel: Channel) -> pd.Series | None:
        """Per-row values of ``channel`` or None when unbound."""
        binding = mapping.get(channel)
        if binding is None:
            return None
        if isinstance(binding, ColumnBinding):
            return frame[binding.column]
        return pd.Series([binding.value] * len(frame), index=frame.index, dtype=object)

    def group_channels(self, mapping: AestheticMapping) -> list[Channel]:
        """Legend channels bound to a column; they split aggregated marks into groups."""
        return [ch for ch in (Channel.FILL, Channel.COLOR) if mapping.is_column(ch)]

    def constant_channels(self, mapping: AestheticMapping) -> dict[str, Any]:
        return {str(ch): b.value for ch, b in mapping.items() if not isinstance(b, ColumnBinding)}

    def require_numeric_x(self, ctx: GeomContext) -> None:
        if ctx.discrete_x or ctx.temporal_x:
            raise GrammarError(f"Geometry '{self.kind}' needs a continuous numeric x ({ctx.label}).")

    @abstractmethod
    def compute(
        self,
        frame: pd.DataFrame,
        mapping: AestheticMapping,
        params: Mapping[str, Any],
        ctx: GeomContext,
    ) -> pd.DataFrame:
        """Compute the marks for one panel.

        Args:
            frame: Rows of the layer's effective dataset that fall into the panel.
            mapping: Effective (merged, validated) mapping.
            params: Parameters merged over :attr:`default_params`.
            ctx: Layer-wide context.

        Returns:
            Marks DataFrame. Columns ``x``/``y`` hold data values; ``x_offset``/``y_offset``
            (optional) hold displacements in position units added after scale mapping.
        """
        ...

    def extent(self, marks: pd.DataFrame) -> tuple[list[Any], list[Any]]:
        """Position-unit values the x and y scales must cover."""
        xs = marks["x_pos"].tolist() if "x_pos" in marks else []
        ys = marks["y_pos"].tolist() if "y_pos" in marks else []
        return xs, ys

    @abstractmethod
    def get_description(self) -> str:
        """Get a human-readable description of the geometry."""
        ...
