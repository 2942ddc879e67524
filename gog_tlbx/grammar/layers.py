"""Layers: one geometry drawn with a mapping, optional data override and parameters.

The ``geom_*`` constructors follow ggplot2 naming. Keyword arguments that name a
channel (``color="steelblue"``, ``alpha=0.4``) become *constant* bindings on the layer;
all other keyword arguments are geometry parameters (``bins=20``, ``seed=7``).

Example:
    >>> layer = geom_jitter(aes(color="continent"), width=0.2, seed=42, alpha=0.5)
    >>> dict(layer.params)
    {'width': 0.2, 'seed': 42}
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from gog_tlbx.data.views import DatasetView

from .aes import AestheticMapping, Channel, const
from .geoms import Geom, GeomKind, get_geom


LayerData = DatasetView | Callable[[DatasetView], DatasetView]


@dataclass(frozen=True)
class Layer:
    """One geometric layer of a plot.

    Attributes:
        geom: Geometry kind drawn by the layer.
        mapping: Layer-level mapping, merged over the plot mapping (layer wins).
        data: Optional dataset override, or a function deriving the layer's data from
            the plot's base view (e.g. ``lambda v: v.filter("year == 2007")``).
        params: Geometry parameters (validated against the geometry at resolution).
        inherit_aes: When False the plot-level mapping is ignored for this layer.
    """

    geom: GeomKind
    mapping: AestheticMapping | None = None
    data: LayerData | None = None
    params: Mapping[str, Any] = field(default_factory=dict)
    inherit_aes: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "geom", GeomKind(self.geom))
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    @property
    def geometry(self) -> Geom:
        return get_geom(self.geom)

    def effective_data(self, base: DatasetView) -> DatasetView:
        """Dataset the layer draws from."""
        if self.data is None:
            return base
        if isinstance(self.data, DatasetView):
            return self.data
        view = self.data(base)
        if not isinstance(view, DatasetView):
            raise TypeError(f"Layer data function must return a DatasetView, got {type(view).__name__}")
        return view

    def effective_mapping(self, plot_mapping: AestheticMapping | None) -> AestheticMapping:
        """Plot mapping merged with the layer mapping (layer wins per channel)."""
        base = plot_mapping if (self.inherit_aes and plot_mapping is not None) else AestheticMapping()
        return base.merge(self.mapping)

    def with_params(self, **params: Any) -> Layer:
        return replace(self, params={**self.params, **params})

    def __repr__(self) -> str:
        parts = [f"geom={self.geom.value!r}"]
        if self.mapping is not None:
            parts.append(f"mapping={self.mapping!r}")
        if self.data is not None:
            parts.append("data=<override>")
        if self.params:
            parts.append(f"params={dict(self.params)!r}")
        if not self.inherit_aes:
            parts.append("inherit_aes=False")
        return f"Layer({', '.join(parts)})"


def _channel_name(name: str) -> Channel | None:
    try:
        return Channel.parse(name)
    except ValueError:
        return None


def layer(
    geom: GeomKind | str,
    mapping: AestheticMapping | None = None,
    *,
    data: LayerData | None = None,
    inherit_aes: bool = True,
    **kwargs: Any,
) -> Layer:
    """Build a :class:`Layer`, splitting ``kwargs`` into constant channels and parameters."""
    constants: dict[Channel, Any] = {}
    params: dict[str, Any] = {}
    for name, value in kwargs.items():
        channel = _channel_name(name)
        if channel is not None:
            constants[channel] = const(value)
        else:
            params[name] = value

    if constants:
        mapping = (mapping or AestheticMapping()).merge(AestheticMapping(constants))
    return Layer(geom=GeomKind(geom), mapping=mapping, data=data, params=params, inherit_aes=inherit_aes)


def geom_point(mapping: AestheticMapping | None = None, **kwargs: Any) -> Layer:
    """Scatter plot layer."""
    return layer(GeomKind.POINT, mapping, **kwargs)


def geom_jitter(mapping: AestheticMapping | None = None, **kwargs: Any) -> Layer:
    """Jittered points; params ``width`` (0.4), ``height`` (0.0), ``seed`` (None)."""
    return layer(GeomKind.JITTER, mapping, **kwargs)


def geom_line(mapping: AestheticMapping | None = None, **kwargs: Any) -> Layer:
    """Line layer; map ``group`` to draw one path per series."""
    return layer(GeomKind.LINE, mapping, **kwargs)


def geom_bar(mapping: AestheticMapping | None = None, **kwargs: Any) -> Layer:
    """Counted bars; params ``width`` (0.9), ``position`` (stack/dodge/identity)."""
    return layer(GeomKind.BAR, mapping, **kwargs)


def geom_col(mapping: AestheticMapping | None = None, **kwargs: Any) -> Layer:
    """Summarized bars; param ``agg`` combines several rows per bar."""
    return layer(GeomKind.COL, mapping, **kwargs)


def geom_boxplot(mapping: AestheticMapping | None = None, **kwargs: Any) -> Layer:
    """Box plot; param ``coef`` (1.5) scales the IQR fences."""
    return layer(GeomKind.BOXPLOT, mapping, **kwargs)


def geom_histogram(mapping: AestheticMapping | None = None, **kwargs: Any) -> Layer:
    """Histogram; params ``bins`` (30), ``binwidth``, ``boundary``, ``position``."""
    return layer(GeomKind.HISTOGRAM, mapping, **kwargs)


def geom_text(mapping: AestheticMapping | None = None, **kwargs: Any) -> Layer:
    return layer(GeomKind.TEXT, mapping, **kwargs)


def geom_label(mapping: AestheticMapping | None = None, **kwargs: Any) -> Layer:
    return layer(GeomKind.LABEL, mapping, **kwargs)


__all__ = [
    "Layer",
    "LayerData",
    "geom_bar",
    "geom_boxplot",
    "geom_col",
    "geom_histogram",
    "geom_jitter",
    "geom_label",
    "geom_line",
    "geom_point",
    "geom_text",
    "layer",
]
