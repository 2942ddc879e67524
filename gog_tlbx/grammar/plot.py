"""Immutable plot specification builder.

Example:
    >>> from gog_tlbx.grammar import aes, facet_wrap, geom_line, ggplot, labs, theme_bw
    >>> spec = (
    ...     ggplot(gapminder_df, aes(x="year", y="life_exp", group="country"))
    ...     + geom_line(alpha=0.3)
    ...     + facet_wrap("continent")
    ...     + theme_bw()
    ...     + labs("Life expectancy over time", y="Life expectancy [years]")
    ... )
    >>> fig = spec.resolve().plot()

Every ``+`` returns a new :class:`PlotSpec`; the left operand is never modified, so
partially built specs can be shared and extended in different directions.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import pandas as pd

from gog_tlbx.data.base_dataset import BaseDataset
from gog_tlbx.data.views import DatasetView

from .aes import AestheticMapping
from .facets import Facet, FacetNone
from .labels import Labels
from .layers import Layer
from .themes import DEFAULT_THEME, Theme, get_theme


if TYPE_CHECKING:
    from gog_tlbx.analysis.resolver import ResolvedPlot


PlotComponent = Layer | AestheticMapping | Facet | Theme | Labels


@dataclass(frozen=True)
class PlotSpec:
    """A dataset, a plot-level mapping, ordered layers, a facet, a theme and labels.

    Attributes:
        data: Base dataset shared by all layers without a data override.
        mapping: Plot-level mapping inherited by every layer.
        layers: Layers in draw order (first added is drawn first).
        facet: Facet specification (no faceting by default).
        theme: Visual theme.
        labels: Titles and channel label overrides.
    """

    data: DatasetView
    mapping: AestheticMapping = field(default_factory=AestheticMapping)
    layers: tuple[Layer, ...] = ()
    facet: Facet = field(default_factory=FacetNone)
    theme: Theme = DEFAULT_THEME
    labels: Labels = field(default_factory=Labels)

    def __post_init__(self) -> None:
        if not isinstance(self.data, DatasetView):
            raise TypeError(f"PlotSpec data must be a DatasetView, got {type(self.data).__name__}. Use ggplot().")
        object.__setattr__(self, "layers", tuple(self.layers))

    def __add__(self, other: PlotComponent | Iterable[PlotComponent]) -> PlotSpec:
        if isinstance(other, Layer):
            return self.add_layer(other)
        if isinstance(other, AestheticMapping):
            return replace(self, mapping=self.mapping.merge(other))
        if isinstance(other, Facet):
            return self.with_facet(other)
        if isinstance(other, Theme):
            return self.with_theme(other)
        if isinstance(other, Labels):
            return self.with_labels(other)
        if isinstance(other, list | tuple):
            spec = self
            for component in other:
                spec = spec + component
            return spec
        return NotImplemented

    def add_layer(self, layer: Layer) -> PlotSpec:
        """Append a layer; it is drawn on top of the existing ones."""
        return replace(self, layers=(*self.layers, layer))

    def with_facet(self, facet: Facet) -> PlotSpec:
        return replace(self, facet=facet)

    def with_theme(self, theme: Theme | str) -> PlotSpec:
        return replace(self, theme=get_theme(theme) if isinstance(theme, str) else theme)

    def with_labels(self, labels: Labels) -> PlotSpec:
        """Merge label overrides (fields set on ``labels`` win)."""
        return replace(self, labels=self.labels.merge(labels))

    def with_data(self, data: pd.DataFrame | DatasetView) -> PlotSpec:
        return replace(self, data=_as_view(data))

    def resolve(self) -> ResolvedPlot:
        """Resolve the specification into per-panel marks and trained scales."""
        from gog_tlbx.analysis.resolver import resolve

        return resolve(self)

    def plot(self, backend: str = "matplotlib", **kwargs: Any) -> Any:
        """Resolve and draw in one go (see :meth:`ResolvedPlot.plot`)."""
        return self.resolve().plot(backend=backend, **kwargs)

    def __repr__(self) -> str:
        layers = ", ".join(layer.geom.value for layer in self.layers) or "none"
        return (
            f"PlotSpec(rows={self.data.row_count}, mapping={self.mapping!r}, layers=[{layers}], "
            f"facet={type(self.facet).__name__}, theme={self.theme.name!r})"
        )


def _as_view(data: pd.DataFrame | DatasetView | BaseDataset) -> DatasetView:
    if isinstance(data, DatasetView):
        return data
    if isinstance(data, BaseDataset):
        return data.view()
    if isinstance(data, pd.DataFrame):
        return DatasetView.from_frame(data)
    raise TypeError(f"Expected a DataFrame, DatasetView or dataset, got {type(data).__name__}")


def ggplot(
    data: pd.DataFrame | DatasetView | BaseDataset,
    mapping: AestheticMapping | None = None,
    *,
    theme: Theme | str | None = None,
) -> PlotSpec:
    """Start a plot specification.

    Args:
        data: Base dataset (DataFrames are wrapped with inferred column kinds)
        mapping: Plot-level mapping inherited by all layers
        theme: Theme instance or registry name (default: ``gray``)

    Returns:
        PlotSpec without layers
    """
    if theme is None:
        theme = DEFAULT_THEME
    elif isinstance(theme, str):
        theme = get_theme(theme)
    return PlotSpec(data=_as_view(data), mapping=mapping or AestheticMapping(), theme=theme)


__all__ = ["PlotComponent", "PlotSpec", "ggplot"]
