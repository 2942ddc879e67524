"""Resolve a plot specification into per-panel marks and trained scales.

The resolver is the only place where data meets the grammar. For every layer it

1. determines the effective dataset (override, function of the base view, or the base
   view) and the effective mapping (plot mapping merged with the layer mapping),
2. validates required channels, then referenced columns (fail fast, nothing mutated),
3. trains discrete axis levels and legend scales over *all* layers before faceting,
4. splits every layer's dataset into the facet panels and lets the geometry compute
   its marks per panel,
5. maps marks to positions and visual values and trains the axis limits (shared, or
   per panel when the facet frees them).

The output is a :class:`ResolvedPlot`, a renderer-independent description that the
drawing functions in :mod:`gog_tlbx.plotting` translate into figures.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd

from gog_tlbx.data.base_columns import ColumnKind
from gog_tlbx.data.views import DatasetView
from gog_tlbx.exceptions import EmptyPartitionWarning, EmptyPlotError, GrammarError, MissingRequiredChannelError
from gog_tlbx.grammar.aes import LEGEND_CHANNELS, AestheticMapping, Channel, ColumnBinding
from gog_tlbx.grammar.facets import Facet, PanelKey
from gog_tlbx.grammar.geoms import Geom, GeomContext, GeomKind
from gog_tlbx.grammar.labels import Labels
from gog_tlbx.grammar.layers import Layer
from gog_tlbx.grammar.themes import Theme
from gog_tlbx.utils.ordering import sort_levels

from .base_analyser import BaseAnalyser
from .scales import LegendScale, PositionScale, ScaleKind, ScaleSet, continuous_legend, discrete_legend, train_limits


if TYPE_CHECKING:
    from gog_tlbx.grammar.plot import PlotSpec

logger = logging.getLogger(__name__)

COMPUTED_Y: Mapping[GeomKind, str] = {GeomKind.BAR: "count", GeomKind.HISTOGRAM: "count"}
"""Geometries whose y values are computed rather than mapped, with the default y title."""


def visual_column(channel: Channel | str) -> str:
    """Marks column holding the visual value (hex colour, marker, size, alpha) of ``channel``."""
    return f"{Channel.parse(channel)}_value"


@dataclass(frozen=True)
class ResolvedLayer:
    """Marks of one layer within one panel.

    Attributes:
        index: Position of the layer in the plot (draw order).
        geom: Geometry kind.
        mapping: Effective mapping after the merge.
        params: Geometry parameters merged over the defaults.
        marks: One row per mark. ``x``/``y`` hold data values, ``x_pos``/``y_pos`` hold
            position units, ``<channel>_value`` columns hold visual values.
        is_empty: True when the layer had no rows in this panel.
        repeated: True when the layer's dataset lacks the facet variables and is drawn
            unchanged in every panel.
    """

    index: int
    geom: GeomKind
    mapping: AestheticMapping
    params: Mapping[str, Any]
    marks: pd.DataFrame
    is_empty: bool = False
    repeated: bool = False

    def paths(self) -> list[pd.DataFrame]:
        """One frame per connected path of a line layer, each in drawing order."""
        if self.geom != GeomKind.LINE:
            raise ValueError(f"paths() is only defined for line layers, not '{self.geom}'")
        if self.marks.empty:
            return []
        return [path.reset_index(drop=True) for _, path in self.marks.groupby("group", sort=False, dropna=False)]


@dataclass(frozen=True)
class ResolvedPanel:
    """One facet panel.

    Attributes:
        key: Facet key (empty tuple without faceting).
        label: Strip label.
        row_ids: Row identities of the base dataset that fall into the panel.
        layers: Resolved layers in draw order.
        x_scale: x scale with the limits used by this panel.
        y_scale: y scale with the limits used by this panel.
        is_empty: True when no base row falls into the panel.
        position: (row, column) in the figure layout.
    """

    key: PanelKey
    label: str
    row_ids: pd.Index
    layers: tuple[ResolvedLayer, ...]
    x_scale: PositionScale
    y_scale: PositionScale
    is_empty: bool = False
    position: tuple[int, int] = (0, 0)


@dataclass(frozen=True)
class ResolvedPlot:
    """Renderer-independent description of a plot."""

    panels: tuple[ResolvedPanel, ...]
    scales: ScaleSet
    theme: Theme
    labels: Labels
    facet: Facet

    @property
    def nrow(self) -> int:
        return max((p.position[0] for p in self.panels), default=0) + 1

    @property
    def ncol(self) -> int:
        return max((p.position[1] for p in self.panels), default=0) + 1

    def panel(self, *key: Any) -> ResolvedPanel:
        """Look up a panel by its facet key."""
        for panel in self.panels:
            if panel.key == tuple(key):
                return panel
        raise KeyError(f"No panel with key {key!r}. Available: {[p.key for p in self.panels]}")

    def plot(self, backend: str = "matplotlib", **kwargs: Any) -> Any:
        """Draw the plot with matplotlib (default) or plotly."""
        if backend == "matplotlib":
            from gog_tlbx.plotting.grammar_plots import plot_resolved

            return plot_resolved(self, **kwargs)
        if backend == "plotly":
            from gog_tlbx.plotting.plotly_plots import plot_resolved_plotly

            return plot_resolved_plotly(self, **kwargs)
        raise ValueError(f"Invalid backend='{backend}'. Use 'matplotlib' or 'plotly'.")


@dataclass(frozen=True)
class _PreparedLayer:
    index: int
    layer: Layer
    geom: Geom
    view: DatasetView
    mapping: AestheticMapping
    params: Mapping[str, Any] = field(default_factory=dict)

    @property
    def label(self) -> str:
        return f"layer {self.index} ({self.geom.kind})"


def _scale_kind(kind: ColumnKind) -> ScaleKind:
    if kind.is_discrete:
        return ScaleKind.DISCRETE
    return ScaleKind.TEMPORAL if kind == ColumnKind.TEMPORAL else ScaleKind.CONTINUOUS


def _concat(series: list[pd.Series]) -> pd.Series:
    if len(series) == 1:
        return series[0]
    return pd.concat(series, ignore_index=True)


class PlotResolver(BaseAnalyser):
    """Turns a :class:`~gog_tlbx.grammar.plot.PlotSpec` into a :class:`ResolvedPlot`.

    Example:
        >>> resolved = PlotResolver(spec).fit().result()
        >>> [panel.label for panel in resolved.panels]
        ['Africa', 'Americas', 'Asia', 'Europe', 'Oceania']
    """

    def __init__(self, spec: PlotSpec) -> None:
        self.spec = spec
        self._result: ResolvedPlot | None = None

    def fit(self) -> PlotResolver:
        spec = self.spec
        if not spec.layers:
            raise EmptyPlotError

        prepared = [self._prepare(i, layer) for i, layer in enumerate(spec.layers)]

        x_kind, x_levels = self._train_position(Channel.X, prepared)
        y_kind, y_levels = self._train_position(Channel.Y, prepared)
        x_scale = PositionScale(Channel.X, x_kind, x_levels, title=self._axis_title(Channel.X, prepared))
        y_scale = PositionScale(Channel.Y, y_kind, y_levels, title=self._axis_title(Channel.Y, prepared))
        legends = self._train_legends(prepared)
        logger.debug("Trained scales: x=%s, y=%s, legends=%s", x_kind, y_kind, [str(ch) for ch in legends])

        facet = spec.facet
        keys = facet.panel_keys(spec.data)
        positions = facet.panel_positions(keys)
        if not keys:
            warnings.warn("Facet produced no panels: the plot data has no rows.", EmptyPartitionWarning, stacklevel=3)
            logger.info("Facet produced no panels for an empty dataset")

        rngs = {p.index: np.random.default_rng(p.params.get("seed")) for p in prepared}
        contexts = {
            p.index: GeomContext(
                layer_frame=p.view.df,
                x_levels=x_levels,
                y_levels=y_levels,
                temporal_x=x_kind == ScaleKind.TEMPORAL,
                rng=rngs[p.index],
                label=p.label,
            )
            for p in prepared
        }

        panels: list[ResolvedPanel] = []
        extents: list[tuple[list[Any], list[Any]]] = []
        for key, position in zip(keys, positions, strict=True):
            base_part = facet.subset(spec.data, key)
            label = facet.panel_label(key)
            panel_empty = base_part.row_count == 0
            if panel_empty:
                where = f"Facet panel '{label}'" if key else "Plot data"
                warnings.warn(f"{where} has no rows.", EmptyPartitionWarning, stacklevel=3)
                logger.info("Empty partition: %s has no rows", where)

            layers: list[ResolvedLayer] = []
            xs: list[Any] = []
            ys: list[Any] = []
            for p in prepared:
                sub = facet.subset(p.view, key)
                repeated = sub is None and bool(key)
                frame = p.view.df if sub is None else sub.df
                layer_empty = frame.empty
                if layer_empty and not panel_empty:
                    warnings.warn(
                        f"{p.label} has no rows in panel '{label or 'all'}'.",
                        EmptyPartitionWarning,
                        stacklevel=3,
                    )
                    logger.info("Empty partition: %s in panel '%s'", p.label, label)

                marks = p.geom.compute(frame, p.mapping, p.params, contexts[p.index])
                marks = self._with_positions(marks, x_scale, y_scale)
                marks = self._with_visuals(marks, p.geom, p.mapping, legends)
                layer_xs, layer_ys = p.geom.extent(marks)
                xs.extend(layer_xs)
                ys.extend(layer_ys)
                logger.debug("%s, panel '%s': %d row(s) -> %d mark(s)", p.label, label, len(frame), len(marks))
                layers.append(
                    ResolvedLayer(
                        index=p.index,
                        geom=p.geom.kind,
                        mapping=p.mapping,
                        params=p.params,
                        marks=marks,
                        is_empty=layer_empty,
                        repeated=repeated,
                    ),
                )

            extents.append((xs, ys))
            panels.append(
                ResolvedPanel(
                    key=key,
                    label=label,
                    row_ids=base_part.row_ids,
                    layers=tuple(layers),
                    x_scale=x_scale,
                    y_scale=y_scale,
                    is_empty=panel_empty,
                    position=position,
                ),
            )

        x_limits = train_limits([v for xs, _ in extents for v in xs])
        y_limits = train_limits([v for _, ys in extents for v in ys])
        panels = [
            replace(
                panel,
                x_scale=replace(x_scale, limits=train_limits(xs) if facet.scales.free_x else x_limits),
                y_scale=replace(y_scale, limits=train_limits(ys) if facet.scales.free_y else y_limits),
            )
            for panel, (xs, ys) in zip(panels, extents, strict=True)
        ]

        channel_titles = {Channel.X: x_scale.title, Channel.Y: y_scale.title}
        channel_titles.update({ch: legend.title for ch, legend in legends.items()})
        self._result = ResolvedPlot(
            panels=tuple(panels),
            scales=ScaleSet(
                x=replace(x_scale, limits=x_limits),
                y=replace(y_scale, limits=y_limits),
                legends=legends,
            ),
            theme=spec.theme,
            labels=replace(spec.labels, channels=channel_titles),
            facet=facet,
        )
        logger.info(
            "Resolved plot: %d layer(s), %d panel(s), %d empty",
            len(prepared),
            len(panels),
            sum(p.is_empty for p in panels),
        )
        return self

    def result(self) -> ResolvedPlot:
        """Return the resolved plot.

        Raises:
            ValueError: If fit() has not been called yet.
        """
        if self._result is None:
            raise ValueError("Must call fit() before result()")
        return self._result

    # ------------------------------------------------------------------ validation
    def _prepare(self, index: int, layer: Layer) -> _PreparedLayer:
        geom = layer.geometry
        view = layer.effective_data(self.spec.data)
        mapping = layer.effective_mapping(self.spec.mapping)
        prepared = _PreparedLayer(index=index, layer=layer, geom=geom, view=view, mapping=mapping)

        missing = geom.missing_channels(mapping)
        if missing:
            raise MissingRequiredChannelError(str(missing[0]), str(geom.kind), prepared.label)
        view.require(mapping.columns(), context=prepared.label)
        params = geom.resolve_params(layer.params)
        logger.debug("%s: %d row(s), mapping %r, params %s", prepared.label, view.row_count, mapping, params)
        return replace(prepared, params=params)

    # ------------------------------------------------------------------ scale training
    def _train_position(
        self,
        channel: Channel,
        prepared: list[_PreparedLayer],
    ) -> tuple[ScaleKind, tuple[Any, ...] | None]:
        """Scale kind and (for discrete axes) levels across every layer's pre-facet data."""
        kinds: dict[ScaleKind, str] = {}
        values: list[pd.Series] = []
        for p in prepared:
            if channel == Channel.Y and p.geom.kind in COMPUTED_Y:
                continue
            binding = p.mapping.get(channel)
            if binding is None:
                continue
            if isinstance(binding, ColumnBinding):
                kind = _scale_kind(p.view.kind_of(binding.column))
                series = p.view.df[binding.column]
            else:
                discrete = isinstance(binding.value, str | bool)
                kind = ScaleKind.DISCRETE if discrete else ScaleKind.CONTINUOUS
                series = pd.Series([binding.value] * p.view.row_count, dtype=object)
            kinds.setdefault(kind, p.label)
            values.append(series)

        if len(kinds) > 1:
            described = ", ".join(f"{kind} ({label})" for kind, label in kinds.items())
            raise GrammarError(f"Layers disagree on the {channel} scale: {described}.")
        kind = next(iter(kinds), ScaleKind.CONTINUOUS)
        if kind != ScaleKind.DISCRETE:
            return kind, None
        return kind, tuple(sort_levels(_concat(values)))

    def _axis_title(self, channel: Channel, prepared: list[_PreparedLayer]) -> str:
        override = self.spec.labels.for_channel(channel)
        if override is not None:
            return override
        computed = None
        for p in prepared:
            if channel == Channel.Y and p.geom.kind in COMPUTED_Y:
                computed = computed or COMPUTED_Y[p.geom.kind]
                continue
            column = p.mapping.column_of(channel)
            if column is not None:
                return p.view.pretty_name(column)
        return computed or str(channel)

    def _train_legends(self, prepared: list[_PreparedLayer]) -> dict[Channel, LegendScale]:
        """One global scale per column-bound legend channel, shared by all panels."""
        legends: dict[Channel, LegendScale] = {}
        for channel in LEGEND_CHANNELS:
            bound = [(p, p.mapping.column_of(channel)) for p in prepared if p.mapping.is_column(channel)]
            if not bound:
                continue
            discrete = {p.view.kind_of(column) != ColumnKind.CONTINUOUS for p, column in bound}
            if len(discrete) > 1:
                raise GrammarError(f"Layers map both discrete and continuous columns to '{channel}'.")

            first, column = bound[0]
            title = self.spec.labels.for_channel(channel) or first.view.pretty_name(column)
            values = _concat([p.view.df[col] for p, col in bound])
            if discrete.pop():
                levels = sort_levels(values)
                n_colors = sum(level is not None for level in levels)
                colors = self.spec.theme.colors(n_colors) if channel in (Channel.COLOR, Channel.FILL) else []
                legends[channel] = discrete_legend(channel, column, title, levels, colors)
            else:
                legends[channel] = continuous_legend(channel, column, title, values, self.spec.theme.continuous_cmap)
        return legends

    # ------------------------------------------------------------------ mark mapping
    def _with_positions(self, marks: pd.DataFrame, x_scale: PositionScale, y_scale: PositionScale) -> pd.DataFrame:
        marks = marks.copy()
        for scale, column, offset in ((x_scale, "x", "x_offset"), (y_scale, "y", "y_offset")):
            if column not in marks:
                continue
            pos = pd.Series(scale.map(marks[column]), index=marks.index)
            if offset in marks:
                if scale.kind == ScaleKind.TEMPORAL:
                    pos = pos + pd.to_timedelta(marks[offset], unit="D")
                else:
                    pos = pos + marks[offset]
            marks[f"{column}_pos"] = pos
        return marks

    def _with_visuals(
        self,
        marks: pd.DataFrame,
        geom: Geom,
        mapping: AestheticMapping,
        legends: Mapping[Channel, LegendScale],
    ) -> pd.DataFrame:
        """Add visual value columns; values the legend cannot map fall back to the geometry default."""
        for channel in LEGEND_CHANNELS:
            if str(channel) not in marks:
                continue
            legend = legends.get(channel) if mapping.is_column(channel) else None
            values = marks[str(channel)]
            if legend is None:
                marks[visual_column(channel)] = values
                continue
            default = geom.optional.get(channel)
            marks[visual_column(channel)] = [default if v is None else v for v in legend.map(values)]
        return marks


def resolve(spec: PlotSpec) -> ResolvedPlot:
    """Resolve ``spec`` (shortcut for ``PlotResolver(spec).fit().result()``)."""
    return PlotResolver(spec).fit().result()


__all__ = [
    "COMPUTED_Y",
    "PlotResolver",
    "ResolvedLayer",
    "ResolvedPanel",
    "ResolvedPlot",
    "resolve",
    "visual_column",
]
