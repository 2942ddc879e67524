"""Interactive rendering of resolved plots with Plotly."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import plotly.graph_objects as go
from plotly.basedatatypes import BaseTraceType
from plotly.subplots import make_subplots

from gog_tlbx.analysis.resolver import ResolvedLayer, ResolvedPlot, visual_column
from gog_tlbx.analysis.scales import PositionScale, ScaleKind
from gog_tlbx.grammar.aes import Channel
from gog_tlbx.grammar.geoms import GeomKind, get_geom

from .grammar_plots import BAR_FILL, INK, PT


def _values(layer: ResolvedLayer, channel: Channel, default: Any) -> list[Any]:
    column = visual_column(channel)
    if column in layer.marks:
        return layer.marks[column].tolist()
    fallback = get_geom(layer.geom).optional.get(channel)
    return [default if fallback is None else fallback] * len(layer.marks)


def _hover(layer: ResolvedLayer) -> list[str] | None:
    cols = [c for c in ("x", "y", "label", "color", "fill", "group") if c in layer.marks]
    if not cols:
        return None
    return ["<br>".join(f"{c}: {row[c]}" for c in cols) for _, row in layer.marks.iterrows()]


_PLOTLY_MARKERS = {
    "o": "circle",
    "^": "triangle-up",
    "s": "square",
    "D": "diamond",
    "v": "triangle-down",
    "P": "cross",
    "X": "x",
    "*": "star",
    "h": "hexagon",
    "<": "triangle-left",
    ">": "triangle-right",
    "p": "pentagon",
}


def _point_traces(layer: ResolvedLayer) -> list[BaseTraceType]:
    marks = layer.marks
    return [
        go.Scatter(
            x=marks["x_pos"],
            y=marks["y_pos"],
            mode="markers",
            marker=dict(
                color=_values(layer, Channel.COLOR, INK),
                size=[float(s) * PT for s in _values(layer, Channel.SIZE, 1.5)],
                opacity=float(_values(layer, Channel.ALPHA, 1.0)[0]) if len(marks) else 1.0,
                symbol=[_PLOTLY_MARKERS.get(str(s), "circle") for s in _values(layer, Channel.SHAPE, "o")],
            ),
            text=_hover(layer),
            hoverinfo="text",
            showlegend=False,
        ),
    ]


def _line_traces(layer: ResolvedLayer) -> list[BaseTraceType]:
    traces = []
    for path in layer.paths():
        path_layer = ResolvedLayer(layer.index, layer.geom, layer.mapping, layer.params, path)
        traces.append(
            go.Scatter(
                x=path["x_pos"],
                y=path["y_pos"],
                mode="lines",
                line=dict(
                    color=_values(path_layer, Channel.COLOR, INK)[0],
                    width=float(_values(path_layer, Channel.SIZE, 1.0)[0]) * 1.5,
                ),
                opacity=float(_values(path_layer, Channel.ALPHA, 1.0)[0]),
                name=str(path["group"].iloc[0]),
                showlegend=False,
            ),
        )
    return traces


def _bar_traces(layer: ResolvedLayer) -> list[BaseTraceType]:
    marks = layer.marks
    return [
        go.Bar(
            x=marks["x_pos"],
            y=marks["ymax"] - marks["ymin"],
            base=marks["ymin"],
            width=marks["width"],
            marker=dict(color=_values(layer, Channel.FILL, BAR_FILL)),
            opacity=float(_values(layer, Channel.ALPHA, 1.0)[0]) if len(marks) else 1.0,
            text=_hover(layer),
            hoverinfo="text",
            textposition="none",
            showlegend=False,
        ),
    ]


def _box_traces(layer: ResolvedLayer) -> list[BaseTraceType]:
    marks = layer.marks[layer.marks["n"] > 0]
    if marks.empty:
        return []
    fills = [v for v, keep in zip(_values(layer, Channel.FILL, "white"), layer.marks["n"] > 0, strict=True) if keep]
    traces: list[BaseTraceType] = [
        go.Box(
            x=[x],
            q1=[row.q1],
            median=[row.median],
            q3=[row.q3],
            lowerfence=[row.whisker_low],
            upperfence=[row.whisker_high],
            width=row.width,
            fillcolor=fill,
            line=dict(color=INK),
            boxpoints=False,
            showlegend=False,
        )
        for x, row, fill in zip(marks["x_pos"], marks.itertuples(index=False), fills, strict=True)
    ]
    outlier_x = [x for x, out in zip(marks["x_pos"], marks["outliers"], strict=True) for _ in out]
    outlier_y = [v for out in marks["outliers"] for v in out]
    if outlier_y:
        traces.append(
            go.Scatter(x=outlier_x, y=outlier_y, mode="markers", marker=dict(color=INK), showlegend=False),
        )
    return traces


def _text_traces(layer: ResolvedLayer) -> list[BaseTraceType]:
    marks = layer.marks
    return [
        go.Scatter(
            x=marks["x_pos"],
            y=marks["y_pos"],
            mode="text",
            text=marks["label"].astype(str) if "label" in marks else None,
            textfont=dict(
                color=_values(layer, Channel.COLOR, INK),
                size=[float(s) * PT for s in _values(layer, Channel.SIZE, 3.5)],
            ),
            showlegend=False,
        ),
    ]


_TRACES: dict[GeomKind, Callable[[ResolvedLayer], list[BaseTraceType]]] = {
    GeomKind.POINT: _point_traces,
    GeomKind.JITTER: _point_traces,
    GeomKind.LINE: _line_traces,
    GeomKind.BAR: _bar_traces,
    GeomKind.COL: _bar_traces,
    GeomKind.HISTOGRAM: _bar_traces,
    GeomKind.BOXPLOT: _box_traces,
    GeomKind.TEXT: _text_traces,
    GeomKind.LABEL: _text_traces,
}


def _axis_layout(scale: PositionScale) -> dict[str, Any]:
    layout: dict[str, Any] = {}
    limits = scale.expanded_limits()
    if limits is not None:
        layout["range"] = list(limits)
    if scale.kind == ScaleKind.DISCRETE:
        layout.update(tickmode="array", tickvals=scale.breaks, ticktext=scale.break_labels)
    return layout


def plot_resolved_plotly(
    resolved: ResolvedPlot,
    *,
    height: int | None = None,
    width: int | None = None,
) -> go.Figure:
    """Draw a resolved plot as an interactive figure.

    Implemented with Plotly's [:func:`plotly.subplots.make_subplots`](https://plotly.com/python/subplots/)
    (one subplot per facet panel) and :mod:`plotly.graph_objects` traces. Discrete legends
    are added as marker-only dummy traces so that every panel shares one legend.
    """
    nrow, ncol = resolved.nrow, resolved.ncol
    titles = [""] * (nrow * ncol)
    for panel in resolved.panels:
        row, col = panel.position
        titles[row * ncol + col] = panel.label

    fig = make_subplots(
        rows=nrow,
        cols=ncol,
        subplot_titles=titles,
        horizontal_spacing=min(0.06, 0.5 / max(ncol - 1, 1)),
        vertical_spacing=min(0.1, 0.5 / max(nrow - 1, 1)),
    )
    for panel in resolved.panels:
        row, col = panel.position
        for layer in panel.layers:
            for trace in _TRACES[layer.geom](layer):
                fig.add_trace(trace, row=row + 1, col=col + 1)
        fig.update_xaxes(_axis_layout(panel.x_scale), row=row + 1, col=col + 1)
        fig.update_yaxes(_axis_layout(panel.y_scale), row=row + 1, col=col + 1)

    for legend in resolved.scales.legends.values():
        if not legend.is_discrete or legend.channel not in (Channel.COLOR, Channel.FILL):
            continue
        for label, color in legend.legend_entries():
            fig.add_trace(
                go.Scatter(
                    x=[None],
                    y=[None],
                    mode="markers",
                    marker=dict(color=color, size=10, symbol="square" if legend.channel == Channel.FILL else "circle"),
                    name=label,
                    legendgroup=legend.title,
                    legendgrouptitle_text=legend.title,
                ),
            )

    theme = resolved.theme
    title = resolved.labels.title or ""
    if resolved.labels.subtitle:
        title = f"{title}<br><sup>{resolved.labels.subtitle}</sup>"
    fig.update_layout(
        template=theme.plotly_template,
        title=title or None,
        font=dict(family=theme.font_family, size=theme.font_size * 1.2, color=theme.text_color),
        showlegend=theme.legend_position != "none" and bool(resolved.scales.legends),
        height=height or 300 * nrow + 120,
        width=width or 380 * ncol + 200,
    )
    fig.update_xaxes(title_text=resolved.scales.x.title, row=nrow, col=1)
    fig.update_yaxes(title_text=resolved.scales.y.title, row=1, col=1)
    return fig


__all__ = ["plot_resolved_plotly"]
