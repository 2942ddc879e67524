"""Matplotlib rendering of resolved plots.

Drawers only translate marks into artists: grouping, counting, ordering, positions and
visual values were all decided by the resolver. One drawer per geometry kind is
registered in ``_DRAWERS``.
"""

from __future__ import annotations

from collections.abc import Callable

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.axes import Axes
from matplotlib.cm import ScalarMappable
from matplotlib.colors import Normalize
from matplotlib.figure import Figure
from matplotlib.lines import Line2D
from matplotlib.patches import Patch

from gog_tlbx.analysis.resolver import ResolvedLayer, ResolvedPanel, ResolvedPlot, visual_column
from gog_tlbx.analysis.scales import LegendScale, PositionScale, ScaleKind
from gog_tlbx.grammar.aes import Channel
from gog_tlbx.grammar.geoms import GeomKind, get_geom
from gog_tlbx.grammar.themes import Theme


PT = 72.27 / 25.4
"""Points per millimetre; sizes follow ggplot2's millimetre convention."""

INK = "#333333"
BAR_FILL = "#595959"


def _visual(layer: ResolvedLayer, channel: Channel, default: object) -> pd.Series:
    """Visual values of ``channel`` per mark, falling back to the geometry default or ``default``."""
    column = visual_column(channel)
    if column in layer.marks:
        return layer.marks[column]
    fallback = get_geom(layer.geom).optional.get(channel)
    return pd.Series([default if fallback is None else fallback] * len(layer.marks), index=layer.marks.index)


def _draw_point(ax: Axes, layer: ResolvedLayer, theme: Theme) -> None:
    marks = layer.marks
    if marks.empty:
        return
    colors = _visual(layer, Channel.COLOR, INK)
    sizes = (_visual(layer, Channel.SIZE, 1.5).astype(float) * PT) ** 2
    alphas = _visual(layer, Channel.ALPHA, 1.0).astype(float)
    shapes = _visual(layer, Channel.SHAPE, "o")
    for shape in pd.unique(shapes):
        sel = (shapes == shape).to_numpy()
        ax.scatter(
            marks.loc[sel, "x_pos"],
            marks.loc[sel, "y_pos"],
            c=colors[sel].tolist(),
            s=sizes[sel].to_numpy(),
            alpha=alphas[sel].to_numpy(),
            marker=shape,
            linewidths=0,
            zorder=2 + layer.index,
        )


def _draw_line(ax: Axes, layer: ResolvedLayer, theme: Theme) -> None:
    for path in layer.paths():
        with_visuals = ResolvedLayer(layer.index, layer.geom, layer.mapping, layer.params, path)
        ax.plot(
            path["x_pos"],
            path["y_pos"],
            color=_visual(with_visuals, Channel.COLOR, INK).iloc[0],
            linewidth=float(_visual(with_visuals, Channel.SIZE, 1.0).iloc[0]) * 1.5,
            alpha=float(_visual(with_visuals, Channel.ALPHA, 1.0).iloc[0]),
            zorder=2 + layer.index,
        )


def _draw_bar(ax: Axes, layer: ResolvedLayer, theme: Theme) -> None:
    marks = layer.marks
    if marks.empty:
        return
    fills = _visual(layer, Channel.FILL, BAR_FILL)
    edges = _visual(layer, Channel.COLOR, "none") if visual_column(Channel.COLOR) in marks else None
    ax.bar(
        marks["x_pos"],
        marks["ymax"] - marks["ymin"],
        bottom=marks["ymin"],
        width=marks["width"],
        color=fills.tolist(),
        edgecolor=edges.tolist() if edges is not None else "none",
        alpha=float(_visual(layer, Channel.ALPHA, 1.0).iloc[0]),
        align="center",
        zorder=2 + layer.index,
    )


def _draw_boxplot(ax: Axes, layer: ResolvedLayer, theme: Theme) -> None:
    marks = layer.marks
    if marks.empty:
        return
    stats = [
        {
            "med": row.median,
            "q1": row.q1,
            "q3": row.q3,
            "whislo": row.whisker_low,
            "whishi": row.whisker_high,
            "fliers": np.asarray(row.outliers, dtype=float),
        }
        for row in marks.itertuples(index=False)
        if row.n > 0
    ]
    keep = (marks["n"] > 0).to_numpy()
    if not stats:
        return
    artists = ax.bxp(
        stats,
        positions=marks.loc[keep, "x_pos"].tolist(),
        widths=marks.loc[keep, "width"].tolist(),
        patch_artist=True,
        manage_ticks=False,
    )
    fills = _visual(layer, Channel.FILL, "white")[keep].tolist()
    edge = _visual(layer, Channel.COLOR, INK)[keep].tolist()
    for box, fill, color in zip(artists["boxes"], fills, edge, strict=True):
        box.set_facecolor(fill)
        box.set_edgecolor(color)


def _draw_text(ax: Axes, layer: ResolvedLayer, theme: Theme) -> None:
    marks = layer.marks
    colors = _visual(layer, Channel.COLOR, theme.text_color)
    sizes = _visual(layer, Channel.SIZE, 3.5).astype(float) * PT
    fills = _visual(layer, Channel.FILL, "white")
    for i, row in enumerate(marks.itertuples(index=False)):
        bbox = None
        if row.boxed:
            bbox = {
                "boxstyle": f"round,pad={row.label_padding}",
                "facecolor": fills.iloc[i],
                "edgecolor": colors.iloc[i],
            }
        ax.text(
            row.x_pos,
            row.y_pos,
            str(row.label),
            color=colors.iloc[i],
            fontsize=sizes.iloc[i],
            ha="center",
            va="center",
            bbox=bbox,
            zorder=2 + layer.index,
        )


_DRAWERS: dict[GeomKind, Callable[[Axes, ResolvedLayer, Theme], None]] = {
    GeomKind.POINT: _draw_point,
    GeomKind.JITTER: _draw_point,
    GeomKind.LINE: _draw_line,
    GeomKind.BAR: _draw_bar,
    GeomKind.COL: _draw_bar,
    GeomKind.HISTOGRAM: _draw_bar,
    GeomKind.BOXPLOT: _draw_boxplot,
    GeomKind.TEXT: _draw_text,
    GeomKind.LABEL: _draw_text,
}


def _style_axis(ax: Axes, scale: PositionScale) -> None:
    set_lim = ax.set_xlim if scale.channel == Channel.X else ax.set_ylim
    axis = ax.xaxis if scale.channel == Channel.X else ax.yaxis
    limits = scale.expanded_limits()
    if limits is not None:
        set_lim(*limits)
    if scale.kind == ScaleKind.DISCRETE:
        axis.set_ticks(scale.breaks, labels=scale.break_labels)


def _draw_panel(ax: Axes, panel: ResolvedPanel, resolved: ResolvedPlot) -> None:
    for layer in panel.layers:
        _DRAWERS[layer.geom](ax, layer, resolved.theme)
    _style_axis(ax, panel.x_scale)
    _style_axis(ax, panel.y_scale)
    if panel.label:
        ax.set_title(panel.label, fontsize=resolved.theme.font_size)
    if panel.x_scale.kind == ScaleKind.DISCRETE and len(panel.x_scale.break_labels) > 6:
        ax.tick_params(axis="x", rotation=45)


def _legend_handles(legend: LegendScale) -> list[object]:
    handles = []
    for label, value in legend.legend_entries():
        if legend.channel == Channel.FILL:
            handles.append(Patch(facecolor=value, label=label))
        elif legend.channel == Channel.COLOR:
            handles.append(Line2D([], [], color=value, marker="o", linestyle="", label=label))
        elif legend.channel == Channel.SHAPE:
            handles.append(Line2D([], [], color=INK, marker=value, linestyle="", label=label))
        elif legend.channel == Channel.SIZE:
            handles.append(Line2D([], [], color=INK, marker="o", markersize=value * PT, linestyle="", label=label))
        else:
            handles.append(Line2D([], [], color=INK, marker="o", alpha=value, linestyle="", label=label))
    return handles


def _stacked(anchor: tuple[float, float], index: int, position: str) -> tuple[float, float]:
    """Shift the ``index``-th legend so that several legends do not overlap."""
    x, y = anchor
    if position in ("right", "left"):
        return x, y + 0.3 - 0.3 * index
    return x - 0.3 + 0.3 * index, y


def _add_legends(fig: Figure, axs: np.ndarray, resolved: ResolvedPlot) -> None:
    position = resolved.theme.legend_position
    if position == "none":
        return
    loc = {"right": "center left", "left": "center right", "top": "lower center", "bottom": "upper center"}[position]
    anchor = {"right": (1.0, 0.5), "left": (0.0, 0.5), "top": (0.5, 1.0), "bottom": (0.5, 0.0)}[position]
    for i, legend in enumerate(resolved.scales.legends.values()):
        if legend.channel in (Channel.COLOR, Channel.FILL) and not legend.is_discrete:
            mappable = ScalarMappable(norm=Normalize(*(legend.limits or (0.0, 1.0))), cmap=legend.palette)
            fig.colorbar(mappable, ax=axs.ravel().tolist(), label=legend.title, location=position)
            continue
        fig.legend(
            handles=_legend_handles(legend),
            title=legend.title,
            loc=loc,
            bbox_to_anchor=_stacked(anchor, i, position),
            frameon=False,
        )


def plot_resolved(
    resolved: ResolvedPlot,
    *,
    figsize: tuple[float, float] | None = None,
    panel_size: tuple[float, float] = (4.0, 3.0),
) -> Figure:
    """Draw a resolved plot with Matplotlib.

    Args:
        resolved: Output of :func:`gog_tlbx.analysis.resolver.resolve`
        figsize: Figure size (width, height); derived from the panel grid when omitted
        panel_size: Size of one panel used to derive ``figsize``

    Returns:
        matplotlib Figure object
    """
    nrow, ncol = resolved.nrow, resolved.ncol
    figsize = figsize or (panel_size[0] * ncol + 1.5, panel_size[1] * nrow + 0.5)

    with resolved.theme.apply():
        fig, axs = plt.subplots(nrow, ncol, figsize=figsize, squeeze=False, layout="constrained")
        used: set[tuple[int, int]] = set()
        for panel in resolved.panels:
            row, col = panel.position
            used.add((row, col))
            _draw_panel(axs[row][col], panel, resolved)
        for row in range(nrow):
            for col in range(ncol):
                if (row, col) not in used:
                    axs[row][col].set_visible(False)
        if not resolved.panels:
            axs[0][0].set_visible(True)
            axs[0][0].text(0.5, 0.5, "No data", ha="center", va="center", transform=axs[0][0].transAxes)

        labels = resolved.labels
        if len(resolved.panels) > 1:
            fig.supxlabel(resolved.scales.x.title, fontsize=resolved.theme.font_size)
            fig.supylabel(resolved.scales.y.title, fontsize=resolved.theme.font_size)
        else:
            axs[0][0].set_xlabel(resolved.scales.x.title)
            axs[0][0].set_ylabel(resolved.scales.y.title)
        if labels.title or labels.subtitle:
            title = labels.title or ""
            if labels.subtitle:
                title = f"{title}\n{labels.subtitle}" if title else labels.subtitle
            fig.suptitle(title, fontsize=resolved.theme.title_size)
        if labels.caption:
            fig.text(0.99, 0.01, labels.caption, ha="right", va="bottom", fontsize=resolved.theme.font_size * 0.8)
        _add_legends(fig, axs, resolved)

    return fig


__all__ = ["plot_resolved"]
