"""gog_tlbx: grammar-of-graphics plot specifications for tabular data.

Example:
    >>> from gog_tlbx import aes, facet_wrap, geom_point, ggplot
    >>> spec = ggplot(df, aes(x="gdp_percap", y="life_exp", color="continent")) + geom_point()
    >>> fig = spec.resolve().plot()
"""

import logging

from .data import DatasetView, GapminderDataset
from .exceptions import (
    AmbiguousAggregationError,
    EmptyPartitionWarning,
    EmptyPlotError,
    GrammarError,
    MissingRequiredChannelError,
    NameCollisionError,
    UnknownColumnError,
    UnknownGeomError,
    UnknownThemeError,
)
from .grammar import (
    PlotSpec,
    aes,
    const,
    facet_condition,
    facet_grid,
    facet_wrap,
    geom_bar,
    geom_boxplot,
    geom_col,
    geom_histogram,
    geom_jitter,
    geom_label,
    geom_line,
    geom_point,
    geom_text,
    get_theme,
    ggplot,
    labs,
)
from .analysis.resolver import PlotResolver, ResolvedPlot, resolve


logging.getLogger(__name__).addHandler(logging.NullHandler())


__all__ = [
    "AmbiguousAggregationError",
    "DatasetView",
    "EmptyPartitionWarning",
    "EmptyPlotError",
    "GapminderDataset",
    "GrammarError",
    "MissingRequiredChannelError",
    "NameCollisionError",
    "PlotResolver",
    "PlotSpec",
    "ResolvedPlot",
    "UnknownColumnError",
    "UnknownGeomError",
    "UnknownThemeError",
    "aes",
    "const",
    "facet_condition",
    "facet_grid",
    "facet_wrap",
    "geom_bar",
    "geom_boxplot",
    "geom_col",
    "geom_histogram",
    "geom_jitter",
    "geom_label",
    "geom_line",
    "geom_point",
    "geom_text",
    "get_theme",
    "ggplot",
    "labs",
    "resolve",
]
