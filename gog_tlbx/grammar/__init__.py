"""Grammar module: aesthetics, layers, facets, themes, labels and the plot builder."""

from .aes import LEGEND_CHANNELS, AestheticMapping, Channel, ColumnBinding, ConstantBinding, aes, col, const
from .geoms import Geom, GeomKind, get_geom, list_geoms, list_geoms_with_descriptions
from .layers import (
    Layer,
    geom_bar,
    geom_boxplot,
    geom_col,
    geom_histogram,
    geom_jitter,
    geom_label,
    geom_line,
    geom_point,
    geom_text,
    layer,
)
from .facets import (
    Facet,
    FacetCondition,
    FacetGrid,
    FacetNone,
    FacetScales,
    FacetWrap,
    facet_condition,
    facet_grid,
    facet_wrap,
)
from .themes import (
    DEFAULT_THEME,
    Theme,
    get_theme,
    list_themes,
    list_themes_with_descriptions,
    theme_bw,
    theme_classic,
    theme_dark,
    theme_gray,
    theme_light,
    theme_minimal,
)
from .labels import Labels, labs
from .plot import PlotSpec, ggplot


__all__ = [
    "DEFAULT_THEME",
    "LEGEND_CHANNELS",
    "AestheticMapping",
    "Channel",
    "ColumnBinding",
    "ConstantBinding",
    "Facet",
    "FacetCondition",
    "FacetGrid",
    "FacetNone",
    "FacetScales",
    "FacetWrap",
    "Geom",
    "GeomKind",
    "Labels",
    "Layer",
    "PlotSpec",
    "Theme",
    "aes",
    "col",
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
    "get_geom",
    "get_theme",
    "ggplot",
    "labs",
    "layer",
    "list_geoms",
    "list_geoms_with_descriptions",
    "list_themes",
    "list_themes_with_descriptions",
    "theme_bw",
    "theme_classic",
    "theme_dark",
    "theme_gray",
    "theme_light",
    "theme_minimal",
]
