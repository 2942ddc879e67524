"""Plot themes (style, palette, fonts) and the theme registry.

A theme is a plain value attached to a plot specification; nothing is applied globally.
Renderers enter :meth:`Theme.apply` while drawing, which restores the previous
matplotlib/seaborn/plotly state afterwards.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import asdict, dataclass, fields, replace
from typing import Any

import matplotlib as mpl
import plotly.io as pio
import seaborn as sns

from gog_tlbx.exceptions import UnknownThemeError


LEGEND_POSITIONS = ("right", "bottom", "top", "left", "none")


@dataclass(frozen=True)
class Theme:
    """Reusable plotting style.

    Attributes:
        name: Registry name.
        style: Seaborn axes style (``darkgrid``, ``whitegrid``, ``white``, ``ticks``, ...).
        palette: Seaborn palette name for discrete colour/fill scales.
        continuous_cmap: Matplotlib colormap for continuous colour/fill scales.
        font_family: Font family for all text.
        font_size: Base font size (axis labels, ticks, legend).
        title_size: Plot title size; panel strips use ``font_size``.
        background_color: Figure background.
        panel_color: Axes (panel) background.
        grid_visible: Whether major grid lines are drawn.
        grid_color: Grid line colour.
        text_color: Colour of titles, labels and ticks.
        legend_position: ``right``, ``bottom``, ``top``, ``left`` or ``none``.
        figure_dpi: Figure resolution.
        plotly_template: Plotly template used by the interactive renderer.
        description: Human-readable description for the registry.
    """

    name: str = "gray"
    style: str = "darkgrid"
    palette: str = "deep"
    continuous_cmap: str = "viridis"
    font_family: str = "DejaVu Sans"
    font_size: float = 10.0
    title_size: float = 13.0
    background_color: str = "#FFFFFF"
    panel_color: str = "#EBEBEB"
    grid_visible: bool = True
    grid_color: str = "#FFFFFF"
    text_color: str = "#222222"
    legend_position: str = "right"
    figure_dpi: int = 100
    plotly_template: str = "ggplot2"
    description: str = "Grey panel background with white grid lines (ggplot2 default look)"

    def __post_init__(self) -> None:
        if self.legend_position not in LEGEND_POSITIONS:
            raise ValueError(
                f"Invalid legend_position='{self.legend_position}'. Use one of: {', '.join(LEGEND_POSITIONS)}",
            )
        if self.font_size <= 0 or self.title_size <= 0:
            raise ValueError("font_size and title_size must be positive")

    def update(self, **overrides: Any) -> Theme:
        """Return a copy with some fields replaced, e.g. ``theme_bw().update(font_size=12)``."""
        valid = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - valid)
        if unknown:
            raise ValueError(f"Unknown theme field(s) {unknown}. Available fields: {', '.join(sorted(valid))}")
        return replace(self, **overrides)

    def rc_params(self) -> dict[str, Any]:
        """Matplotlib rcParams implementing the theme."""
        return {
            "figure.facecolor": self.background_color,
            "figure.dpi": self.figure_dpi,
            "axes.facecolor": self.panel_color,
            "axes.grid": self.grid_visible,
            "grid.color": self.grid_color,
            "axes.titlesize": self.title_size,
            "axes.labelsize": self.font_size,
            "axes.labelcolor": self.text_color,
            "axes.edgecolor": self.grid_color if self.style in ("darkgrid", "dark") else self.text_color,
            "text.color": self.text_color,
            "xtick.color": self.text_color,
            "ytick.color": self.text_color,
            "xtick.labelsize": self.font_size * 0.9,
            "ytick.labelsize": self.font_size * 0.9,
            "legend.fontsize": self.font_size * 0.9,
            "font.family": [self.font_family],
            "image.cmap": self.continuous_cmap,
        }

    def colors(self, n: int) -> list[str]:
        """``n`` distinct hex colours from the theme palette."""
        return sns.color_palette(self.palette, n).as_hex() if n > 0 else []

    @contextmanager
    def apply(self) -> Generator[None]:
        """Apply the theme within a context, restoring previous rcParams and plotly template afterwards."""
        prev_plotly_template = pio.templates.default
        with mpl.rc_context():
            sns.set_theme(style=self.style, palette=self.palette, font=self.font_family)
            mpl.rcParams.update(self.rc_params())
            pio.templates.default = self.plotly_template
            try:
                yield
            finally:
                pio.templates.default = prev_plotly_template

    def get_config(self) -> dict[str, Any]:
        return asdict(self)

    def get_description(self) -> str:
        return self.description


# Registry of available themes
_THEMES: dict[str, Theme] = {
    "gray": Theme(),
    "bw": Theme(
        name="bw",
        style="whitegrid",
        panel_color="#FFFFFF",
        grid_color="#EBEBEB",
        description="White panel with light grey grid and a dark border, good for print",
    ),
    "minimal": Theme(
        name="minimal",
        style="whitegrid",
        panel_color="#FFFFFF",
        grid_color="#EBEBEB",
        plotly_template="plotly_white",
        description="No panel background or border, light grid only",
    ),
    "classic": Theme(
        name="classic",
        style="ticks",
        panel_color="#FFFFFF",
        grid_visible=False,
        plotly_template="simple_white",
        description="Axis lines and ticks without grid, like base R graphics",
    ),
    "dark": Theme(
        name="dark",
        style="darkgrid",
        palette="pastel",
        continuous_cmap="magma",
        background_color="#1E1E1E",
        panel_color="#2B2B2B",
        grid_color="#3A3A3A",
        text_color="#E0E0E0",
        plotly_template="plotly_dark",
        description="Dark background with muted colours for low-light environments",
    ),
    "light": Theme(
        name="light",
        style="whitegrid",
        palette="muted",
        panel_color="#FFFFFF",
        grid_color="#DEDEDE",
        text_color="#444444",
        plotly_template="plotly_white",
        description="Light grey grid and axis lines on white, emphasising the data",
    ),
}

DEFAULT_THEME = _THEMES["gray"]


def get_theme(name: str = "gray") -> Theme:
    """Get a theme by name.

    Args:
        name: Theme name (gray, bw, minimal, classic, dark, light); ``grey`` is accepted

    Returns:
        Theme instance

    Raises:
        UnknownThemeError: If the theme name is not registered
    """
    theme_name = name.lower() if name else "gray"
    theme = _THEMES.get("gray" if theme_name == "grey" else theme_name)
    if theme is None:
        raise UnknownThemeError(name, list_themes())
    return theme


def list_themes() -> list[str]:
    """Get a list of available theme names."""
    return list(_THEMES.keys())


def list_themes_with_descriptions() -> dict[str, str]:
    """Get a dictionary of theme names to their descriptions."""
    return {name: theme.get_description() for name, theme in _THEMES.items()}


def theme_gray(**overrides: Any) -> Theme:
    return _THEMES["gray"].update(**overrides)


def theme_bw(**overrides: Any) -> Theme:
    return _THEMES["bw"].update(**overrides)


def theme_minimal(**overrides: Any) -> Theme:
    return _THEMES["minimal"].update(**overrides)


def theme_classic(**overrides: Any) -> Theme:
    return _THEMES["classic"].update(**overrides)


def theme_dark(**overrides: Any) -> Theme:
    return _THEMES["dark"].update(**overrides)


def theme_light(**overrides: Any) -> Theme:
    return _THEMES["light"].update(**overrides)


__all__ = [
    "DEFAULT_THEME",
    "LEGEND_POSITIONS",
    "Theme",
    "get_theme",
    "list_themes",
    "list_themes_with_descriptions",
    "theme_bw",
    "theme_classic",
    "theme_dark",
    "theme_gray",
    "theme_light",
    "theme_minimal",
]
