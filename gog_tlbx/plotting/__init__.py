"""Plotting utilities: draw resolved plot specifications."""

from .grammar_plots import plot_resolved
from .plotly_plots import plot_resolved_plotly


__all__ = ["plot_resolved", "plot_resolved_plotly"]
