"""Analysis modules: statistics behind the geometries and scale training.

The plot resolver lives in :mod:`gog_tlbx.analysis.resolver` (re-exported from
:mod:`gog_tlbx`); it depends on the grammar package, whose geometries in turn use the
helpers exported here.
"""

from .base_analyser import BaseAnalyser
from .binning import DEFAULT_BINS, bin_counts, count_rows, histogram_edges, resolution
from .box_summary import SUMMARY_COLUMNS, BoxSummaryAnalyzer, BoxSummaryResult, five_number_summary
from .scales import LegendScale, PositionScale, ScaleKind, ScaleSet


__all__ = [
    "DEFAULT_BINS",
    "SUMMARY_COLUMNS",
    "BaseAnalyser",
    "BoxSummaryAnalyzer",
    "BoxSummaryResult",
    "LegendScale",
    "PositionScale",
    "ScaleKind",
    "ScaleSet",
    "bin_counts",
    "count_rows",
    "five_number_summary",
    "histogram_edges",
    "resolution",
]
