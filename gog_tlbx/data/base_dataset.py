"""Base dataset class for all dataset implementations."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Literal

import pandas as pd


if TYPE_CHECKING:
    from gog_tlbx.analysis.box_summary import BoxSummaryAnalyzer
    from gog_tlbx.grammar.aes import AestheticMapping
    from gog_tlbx.grammar.plot import PlotSpec
    from gog_tlbx.grammar.themes import Theme

from .base_columns import BaseColumn
from .views import DatasetView


class BaseDataset(ABC):
    """Abstract base class for the tabular sources plots are built from.

    A dataset owns loading and cleaning; everything downstream works on the immutable
    :class:`DatasetView` returned by :meth:`view`.
    """

    Col: type[BaseColumn]

    def __init__(self, df: pd.DataFrame | None = None) -> None:
        """Initialize the base dataset.

        Args:
            df: Pre-loaded and cleaned DataFrame (optional)
        """
        self._df: pd.DataFrame | None = df

    @classmethod
    @abstractmethod
    def from_csv(cls, csv_path: str | Path | None = None, **kwargs: object) -> "BaseDataset":
        """Load dataset from CSV file.

        Args:
            csv_path: Path to the CSV file
            **kwargs: Additional loading parameters

        Returns:
            Dataset instance with loaded data
        """
        ...

    @property
    def df(self) -> pd.DataFrame:
        """Get the cleaned DataFrame.

        Raises:
            ValueError: If dataset not loaded
        """
        if self._df is None:
            raise ValueError("Dataset not loaded. Use from_csv() to load data.")
        return self._df

    def get_pretty_name(self, column_name: str) -> str:
        """Convert column name to pretty name for axis titles and legends."""
        try:
            col_enum = self.Col(column_name)
        except ValueError:
            return column_name.replace("_", " ").title()
        else:
            return str(col_enum.pretty_name)

    def view(
        self,
        columns: Iterable[str] | None = None,
        missing_strategy: Literal["drop", "keep"] = "keep",
    ) -> DatasetView:
        """Build an immutable dataset view for plot specifications.

        Args:
            columns: Columns to include in the view (defaults to all)
            missing_strategy: ``"drop"`` removes rows with missing values in the selected
                columns, ``"keep"`` leaves them for the geometries to handle.

        Returns:
            DatasetView with declared column kinds and pretty names.
        """
        if missing_strategy not in ("drop", "keep"):
            raise ValueError(f"Invalid missing_strategy='{missing_strategy}'. Use 'drop' or 'keep'.")

        selected_cols = list(columns or self.df.columns.to_list())
        frame = self.df.loc[:, selected_cols]
        if missing_strategy == "drop":
            frame = frame.dropna(axis=0, how="any")

        declared = self.Col.kinds()
        return DatasetView.from_frame(
            frame,
            kinds={col: declared[col] for col in selected_cols if col in declared},
            pretty_by_col={col: self.get_pretty_name(col) for col in selected_cols},
        )

    def make_plot(
        self,
        mapping: "AestheticMapping | None" = None,
        *,
        columns: Iterable[str] | None = None,
        theme: "Theme | str | None" = None,
    ) -> "PlotSpec":
        """Start a plot specification over this dataset.

        Example:
            >>> from gog_tlbx.data import GapminderDataset, GMCol
            >>> from gog_tlbx.grammar import aes, geom_line
            >>> ds = GapminderDataset.from_csv()
            >>> spec = ds.make_plot(aes(x=GMCol.YEAR, y=GMCol.LIFE_EXP, group=GMCol.COUNTRY)) + geom_line()
        """
        from gog_tlbx.grammar.plot import ggplot

        return ggplot(self.view(columns=columns), mapping, theme=theme)

    def make_box_summary(
        self,
        value: str,
        by: str | None = None,
        coef: float = 1.5,
    ) -> "BoxSummaryAnalyzer":
        """Instantiate a five-number-summary analyzer for ``value`` grouped by ``by``.

        Args:
            value: Continuous column summarized per group
            by: Optional grouping column (one summary overall when omitted)
            coef: IQR multiplier for the whisker fences (default: 1.5)
        """
        from gog_tlbx.analysis.box_summary import BoxSummaryAnalyzer

        return BoxSummaryAnalyzer(self.view(), value=value, by=by, coef=coef)
