"""Loading and cleaning for the Gapminder dataset."""

from pathlib import Path

import pandas as pd

from gog_tlbx.utils.paths import get_dataset_path

from .base_dataset import BaseDataset
from .gapminder_columns import GapminderColumn as Col


class GapminderDataset(BaseDataset):
    """Loading and preprocessing for the [Gapminder](https://www.gapminder.org/data/) excerpt.

    **Example workflow**:
    >>> from gog_tlbx.data import GapminderDataset, GMCol
    >>> from gog_tlbx.grammar import aes, facet_wrap, geom_line, geom_point
    >>> ds = GapminderDataset.from_csv()
    >>> spec = (
    ...     ds.make_plot(aes(x=GMCol.YEAR, y=GMCol.LIFE_EXP, group=GMCol.COUNTRY))
    ...     + geom_line(alpha=0.3)
    ...     + facet_wrap(GMCol.CONTINENT)
    ... )
    >>> resolved = spec.resolve()
    >>> fig = resolved.plot()
    """

    Col = Col

    @classmethod
    def from_csv(
        cls,
        csv_path: str | Path | None = None,
        *,
        years: list[int] | None = None,
        drop_missing: bool = True,
    ) -> "GapminderDataset":
        """Load and preprocess the Gapminder data from a CSV file.

        - Normalize column names (``lifeExp`` -> ``life_exp``)
        - Convert data types

        Args:
            csv_path: Path to the CSV file (defaults to ``gapminder.csv`` in the data directory)
            years: Optional subset of years to keep
            drop_missing: If True, drop rows with missing measurements

        Returns:
            GapminderDataset instance with loaded and cleaned data
        """
        csv_path = get_dataset_path("gapminder") if csv_path is None else Path(csv_path)

        gm_df = pd.read_csv(csv_path).pipe(cls._normalize_col_names).pipe(cls._convert_data_types)

        if years is not None:
            gm_df = gm_df[gm_df[Col.YEAR].isin(list(years))]
        if drop_missing:
            gm_df = gm_df.dropna(subset=[Col.YEAR, Col.LIFE_EXP, Col.POP, Col.GDP_PERCAP]).astype({Col.YEAR: int})

        return cls(df=gm_df.reset_index(drop=True))

    @staticmethod
    def _normalize_col_names(df: pd.DataFrame) -> pd.DataFrame:
        """Convert camelCase/space separated column names to snake_case."""
        return df.set_axis(
            df.columns.str.strip()
            .str.replace(r"(?<=[a-z0-9])([A-Z])", r"_\1", regex=True)
            .str.lower()
            .str.replace(r"[\s/\-]+", "_", regex=True)
            .str.replace(r"_+", "_", regex=True),
            axis=1,
        )

    @staticmethod
    def _convert_data_types(df: pd.DataFrame) -> pd.DataFrame:
        """Set appropriate data types for each col."""
        measurement_cols = [Col.LIFE_EXP, Col.POP, Col.GDP_PERCAP]
        converted = df.assign(
            country=df[Col.COUNTRY].astype(str).str.strip(),
            continent=df[Col.CONTINENT].astype(str).str.strip(),
            year=pd.to_numeric(df[Col.YEAR], errors="coerce"),
        )
        return converted.assign(
            **{col: pd.to_numeric(converted[col], errors="coerce") for col in measurement_cols if col in converted},
        )
