"""Base column definitions and metadata structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from pandas import Series


class ColumnKind(StrEnum):
    """Semantic kind of a column, used to pick discrete or continuous scales.

    - ``categorical``: unordered labels (country, continent)
    - ``ordinal``: ordered labels (ordered ``pd.Categorical``)
    - ``continuous``: numeric measurements
    - ``temporal``: datetimes
    """

    CATEGORICAL = "categorical"
    ORDINAL = "ordinal"
    CONTINUOUS = "continuous"
    TEMPORAL = "temporal"

    @property
    def is_discrete(self) -> bool:
        """Whether values of this kind map to a discrete scale."""
        return self in {ColumnKind.CATEGORICAL, ColumnKind.ORDINAL}

    @classmethod
    def infer(cls, series: Series) -> ColumnKind:
        """Infer the kind of a pandas Series from its dtype.

        Booleans count as categorical so that ``year > 2000`` style columns facet and
        colour as two discrete groups rather than a 0..1 gradient.
        """
        import pandas as pd

        dtype = series.dtype
        if isinstance(dtype, pd.CategoricalDtype):
            return cls.ORDINAL if dtype.ordered else cls.CATEGORICAL
        if pd.api.types.is_bool_dtype(dtype):
            return cls.CATEGORICAL
        if pd.api.types.is_datetime64_any_dtype(dtype):
            return cls.TEMPORAL
        if pd.api.types.is_numeric_dtype(dtype):
            return cls.CONTINUOUS
        return cls.CATEGORICAL


@dataclass(frozen=True)
class ColumnMetadata:
    """Metadata for a dataset column.

    Attributes:
        original_name: Column name as it appears in the raw CSV file.
        cleaned_name: Standardized column name used in DataFrames.
        kind: Semantic kind declared for the column.
        pretty_name: Human-readable name for axis titles and legends.
    """

    original_name: str
    cleaned_name: str
    kind: ColumnKind
    pretty_name: str


class BaseColumn(StrEnum):
    """Base class for dataset column enums.

    Subclasses must implement:
    - metadata(): Return ColumnMetadata for each enum member
    - identifier_columns(): Return list of identifier column names
    """

    def metadata(self) -> ColumnMetadata:
        """Get metadata for this column.

        Raises:
            NotImplementedError: If not implemented by subclass.
        """
        raise NotImplementedError(f"{self.__class__.__name__} must implement metadata() method")

    @classmethod
    def identifier_columns(cls) -> list[str]:
        """Get identifier column names.

        Raises:
            NotImplementedError: If not implemented by subclass.
        """
        raise NotImplementedError(f"{cls.__name__} must implement identifier_columns() method")

    @classmethod
    def columns_of_kind(cls, kind: ColumnKind) -> list[str]:
        """Return the column names declared with ``kind``."""
        return [col.value for col in cls if col.kind == kind]

    @classmethod
    def kinds(cls) -> dict[str, ColumnKind]:
        """Mapping from column name to declared kind."""
        return {col.value: col.kind for col in cls}

    @property
    def pretty_name(self) -> str:
        """Get the human-readable name for plots and visualizations."""
        return self.metadata().pretty_name

    @property
    def original_name(self) -> str:
        """Get the original column name from the CSV file."""
        return self.metadata().original_name

    @property
    def kind(self) -> ColumnKind:
        return self.metadata().kind
