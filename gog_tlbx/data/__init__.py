"""Data module for dataset views and loaders."""

from .base_columns import BaseColumn, ColumnKind, ColumnMetadata
from .gapminder_columns import GapminderColumn as GMCol
from .gapminder_dataset import GapminderDataset
from .views import DatasetView


__all__ = ["BaseColumn", "ColumnKind", "ColumnMetadata", "DatasetView", "GMCol", "GapminderDataset"]
