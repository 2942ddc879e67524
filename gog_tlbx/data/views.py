"""Immutable dataset views consumed by plot layers, facets and the resolver."""

from __future__ import annotations

import re
from collections.abc import Callable, Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

import numpy as np
import pandas as pd

from gog_tlbx.exceptions import NameCollisionError, UnknownColumnError

from .base_columns import ColumnKind


RowPredicate = str | Callable[[pd.DataFrame], Any]
"""Either a :meth:`pandas.DataFrame.eval` expression or a callable returning a row-aligned mask."""
ColumnExpr = str | Callable[[pd.DataFrame], Any]
"""Either a :meth:`pandas.DataFrame.eval` expression or a callable returning row-aligned values."""

_UNDEFINED_NAME = re.compile(r"name '([^']+)' is not defined")


def evaluate(df: pd.DataFrame, expr: ColumnExpr, *, context: str | None = None) -> pd.Series:
    """Evaluate ``expr`` against ``df`` and return a Series aligned with ``df.index``.

    Strings go through :meth:`pandas.DataFrame.eval` (python engine, so string comparisons
    such as ``continent == 'Asia'`` work), callables receive the DataFrame. Scalars are
    broadcast to every row.

    Raises:
        UnknownColumnError: If the expression references a column that ``df`` does not have.
    """
    try:
        result = df.eval(expr, engine="python") if isinstance(expr, str) else expr(df)
    except pd.errors.UndefinedVariableError as exc:
        match = _UNDEFINED_NAME.search(str(exc))
        raise UnknownColumnError(match.group(1) if match else str(exc), df.columns.tolist(), context) from exc
    except KeyError as exc:
        missing = exc.args[0] if exc.args else str(exc)
        raise UnknownColumnError(str(missing), df.columns.tolist(), context) from exc

    if isinstance(result, pd.DataFrame):
        raise TypeError("Expression must produce one value per row, got a DataFrame.")
    if isinstance(result, pd.Series):
        return result if result.index.equals(df.index) else result.reindex(df.index)
    if np.ndim(result) == 0:
        return pd.Series([result] * len(df), index=df.index, dtype=object if isinstance(result, str) else None)
    return pd.Series(np.asarray(result), index=df.index)


def _default_pretty(column: Hashable) -> str:
    return str(column).replace("_", " ").title()


@dataclass(frozen=True, eq=False, repr=False)
class DatasetView:
    """Immutable snapshot of tabular data plus per-column metadata.

    The row index label is the row *identity*: filters and facet partitions keep it, so
    rows can be traced back to the source view. A view never mutates its DataFrame;
    every operation returns a new view and leaves the source untouched.

    Attributes:
        df: Dataframe holding the rows and named columns.
        kinds: Mapping from column name to :class:`ColumnKind`. Missing entries are inferred.
        pretty_by_col: Mapping from column names to display-friendly labels.

    Example:
        >>> view = DatasetView.from_frame(gapminder_df)
        >>> recent = view.filter("year >= 1990").derive("gdp_total", "gdp_percap * pop")
        >>> best = recent.grouped_transform("continent", lambda g: g[g.life_exp == g.life_exp.max()])
    """

    df: pd.DataFrame
    """Dataframe holding the rows and named columns."""
    kinds: Mapping[str, ColumnKind] = field(default_factory=dict)
    """Semantic kind per column (inferred from the dtype when not declared)."""
    pretty_by_col: Mapping[str, str] = field(default_factory=dict)
    """Mapping from column names to display-friendly labels."""

    def __post_init__(self) -> None:
        df = self.df
        if not isinstance(df, pd.DataFrame):
            raise TypeError(f"DatasetView expects a pandas DataFrame, got {type(df).__name__}")
        if not df.columns.is_unique:
            dupes = df.columns[df.columns.duplicated()].unique().tolist()
            raise ValueError(f"Column names must be unique within a view. Duplicated: {dupes}")
        if not df.index.is_unique:
            df = df.reset_index(drop=True)

        kinds = {
            col: ColumnKind(self.kinds[col]) if col in self.kinds else ColumnKind.infer(df[col]) for col in df.columns
        }
        pretty = {col: self.pretty_by_col.get(col, _default_pretty(col)) for col in df.columns}

        object.__setattr__(self, "df", df)
        object.__setattr__(self, "kinds", MappingProxyType(kinds))
        object.__setattr__(self, "pretty_by_col", MappingProxyType(pretty))

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        kinds: Mapping[str, ColumnKind | str] | None = None,
        pretty_by_col: Mapping[str, str] | None = None,
    ) -> DatasetView:
        """Wrap a DataFrame, optionally declaring kinds and pretty names for some columns."""
        return cls(
            df=df,
            kinds={col: ColumnKind(kind) for col, kind in (kinds or {}).items()},
            pretty_by_col=dict(pretty_by_col or {}),
        )

    def __repr__(self) -> str:
        cols = ", ".join(f"{col}:{kind}" for col, kind in self.kinds.items())
        return f"DatasetView(rows={self.row_count}, columns=[{cols}])"

    def __len__(self) -> int:
        return len(self.df)

    # ------------------------------------------------------------------ metadata
    @property
    def columns(self) -> list[str]:
        """Column names in view order."""
        return self.df.columns.tolist()

    @property
    def row_count(self) -> int:
        return len(self.df)

    @property
    def row_ids(self) -> pd.Index:
        """Row identities (index labels) of the rows in this view."""
        return self.df.index

    def kind_of(self, name: str) -> ColumnKind:
        """Return the kind of ``name``.

        Raises:
            UnknownColumnError: If the column is not part of the view.
        """
        self.require([name])
        return self.kinds[name]

    def pretty_name(self, name: str) -> str:
        return self.pretty_by_col.get(name, _default_pretty(name))

    def require(self, columns: Iterable[str], context: str | None = None) -> None:
        """Fail fast if any of ``columns`` is missing.

        Raises:
            UnknownColumnError: Naming the first missing column.
        """
        for col in columns:
            if col not in self.kinds:
                raise UnknownColumnError(col, self.columns, context)

    def column(self, name: str) -> pd.Series:
        """Return the values of a single column."""
        self.require([name])
        return self.df[name]

    # ------------------------------------------------------------------ derived views
    def _with_frame(self, df: pd.DataFrame, kinds: Mapping[str, ColumnKind] | None = None) -> DatasetView:
        """Build a sibling view over ``df`` keeping metadata of the surviving columns."""
        merged_kinds = {col: kind for col, kind in self.kinds.items() if col in df.columns}
        merged_kinds.update(kinds or {})
        return DatasetView(
            df=df,
            kinds=merged_kinds,
            pretty_by_col={col: name for col, name in self.pretty_by_col.items() if col in df.columns},
        )

    def select(self, columns: Iterable[str]) -> DatasetView:
        """Keep only ``columns`` (in the given order)."""
        cols = list(columns)
        self.require(cols)
        return self._with_frame(self.df.loc[:, cols])

    def with_kinds(self, **kinds: ColumnKind | str) -> DatasetView:
        """Return a view with re-declared column kinds, e.g. ``view.with_kinds(year="ordinal")``."""
        self.require(kinds)
        return self._with_frame(self.df, {col: ColumnKind(kind) for col, kind in kinds.items()})

    def filter(self, predicate: RowPredicate) -> DatasetView:
        """Keep the rows for which ``predicate`` holds.

        Missing predicate values count as ``False``. Column order, kinds and row identities
        are preserved.

        Args:
            predicate: Expression string (``"year == 2007"``) or callable ``df -> mask``.

        Raises:
            UnknownColumnError: If the predicate references a missing column.
        """
        mask = evaluate(self.df, predicate, context="filter predicate")
        keep = np.where(mask.notna().to_numpy(), mask.to_numpy(), False).astype(bool)
        return self._with_frame(self.df.loc[keep])

    def derive(
        self,
        name: str,
        expr: ColumnExpr,
        *,
        kind: ColumnKind | str | None = None,
        pretty_name: str | None = None,
    ) -> DatasetView:
        """Add one computed column.

        Args:
            name: Name of the new column; must not exist yet.
            expr: Expression string (``"gdp_percap * pop"``) or callable ``df -> values``.
            kind: Optional declared kind (inferred from the values otherwise).
            pretty_name: Optional display label.

        Raises:
            NameCollisionError: If ``name`` is already a column.
            UnknownColumnError: If ``expr`` references a missing column.
        """
        if name in self.kinds:
            raise NameCollisionError(name)
        values = evaluate(self.df, expr, context=f"derive('{name}')")
        df = self.df.assign(**{name: values.to_numpy()})
        view = self._with_frame(df, {name: ColumnKind(kind)} if kind is not None else None)
        if pretty_name is None:
            return view
        return DatasetView(df=view.df, kinds=view.kinds, pretty_by_col={**view.pretty_by_col, name: pretty_name})

    def grouped_transform(
        self,
        group_columns: str | Iterable[str],
        fn: Callable[[pd.DataFrame], pd.DataFrame],
    ) -> DatasetView:
        """Apply ``fn`` independently to every partition of rows sharing ``group_columns`` values.

        Partitions are visited in first-appearance order. When ``fn`` only keeps, drops or
        modifies rows in place (e.g. "keep the max per continent", "number rows within each
        country"), the result is returned in the original row order. When ``fn`` reorders
        rows or emits new ones, the group-by-group concatenation order is kept.

        Args:
            group_columns: Column name or names defining the partitions.
            fn: Callable receiving one partition DataFrame and returning a DataFrame.

        Raises:
            UnknownColumnError: If a grouping column is missing.
        """
        cols = [group_columns] if isinstance(group_columns, str) else list(group_columns)
        self.require(cols, context="grouped_transform")
        if self.df.empty:
            return self._with_frame(self.df)

        position = pd.Series(np.arange(len(self.df)), index=self.df.index)
        pieces: list[pd.DataFrame] = []
        keeps_order = True
        for _, part in self.df.groupby(cols, sort=False, dropna=False, observed=True):
            out = fn(part)
            if not isinstance(out, pd.DataFrame):
                raise TypeError(f"grouped_transform fn must return a DataFrame, got {type(out).__name__}")
            if keeps_order:
                keeps_order = (
                    out.index.is_unique
                    and bool(out.index.isin(part.index).all())
                    and position.loc[out.index].is_monotonic_increasing
                )
            pieces.append(out)

        result = pd.concat(pieces)
        if keeps_order:
            result = result.iloc[np.argsort(position.loc[result.index].to_numpy(), kind="stable")]
        return self._with_frame(result)
