"""Error taxonomy for plot specification and resolution.

All fatal errors derive from :class:`GrammarError` (a ``ValueError``) so callers that
already guard toolbox calls with ``except ValueError`` keep working. Messages name the
offending column/channel and list what *is* available so a notebook user can fix the
specification without digging through a traceback.
"""

from __future__ import annotations

from collections.abc import Iterable


class GrammarError(ValueError):
    """Base class for all plot specification errors."""


class UnknownColumnError(GrammarError):
    """Raised when a mapping, filter or derive expression references a missing column."""

    def __init__(self, column: str, available: Iterable[str] | None = None, context: str | None = None):
        """
        Args:
            column: Name of the column that could not be found
            available: Columns present in the active dataset view
            context: Optional description of where the lookup happened (e.g. ``layer 2 (point)``)
        """
        self.column = column
        self.available = list(available) if available is not None else []
        where = f" in {context}" if context else ""
        available_text = f" Available columns: {', '.join(map(str, self.available))}." if self.available else ""
        super().__init__(f"Column '{column}' not found{where}.{available_text}")


class MissingRequiredChannelError(GrammarError):
    """Raised when a geometry needs a channel that is unbound after the mapping merge."""

    def __init__(self, channel: str, geom: str, context: str | None = None):
        self.channel = channel
        self.geom = geom
        where = f" ({context})" if context else ""
        super().__init__(f"Geometry '{geom}' requires the '{channel}' channel, but it is not mapped{where}.")


class AmbiguousAggregationError(GrammarError):
    """Raised when a summarized bar layer sees several rows for one bar without an ``agg`` rule."""

    def __init__(self, geom: str, duplicates: Iterable[object]):
        self.geom = geom
        self.duplicates = list(duplicates)
        shown = ", ".join(map(repr, self.duplicates[:5]))
        more = f" (+{len(self.duplicates) - 5} more)" if len(self.duplicates) > 5 else ""
        super().__init__(
            f"Geometry '{geom}' found multiple rows for x = {shown}{more}. "
            "Pass agg='sum' (or mean/median/...) or use geom_bar() to count rows.",
        )


class NameCollisionError(GrammarError):
    """Raised when ``derive`` would overwrite an existing column."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Column '{name}' already exists in the dataset view.")


class EmptyPlotError(GrammarError):
    """Raised when a plot without any layer is resolved."""

    def __init__(self) -> None:
        super().__init__("Plot has no layers. Add at least one geom_*() layer before resolving.")


class UnknownGeomError(GrammarError):
    """Raised when a geometry name is not registered."""

    def __init__(self, name: str, available: Iterable[str]):
        self.name = name
        super().__init__(f"Unknown geometry '{name}'. Available geometries: {', '.join(available)}")


class UnknownThemeError(GrammarError):
    """Raised when a theme name is not registered."""

    def __init__(self, name: str, available: Iterable[str]):
        self.name = name
        super().__init__(f"Unknown theme '{name}'. Available themes: {', '.join(available)}")


class EmptyPartitionWarning(UserWarning):
    """A facet panel or a layer within a panel matched zero rows.

    Not an error: the panel is still produced and flagged ``is_empty``.
    """


__all__ = [
    "AmbiguousAggregationError",
    "EmptyPartitionWarning",
    "EmptyPlotError",
    "GrammarError",
    "MissingRequiredChannelError",
    "NameCollisionError",
    "UnknownColumnError",
    "UnknownGeomError",
    "UnknownThemeError",
]
