"""Aesthetic mappings: which column (or constant) drives which visual channel."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any


class Channel(StrEnum):
    """Visual channels a layer can map data onto."""

    X = "x"
    Y = "y"
    COLOR = "color"
    FILL = "fill"
    SHAPE = "shape"
    SIZE = "size"
    ALPHA = "alpha"
    LABEL = "label"
    GROUP = "group"

    @classmethod
    def parse(cls, name: str | Channel) -> Channel:
        """Resolve a channel name, accepting the British ``colour`` spelling."""
        if isinstance(name, Channel):
            return name
        key = _ALIASES.get(str(name).lower(), str(name).lower())
        try:
            return cls(key)
        except ValueError:
            available = ", ".join(ch.value for ch in cls)
            raise ValueError(f"Unknown aesthetic channel '{name}'. Available channels: {available}") from None


_ALIASES = {"colour": "color"}

LEGEND_CHANNELS: tuple[Channel, ...] = (Channel.COLOR, Channel.FILL, Channel.SHAPE, Channel.SIZE, Channel.ALPHA)
"""Channels that are explained by a legend rather than an axis."""


@dataclass(frozen=True)
class ColumnBinding:
    """Channel value varies per row and is read from ``column``."""

    column: str

    def __repr__(self) -> str:
        return f"col({self.column!r})"


@dataclass(frozen=True)
class ConstantBinding:
    """Channel value is fixed for every row."""

    value: Any

    def __repr__(self) -> str:
        return f"const({self.value!r})"


Binding = ColumnBinding | ConstantBinding


def const(value: Any) -> ConstantBinding:
    """Bind a channel to a constant, e.g. ``aes(color=const("steelblue"))``."""
    return ConstantBinding(value)


def col(name: str) -> ColumnBinding:
    """Bind a channel to a column explicitly (plain strings in :func:`aes` do the same)."""
    return ColumnBinding(str(name))


def _to_binding(value: Any) -> Binding:
    if isinstance(value, ColumnBinding | ConstantBinding):
        return value
    if isinstance(value, str):
        return ColumnBinding(str(value))
    return ConstantBinding(value)


@dataclass(frozen=True)
class AestheticMapping:
    """Immutable channel -> binding table.

    Two mappings merge right-biased: channels bound on the right win, channels present
    in only one side are carried over unchanged.

    Example:
        >>> base = aes(x="year", y="life_exp", color="continent")
        >>> layer = aes(color=const("grey"), group="country")
        >>> merged = base.merge(layer)
        >>> merged[Channel.COLOR]
        const('grey')
    """

    bindings: Mapping[Channel, Binding] = field(default_factory=dict)

    def __post_init__(self) -> None:
        normalized = {Channel.parse(ch): _to_binding(binding) for ch, binding in self.bindings.items()}
        object.__setattr__(self, "bindings", MappingProxyType(normalized))

    def __getitem__(self, channel: Channel | str) -> Binding:
        return self.bindings[Channel.parse(channel)]

    def __contains__(self, channel: object) -> bool:
        try:
            return Channel.parse(channel) in self.bindings  # type: ignore[arg-type]
        except ValueError:
            return False

    def __iter__(self) -> Iterator[Channel]:
        return iter(self.bindings)

    def __len__(self) -> int:
        return len(self.bindings)

    def __repr__(self) -> str:
        inner = ", ".join(f"{ch}={binding!r}" for ch, binding in self.bindings.items())
        return f"aes({inner})"

    def items(self):
        return self.bindings.items()

    def get(self, channel: Channel | str, default: Binding | None = None) -> Binding | None:
        return self.bindings.get(Channel.parse(channel), default)

    def merge(self, other: AestheticMapping | None) -> AestheticMapping:
        """Return a new mapping where ``other``'s bindings override this one per channel."""
        if other is None:
            return self
        return AestheticMapping({**self.bindings, **other.bindings})

    def without(self, *channels: Channel | str) -> AestheticMapping:
        drop = {Channel.parse(ch) for ch in channels}
        return AestheticMapping({ch: b for ch, b in self.bindings.items() if ch not in drop})

    def column_of(self, channel: Channel | str) -> str | None:
        """Column bound to ``channel``, or None when unbound or constant."""
        binding = self.get(channel)
        return binding.column if isinstance(binding, ColumnBinding) else None

    def is_column(self, channel: Channel | str) -> bool:
        return self.column_of(channel) is not None

    def columns(self) -> list[str]:
        """Distinct columns referenced by column bindings, in channel order."""
        seen: dict[str, None] = {}
        for binding in self.bindings.values():
            if isinstance(binding, ColumnBinding):
                seen.setdefault(binding.column, None)
        return list(seen)


def aes(x: Any = None, y: Any = None, **kwargs: Any) -> AestheticMapping:
    """Build an :class:`AestheticMapping`.

    Strings (including column enums) bind to columns, :func:`const` or any non-string
    value binds a constant. ``None`` leaves the channel unbound.

    Example:
        >>> aes(x="gdp_percap", y="life_exp", color="continent", size=const(2))
    """
    raw = {"x": x, "y": y, **kwargs}
    return AestheticMapping({name: value for name, value in raw.items() if value is not None})


__all__ = [
    "LEGEND_CHANNELS",
    "AestheticMapping",
    "Binding",
    "Channel",
    "ColumnBinding",
    "ConstantBinding",
    "aes",
    "col",
    "const",
]
