"""Titles and axis/legend labels."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .aes import Channel


@dataclass(frozen=True)
class Labels:
    """Plot titles plus per-channel label overrides.

    Channels without an override are labelled with the pretty name of the column they
    are mapped to (see :class:`~gog_tlbx.data.views.DatasetView`).
    """

    title: str | None = None
    subtitle: str | None = None
    caption: str | None = None
    channels: Mapping[Channel, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        normalized = {Channel.parse(ch): str(text) for ch, text in self.channels.items()}
        object.__setattr__(self, "channels", MappingProxyType(normalized))

    def merge(self, other: Labels) -> Labels:
        """Right-biased merge: fields set on ``other`` win."""
        return Labels(
            title=other.title if other.title is not None else self.title,
            subtitle=other.subtitle if other.subtitle is not None else self.subtitle,
            caption=other.caption if other.caption is not None else self.caption,
            channels={**self.channels, **other.channels},
        )

    def for_channel(self, channel: Channel | str) -> str | None:
        return self.channels.get(Channel.parse(channel))


def labs(title: str | None = None, *, subtitle: str | None = None, caption: str | None = None, **channels: Any) -> Labels:
    """Set titles and channel labels, e.g. ``labs("Life expectancy", x="GDP per capita")``."""
    return Labels(title=title, subtitle=subtitle, caption=caption, channels=channels)


__all__ = ["Labels", "labs"]
