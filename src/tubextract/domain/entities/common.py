"""Shared value objects: the unknown sentinel, ids, thumbnails, counts.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Literal, TypeVar, Union

from tubextract.domain.exceptions import InvalidId

T = TypeVar("T")


class Unknown(Enum):
    """Marker for a non-mandatory field upstream did not provide.

    Kept distinct from ``0`` / ``""`` so a real zero is never confused
    with missing data.
    """

    UNKNOWN = "unknown"

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNKNOWN"


UNKNOWN = Unknown.UNKNOWN

Maybe = Union[T, Literal[Unknown.UNKNOWN]]


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

_ID_ALPHABET_RE = re.compile(r"^[0-9A-Za-z_-]+$")

VIDEO_ID_LENGTH = 11
CHANNEL_ID_LENGTH = 24
SPECIAL_PLAYLIST_IDS = frozenset({"WL", "LL", "RDMM"})


def _validate_id(kind: str, value: object, length: int | None) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidId(kind, str(value), "expected a non-empty string")
    if not _ID_ALPHABET_RE.match(value):
        raise InvalidId(kind, value, "contains characters outside [0-9A-Za-z_-]")
    if length is not None and len(value) != length:
        raise InvalidId(
            kind, value, f"expected {length} characters, found {len(value)}"
        )
    return value


def validate_video_id(value: object) -> str:
    return _validate_id("video", value, VIDEO_ID_LENGTH)


def validate_channel_id(value: object) -> str:
    return _validate_id("channel", value, CHANNEL_ID_LENGTH)


def validate_playlist_id(value: object) -> str:
    """Playlist ids vary in length (``PL…``, ``UU…``, ``OLAK5uy_…``, ``WL``)."""
    return _validate_id("playlist", value, None)


# ---------------------------------------------------------------------------
# Counts
# ---------------------------------------------------------------------------

SIGNIFICANT_DIGITS = 3


def truncate_significant(value: int, digits: int = SIGNIFICANT_DIGITS) -> int:
    """Zero every digit after the first *digits* significant ones.

    ``164583`` → ``164000``; values with at most *digits* digits are
    returned unchanged.
    """
    if value < 0:
        raise ValueError(f"count must be non-negative, got {value}")
    length = len(str(value))
    if length <= digits:
        return value
    factor = 10 ** (length - digits)
    return value // factor * factor


@dataclass(frozen=True)
class SubscriberCount:
    """Approximate count carrying upstream's three-digit precision."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0 or truncate_significant(self.value) != self.value:
            raise ValueError(
                f"{type(self).__name__} must have at most "
                f"{SIGNIFICANT_DIGITS} significant digits, got {self.value}"
            )

    @classmethod
    def from_raw(cls, raw: int) -> SubscriberCount:
        return cls(truncate_significant(raw))

    def __int__(self) -> int:
        return self.value


class ViewCount(SubscriberCount):
    """View count with the same precision rules as subscriber counts."""


# ---------------------------------------------------------------------------
# Thumbnails and weak references
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Thumbnail:
    url: str
    width: Maybe[int] = UNKNOWN
    height: Maybe[int] = UNKNOWN

    @property
    def area(self) -> int:
        if self.width is UNKNOWN or self.height is UNKNOWN:
            return 0
        return self.width * self.height


def sort_thumbnails(thumbnails: list[Thumbnail]) -> tuple[Thumbnail, ...]:
    """Order thumbnails by ascending resolution (unknown sizes first)."""
    return tuple(sorted(thumbnails, key=lambda t: t.area))


@dataclass(frozen=True)
class ChannelRef:
    """Non-owning link to a channel: id and display name only."""

    id: str
    name: Maybe[str] = UNKNOWN
