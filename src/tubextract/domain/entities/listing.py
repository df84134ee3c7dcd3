"""Playlist and channel entities plus the summaries they list."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable

from .common import (
    UNKNOWN,
    ChannelRef,
    Maybe,
    SubscriberCount,
    Thumbnail,
    ViewCount,
    validate_channel_id,
    validate_playlist_id,
    validate_video_id,
)


class Availability(str, Enum):
    AVAILABLE = "available"
    DELETED = "deleted"
    PRIVATE = "private"
    UNAVAILABLE = "unavailable"


class ChannelBadge(str, Enum):
    VERIFIED = "VERIFIED"
    VERIFIED_ARTIST = "VERIFIED_ARTIST"


@dataclass(frozen=True)
class VideoSummary:
    """A video as it appears inside a listing."""

    id: str
    title: str
    duration: Maybe[int] = UNKNOWN
    thumbnails: tuple[Thumbnail, ...] = ()
    channel: Maybe[ChannelRef] = UNKNOWN
    views: Maybe[ViewCount] = UNKNOWN
    availability: Availability = Availability.AVAILABLE

    def __post_init__(self) -> None:
        validate_video_id(self.id)


@dataclass(frozen=True)
class ListingPage:
    """One page of a paginated listing and the token for the next one."""

    items: tuple[VideoSummary, ...]
    next_token: str | None = None


WalkerFactory = Callable[[], "AsyncIterator[VideoSummary]"]


@dataclass(frozen=True)
class Playlist:
    id: str
    title: str
    description: Maybe[str] = UNKNOWN
    owner: Maybe[ChannelRef] = UNKNOWN
    thumbnails: tuple[Thumbnail, ...] = ()
    unlisted: Maybe[bool] = UNKNOWN
    video_count: Maybe[int] = UNKNOWN
    views: Maybe[ViewCount] = UNKNOWN
    walker_factory: WalkerFactory | None = field(
        default=None, compare=False, repr=False
    )

    def __post_init__(self) -> None:
        validate_playlist_id(self.id)

    def videos(self) -> AsyncIterator[VideoSummary]:
        """Start a fresh traversal of the playlist items."""
        if self.walker_factory is None:
            raise RuntimeError(f"Playlist {self.id} has no page source attached")
        return self.walker_factory()


@dataclass(frozen=True)
class Channel:
    id: str
    name: str
    description: Maybe[str] = UNKNOWN
    country: Maybe[str] = UNKNOWN
    joined: Maybe[date] = UNKNOWN
    avatar: tuple[Thumbnail, ...] = ()
    banner: tuple[Thumbnail, ...] = ()
    badges: tuple[ChannelBadge, ...] = ()
    subscribers: Maybe[SubscriberCount] = UNKNOWN
    views: Maybe[ViewCount] = UNKNOWN
    walker_factory: WalkerFactory | None = field(
        default=None, compare=False, repr=False
    )

    def __post_init__(self) -> None:
        validate_channel_id(self.id)

    @property
    def uploads_playlist_id(self) -> str:
        """Uploads playlist id (``UC…`` → ``UU…``)."""
        return "UU" + self.id[2:]

    def uploads(self) -> AsyncIterator[VideoSummary]:
        """Start a fresh traversal of the channel's uploads."""
        if self.walker_factory is None:
            raise RuntimeError(f"Channel {self.id} has no page source attached")
        return self.walker_factory()
