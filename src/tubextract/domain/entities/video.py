"""Video entity built from a watch page."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from .common import (
    UNKNOWN,
    ChannelRef,
    Maybe,
    Thumbnail,
    ViewCount,
    validate_video_id,
)
from .stream import Stream


class PlayabilityStatus(str, Enum):
    OK = "OK"
    LOGIN_REQUIRED = "LOGIN_REQUIRED"
    AGE_VERIFICATION_REQUIRED = "AGE_VERIFICATION_REQUIRED"
    UNPLAYABLE = "UNPLAYABLE"
    LIVE_STREAM_OFFLINE = "LIVE_STREAM_OFFLINE"
    ERROR = "ERROR"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, raw: str | None) -> PlayabilityStatus:
        try:
            return cls(raw)
        except ValueError:
            return cls.OTHER

    @property
    def streams_available(self) -> bool:
        return self is PlayabilityStatus.OK


@dataclass(frozen=True)
class Playability:
    status: PlayabilityStatus
    reason: str | None = None


@dataclass(frozen=True)
class PublishInfo:
    publish_date: Maybe[date] = UNKNOWN
    upload_date: Maybe[date] = UNKNOWN
    category: Maybe[str] = UNKNOWN
    family_safe: Maybe[bool] = UNKNOWN
    unlisted: Maybe[bool] = UNKNOWN


@dataclass(frozen=True)
class Video:
    id: str
    title: str
    duration: Maybe[int] = UNKNOWN  # seconds
    description: Maybe[str] = UNKNOWN
    thumbnails: tuple[Thumbnail, ...] = ()
    channel: Maybe[ChannelRef] = UNKNOWN
    publish: PublishInfo = field(default_factory=PublishInfo)
    keywords: tuple[str, ...] = ()
    views: Maybe[ViewCount] = UNKNOWN
    likes: Maybe[int] = UNKNOWN
    is_private: Maybe[bool] = UNKNOWN
    is_live_content: Maybe[bool] = UNKNOWN
    playability: Playability = field(
        default_factory=lambda: Playability(PlayabilityStatus.OK)
    )
    streams: tuple[Stream, ...] = ()

    def __post_init__(self) -> None:
        validate_video_id(self.id)
        if self.duration is not UNKNOWN and self.duration < 0:
            raise ValueError(f"Video {self.id} has negative duration {self.duration}")

    @property
    def age_restricted(self) -> Maybe[bool]:
        if self.publish.family_safe is UNKNOWN:
            return UNKNOWN
        return not self.publish.family_safe
