"""Build ``Video`` entities from normalized watch-page trees."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

import structlog

from tubextract.domain.entities import (
    UNKNOWN,
    ChannelRef,
    Playability,
    PlayabilityStatus,
    PublishInfo,
    Thumbnail,
    Video,
    ViewCount,
)
from tubextract.domain.entities.common import sort_thumbnails
from tubextract.domain.exceptions import IncompleteEntity
from tubextract.infrastructure.common import parse_count, parse_text_date, to_int

from .normalizer import NormalizedTree
from .stream_builder import build_stream_list

log = structlog.get_logger(__name__)


def maybe(value):
    """Map ``None`` to the ``UNKNOWN`` sentinel."""
    return UNKNOWN if value is None else value


def non_negative(value: int | None) -> int | None:
    return value if value is not None and value >= 0 else None


def view_count(raw: int | None):
    raw = non_negative(raw)
    return UNKNOWN if raw is None else ViewCount.from_raw(raw)


def build_thumbnails(raw: Iterable[object]) -> tuple[Thumbnail, ...]:
    """Build thumbnails ordered by ascending resolution.

    Entries without a URL are dropped; protocol-relative URLs get ``https:``.
    """
    thumbnails = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            continue
        url = entry.get("url")
        if not isinstance(url, str) or not url:
            continue
        if url.startswith("//"):
            url = "https:" + url
        thumbnails.append(
            Thumbnail(
                url=url,
                width=maybe(non_negative(to_int(entry.get("width")))),
                height=maybe(non_negative(to_int(entry.get("height")))),
            )
        )
    return sort_thumbnails(thumbnails)


def channel_ref(channel_id: str | None, name: str | None):
    if not channel_id:
        return UNKNOWN
    return ChannelRef(id=channel_id, name=maybe(name))


def check_mandatory(entity: str, **fields: object) -> None:
    missing = [name for name, value in fields.items() if not value]
    if missing:
        log.warning("entity_incomplete", entity=entity, missing_fields=missing)
        raise IncompleteEntity(entity, missing)


def build_video(
    player_response: NormalizedTree,
    initial_data: NormalizedTree | None = None,
) -> Video:
    """Build a video with unresolved streams.

    ``initial_data`` is optional and only contributes the like count.

    Raises:
        IncompleteEntity: id or title is absent.
        SchemaViolation: a stream entry is structurally broken.
    """
    tree = player_response
    video_id = tree.get_str("video_id")
    title = tree.get_str("title")
    check_mandatory("Video", id=video_id, title=title)

    duration = tree.get_int("duration")
    if duration is not None and duration < 0:
        log.debug("video_negative_duration", video_id=video_id, duration=duration)
        duration = None

    playability = Playability(
        status=PlayabilityStatus.parse(tree.get_str("playability_status")),
        reason=tree.get_str("playability_reason"),
    )

    streams = ()
    if playability.status.streams_available:
        streams = tuple(build_stream_list(tree))

    likes = None
    if initial_data is not None:
        like_text = initial_data.get_str("like_count_text")
        likes = parse_count(like_text) if like_text else None

    video = Video(
        id=video_id,
        title=title,
        duration=maybe(duration),
        description=maybe(tree.get_str("description")),
        thumbnails=build_thumbnails(tree.get_list("thumbnails")),
        channel=channel_ref(tree.get_str("channel_id"), tree.get_str("channel_name")),
        publish=PublishInfo(
            publish_date=maybe(parse_text_date(tree.get_str("publish_date") or "")),
            upload_date=maybe(parse_text_date(tree.get_str("upload_date") or "")),
            category=maybe(tree.get_str("category")),
            family_safe=maybe(tree.get_bool("family_safe")),
            unlisted=maybe(tree.get_bool("unlisted")),
        ),
        keywords=tuple(k for k in tree.get_list("keywords") if isinstance(k, str)),
        views=view_count(tree.get_int("view_count")),
        likes=maybe(likes),
        is_private=maybe(tree.get_bool("is_private")),
        is_live_content=maybe(tree.get_bool("is_live_content")),
        playability=playability,
        streams=streams,
    )
    log.debug(
        "video_built",
        video_id=video.id,
        schema_version=tree.schema_version,
        playability=playability.status.value,
        streams=len(streams),
    )
    return video
