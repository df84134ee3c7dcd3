"""Build playlist pages, playlists and channels from normalized trees."""

from __future__ import annotations

import structlog

from tubextract.domain.entities import (
    UNKNOWN,
    Availability,
    Channel,
    ChannelBadge,
    ListingPage,
    Playlist,
    SubscriberCount,
    VideoSummary,
)
from tubextract.infrastructure.common import (
    parse_clock_duration,
    parse_count,
    parse_text_date,
)

from .blob_locator import BlobKind
from .entity_builder import (
    build_thumbnails,
    channel_ref,
    check_mandatory,
    maybe,
    non_negative,
    view_count,
)
from .normalizer import FieldView, NormalizedTree

log = structlog.get_logger(__name__)

_UNAVAILABLE_TITLES = {
    "[Deleted video]": Availability.DELETED,
    "[Private video]": Availability.PRIVATE,
}

_BADGE_STYLES = {
    "BADGE_STYLE_TYPE_VERIFIED": ChannelBadge.VERIFIED,
    "BADGE_STYLE_TYPE_VERIFIED_ARTIST": ChannelBadge.VERIFIED_ARTIST,
}


def _count(view: FieldView, name: str) -> int | None:
    text = view.get_str(name)
    return parse_count(text) if text else None


def _availability(title: str, playable: bool | None) -> Availability:
    if title in _UNAVAILABLE_TITLES:
        return _UNAVAILABLE_TITLES[title]
    if playable is False:
        return Availability.UNAVAILABLE
    return Availability.AVAILABLE


def build_video_summary(item: FieldView) -> VideoSummary:
    video_id = item.get_str("video_id")
    title = item.get_str("title")
    check_mandatory("VideoSummary", id=video_id, title=title)

    duration = non_negative(item.get_int("duration"))
    if duration is None:
        duration = parse_clock_duration(item.get_str("duration_text") or "")

    return VideoSummary(
        id=video_id,
        title=title,
        duration=maybe(duration),
        thumbnails=build_thumbnails(item.get_list("thumbnails")),
        channel=channel_ref(item.get_str("channel_id"), item.get_str("channel_name")),
        views=view_count(_count(item, "view_count_text")),
        availability=_availability(title, item.get_bool("is_playable")),
    )


def parse_listing_items(
    items: tuple[FieldView, ...], fallback_token: str | None = None
) -> ListingPage:
    """Split listing entries into video summaries and the next token."""
    summaries: list[VideoSummary] = []
    next_token = None
    for item in items:
        token = item.get_str("continuation_token")
        if token:
            next_token = token
            continue
        if not item.has("video_id"):
            log.debug("listing_item_skipped", keys=sorted(item.data.keys()))
            continue
        summaries.append(build_video_summary(item))

    return ListingPage(items=tuple(summaries), next_token=next_token or fallback_token)


def build_playlist_page(tree: NormalizedTree) -> ListingPage:
    """One page of playlist items from an initial page or a continuation.

    Raises:
        SchemaViolation: the tree holds no item list.
        IncompleteEntity: an item lacks its id or title.
    """
    if tree.blob_kind is BlobKind.CONTINUATION:
        # continuation_items is required for this kind; normalize checked it
        items = tree.nodes("continuation_items", "listing_item")
        fallback = tree.get_str("legacy_token")
    else:
        if not tree.has("playlist_items"):
            raise tree.violation("playlist_items")
        items = tree.nodes("playlist_items", "listing_item")
        fallback = tree.get_str("playlist_legacy_token")

    page = parse_listing_items(items, fallback)
    log.debug(
        "playlist_page_built",
        kind=tree.blob_kind.value,
        schema_version=tree.schema_version,
        items=len(page.items),
        has_next=page.next_token is not None,
    )
    return page


def build_playlist(tree: NormalizedTree) -> Playlist:
    """Playlist metadata from a playlist page's initial data."""
    playlist_id = tree.get_str("playlist_id")
    title = tree.get_str("playlist_title")
    check_mandatory("Playlist", id=playlist_id, title=title)

    return Playlist(
        id=playlist_id,
        title=title,
        description=maybe(tree.get_str("playlist_description")),
        owner=channel_ref(
            tree.get_str("playlist_owner_id"), tree.get_str("playlist_owner_name")
        ),
        thumbnails=build_thumbnails(tree.get_list("playlist_thumbnails")),
        unlisted=maybe(tree.get_bool("playlist_unlisted")),
        video_count=maybe(_count(tree, "playlist_video_count_text")),
        views=view_count(_count(tree, "playlist_view_count_text")),
    )


def _badges(tree: NormalizedTree) -> tuple[ChannelBadge, ...]:
    badges = []
    for node in tree.nodes("channel_badges", "badge"):
        badge = _BADGE_STYLES.get(node.get_str("style") or "")
        if badge is not None and badge not in badges:
            badges.append(badge)
    return tuple(badges)


def build_channel(tree: NormalizedTree) -> Channel:
    """Channel metadata from a channel page's initial data.

    The about section is optional; its fields map to ``UNKNOWN`` when the
    page does not carry it.
    """
    channel_id = tree.get_str("channel_id")
    name = tree.get_str("channel_name")
    check_mandatory("Channel", id=channel_id, name=name)

    about = tree.node("channel_about", "channel_about")
    description = tree.get_str("channel_description")
    country = joined = None
    views = None
    if about is not None:
        description = about.get_str("description") or description
        country = about.get_str("country")
        joined = parse_text_date(about.get_str("joined") or "")
        views = _count(about, "view_count_text")

    subscribers = non_negative(_count(tree, "channel_subscriber_text"))

    return Channel(
        id=channel_id,
        name=name,
        description=maybe(description),
        country=maybe(country),
        joined=maybe(joined),
        avatar=build_thumbnails(tree.get_list("channel_avatar")),
        banner=build_thumbnails(tree.get_list("channel_banner")),
        badges=_badges(tree),
        subscribers=UNKNOWN
        if subscribers is None
        else SubscriberCount.from_raw(subscribers),
        views=view_count(views),
    )
