"""Browse use case: fetch pages over a site transport and extract entities."""

from __future__ import annotations

from dataclasses import dataclass, replace

import structlog

from tubextract.domain.entities import Channel, PlayerRef, Playlist, Video
from tubextract.domain.exceptions import ExtractionError
from tubextract.domain.ports import SitePort
from tubextract.infrastructure.listing import ContinuationWalker

from .extract_page import PageExtractor

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class WatchPage:
    """A video and the player it was served with (``None`` if not found)."""

    video: Video
    player: PlayerRef | None = None


class BrowseUseCase:
    """Fetches watch, playlist and channel pages and builds entities.

    Playlists and channels come back with a walker factory attached, so
    ``playlist.videos()`` / ``channel.uploads()`` start a lazy traversal
    through the same site transport.
    """

    def __init__(
        self,
        site: SitePort,
        extractor: PageExtractor | None = None,
        *,
        max_pages: int | None = None,
    ) -> None:
        self._site = site
        self._extractor = extractor or PageExtractor()
        self._max_pages = max_pages

    def walk_playlist(
        self, playlist_id: str, *, max_pages: int | None = None
    ) -> ContinuationWalker:
        return ContinuationWalker(
            self._site.playlist_source(playlist_id),
            self._extractor.parse_page,
            max_pages=max_pages if max_pages is not None else self._max_pages,
        )

    async def watch(self, video_id: str) -> WatchPage:
        document = await self._site.fetch(self._site.watch_url(video_id))
        video = self._extractor.video(document)
        try:
            player = self._extractor.player_ref(document)
        except ExtractionError:
            player = None
        log.info(
            "video_extracted",
            video_id=video.id,
            streams=len(video.streams),
            player_version=player.version if player else None,
        )
        return WatchPage(video=video, player=player)

    async def video(self, video_id: str) -> Video:
        return (await self.watch(video_id)).video

    async def playlist(self, playlist_id: str) -> Playlist:
        document = await self._site.fetch(self._site.playlist_url(playlist_id))
        playlist = self._extractor.playlist(document)
        log.info("playlist_extracted", playlist_id=playlist.id)
        return replace(
            playlist, walker_factory=lambda: self.walk_playlist(playlist.id)
        )

    async def channel(self, channel_id: str) -> Channel:
        document = await self._site.fetch(
            self._site.channel_url(channel_id) + "/about"
        )
        channel = self._extractor.channel(document)
        log.info("channel_extracted", channel_id=channel.id)
        return replace(
            channel,
            walker_factory=lambda: self.walk_playlist(channel.uploads_playlist_id),
        )
