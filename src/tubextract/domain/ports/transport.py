"""Transport ports consumed by the extraction core."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from .page_source import PageSourcePort


@runtime_checkable
class TransportPort(Protocol):
    """Fetches documents.

    Implementations raise :class:`~tubextract.domain.exceptions.TransportError`
    on failure; retries and timeouts are their concern, not the core's.
    """

    async def fetch(
        self, url: str, params: Mapping[str, str] | None = None
    ) -> str:
        """Return the decoded body of *url*."""
        ...

    async def fetch_bytes(self, url: str) -> bytes:
        """Return the raw body of *url*."""
        ...


@runtime_checkable
class PlayerSourcePort(Protocol):
    """Supplies player script source for a version reference."""

    async def fetch_player_script(self, version_ref: str) -> str:
        """Return the player script text.

        *version_ref* is either a bare player version or the script path
        found on a page.
        """
        ...


@runtime_checkable
class SitePort(TransportPort, PlayerSourcePort, Protocol):
    """Transport that also knows the site's page layout."""

    def watch_url(self, video_id: str) -> str:
        ...

    def playlist_url(self, playlist_id: str) -> str:
        ...

    def channel_url(self, channel_id: str) -> str:
        ...

    def playlist_source(self, playlist_id: str) -> PageSourcePort:
        ...
