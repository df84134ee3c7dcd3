"""httpx adapter for the transport, player-source and page-source ports.

No retries and no rate limiting: every failure is
mapped to ``TransportError`` and surfaced to the caller.
"""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import urljoin

import httpx
import structlog

from tubextract.domain.exceptions import TransportError
from tubextract.infrastructure.config.defaults import (
    DEFAULT_ACCEPT_LANGUAGE,
    DEFAULT_BASE_URL,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
)

log = structlog.get_logger(__name__)

_PLAYER_PATH = "/s/player/{version}/player_ias.vflset/en_US/base.js"
_BROWSE_PATH = "/browse_ajax"


class HttpxTransport:
    """Fetches pages, continuations and player scripts over httpx.

    Satisfies ``SitePort`` (and so ``TransportPort`` and ``PlayerSourcePort``).

    Usage::

        async with HttpxTransport.create() as transport:
            html = await transport.fetch(transport.watch_url(video_id))
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str = DEFAULT_BASE_URL,
    ) -> None:
        self._client = client
        self.base_url = base_url.rstrip("/")

    @classmethod
    def create(
        cls,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        accept_language: str = DEFAULT_ACCEPT_LANGUAGE,
    ) -> HttpxTransport:
        client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            headers={"User-Agent": user_agent, "Accept-Language": accept_language},
            follow_redirects=True,
        )
        log.debug("http_client_initialized", base_url=base_url, timeout=timeout_seconds)
        return cls(client, base_url=base_url)

    async def __aenter__(self) -> HttpxTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # URLs
    # ------------------------------------------------------------------

    def watch_url(self, video_id: str) -> str:
        return f"{self.base_url}/watch?v={video_id}"

    def playlist_url(self, playlist_id: str) -> str:
        return f"{self.base_url}/playlist?list={playlist_id}"

    def channel_url(self, channel_id: str) -> str:
        return f"{self.base_url}/channel/{channel_id}"

    def browse_url(self) -> str:
        return f"{self.base_url}{_BROWSE_PATH}"

    def player_url(self, version_ref: str) -> str:
        """Script URL for a bare player version or a path found on a page."""
        if version_ref.startswith(("http://", "https://", "/")):
            return urljoin(self.base_url + "/", version_ref)
        return self.base_url + _PLAYER_PATH.format(version=version_ref)

    # ------------------------------------------------------------------
    # Ports
    # ------------------------------------------------------------------

    async def _get(
        self, url: str, params: Mapping[str, str] | None = None
    ) -> httpx.Response:
        try:
            resp = await self._client.get(url, params=dict(params) if params else None)
            resp.raise_for_status()
            return resp
        except httpx.TimeoutException as e:
            log.warning("http_timeout", url=url)
            raise TransportError(url, "Request timed out") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            log.warning("http_error", url=url, status=status)
            raise TransportError(url, f"HTTP {status}", status=status) from e
        except httpx.HTTPError as e:
            log.warning("http_fetch_error", url=url, error=str(e))
            raise TransportError(url, f"Request failed ({type(e).__name__})") from e

    async def fetch(self, url: str, params: Mapping[str, str] | None = None) -> str:
        resp = await self._get(url, params)
        log.debug("http_fetched", url=url, status=resp.status_code, size=len(resp.content))
        return resp.text

    async def fetch_bytes(self, url: str) -> bytes:
        resp = await self._get(url)
        return resp.content

    async def fetch_player_script(self, version_ref: str) -> str:
        return await self.fetch(self.player_url(version_ref))

    def playlist_source(self, playlist_id: str) -> PlaylistPageSource:
        return PlaylistPageSource(self, self.playlist_url(playlist_id))


class PlaylistPageSource:
    """Satisfies ``PageSourcePort`` for one playlist (or uploads list)."""

    def __init__(self, transport: HttpxTransport, initial_url: str) -> None:
        self._transport = transport
        self._initial_url = initial_url

    async def fetch_initial(self) -> str:
        return await self._transport.fetch(self._initial_url)

    async def fetch_continuation(self, token: str) -> str:
        return await self._transport.fetch(
            self._transport.browse_url(),
            {"continuation": token, "ctoken": token},
        )
