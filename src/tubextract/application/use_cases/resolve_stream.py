"""Stream resolution use case: cipher analysis and deciphering per player version."""

from __future__ import annotations

import structlog

from tubextract.domain.entities import PlayerProgram, PlayerRef, Stream
from tubextract.domain.exceptions import CipherError
from tubextract.domain.ports import PlayerSourcePort
from tubextract.infrastructure.cipher import (
    PlayerProgramCache,
    needs_player,
    resolve_url,
)

log = structlog.get_logger(__name__)


class StreamResolverUseCase:
    """Resolves stream descriptors into fetchable URLs.

    Player programs are memoized per player version in the injected
    ``PlayerProgramCache``; the player script is fetched through
    ``PlayerSourcePort`` only on a cache miss.  Given a ``PlayerRef`` the
    script is fetched from the URL the page named; a bare version string
    falls back to the canonical player path.  Cipher errors abort
    resolution for that player version and leave metadata untouched.
    """

    def __init__(
        self,
        player_source: PlayerSourcePort,
        cache: PlayerProgramCache | None = None,
    ) -> None:
        self._player_source = player_source
        self._cache = cache if cache is not None else PlayerProgramCache()

    @property
    def cache(self) -> PlayerProgramCache:
        return self._cache

    async def program(self, player: PlayerRef | str) -> PlayerProgram:
        if isinstance(player, str):
            return await self._cache.get_or_analyze(
                player, self._player_source.fetch_player_script
            )

        async def _load(_version: str) -> str:
            return await self._player_source.fetch_player_script(player.url)

        return await self._cache.get_or_analyze(player.version, _load)

    async def resolve_stream(self, stream: Stream, player: PlayerRef | str) -> str:
        """Final URL of *stream*.

        Direct URLs without an ``n`` parameter are returned without
        touching the player.

        Raises:
            CipherProgramNotFound / UnknownOperationShape: the player's
                cipher code is not recognised.
            InvalidCipherInput: the signature cannot be deciphered.
            TransportError: the player script could not be fetched.
        """
        if not needs_player(stream):
            return stream.url

        program = await self.program(player)
        try:
            return resolve_url(stream, program)
        except CipherError as e:
            log.warning(
                "stream_resolution_failed",
                itag=stream.itag,
                player_version=program.player_version,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise
