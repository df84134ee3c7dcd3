"""In-memory cache of analyzed player programs, keyed by player version.

A version's code never changes, so entries do not expire; ``evict`` and
``clear`` are the only invalidations.

Concurrent ``get_or_analyze()`` calls for the same unseen version are
serialized on a per-version ``asyncio.Lock``: the first caller fetches
and analyzes, the others wait and then receive the cached program.
Different versions proceed independently.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from tubextract.domain.entities import PlayerProgram

from .player_analyzer import analyze_player

log = structlog.get_logger(__name__)

ScriptLoader = Callable[[str], Awaitable[str]]
Analyzer = Callable[[str, str], PlayerProgram]


class PlayerProgramCache:
    """Per-version memo of ``analyze_player`` results.

    Usage::

        cache = PlayerProgramCache()
        program = await cache.get_or_analyze(version, player_source.fetch_player_script)
    """

    def __init__(self, analyzer: Analyzer = analyze_player) -> None:
        self._analyzer = analyzer
        self._programs: dict[str, PlayerProgram] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._programs)

    def __contains__(self, version: object) -> bool:
        return version in self._programs

    def get(self, version: str) -> PlayerProgram | None:
        return self._programs.get(version)

    async def get_or_analyze(self, version: str, loader: ScriptLoader) -> PlayerProgram:
        """Return the program for *version*, fetching and analyzing it once.

        Failed fetches or analyses are not cached; the next call retries.
        """
        program = self._programs.get(version)
        if program is not None:
            return program

        lock = self._locks.setdefault(version, asyncio.Lock())
        async with lock:
            # Double-check after acquiring lock
            program = self._programs.get(version)
            if program is not None:
                log.debug("player_program_cache_hit", player_version=version, waited=True)
                return program

            source = await loader(version)
            program = self._analyzer(source, version)
            self._programs[version] = program
            # Queued waiters keep their reference; later callers hit the cache.
            self._locks.pop(version, None)
            log.info(
                "player_program_cached",
                player_version=version,
                cached_versions=len(self._programs),
            )
            return program

    def _drop_idle_lock(self, version: str) -> None:
        lock = self._locks.get(version)
        if lock is not None and not lock.locked():
            del self._locks[version]

    def evict(self, version: str) -> bool:
        """Drop *version*; returns whether it was cached."""
        removed = self._programs.pop(version, None) is not None
        self._drop_idle_lock(version)
        if removed:
            log.info("player_program_evicted", player_version=version)
        return removed

    def clear(self) -> None:
        count = len(self._programs)
        self._programs.clear()
        for version in list(self._locks):
            self._drop_idle_lock(version)
        log.info("player_program_cache_cleared", evicted=count)
