"""Lazy traversal of paginated listings.

``ContinuationWalker`` is an explicit state machine::

    START ──fetch initial──▶ HAS_NEXT(token) ──fetch continuation──▶ …
      │                          │
      └──── page w/o token ──────┴──▶ EXHAUSTED
      └──── fetch/parse error or cancellation ──▶ FAILED

Pages are fetched only when the consumer asks for items past the current
buffer, one fetch at a time.  A walker is single-use: restart a listing
by constructing a new walker.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable
from enum import Enum

import structlog

from tubextract.domain.entities import ListingPage, VideoSummary
from tubextract.domain.ports import PageSourcePort

log = structlog.get_logger(__name__)

# (document, is_initial) -> page
PageParser = Callable[[str, bool], ListingPage]


class WalkerState(str, Enum):
    START = "start"
    HAS_NEXT = "has_next"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class ContinuationWalker:
    """Async iterator over the video summaries of one listing traversal.

    Errors are surfaced to the consumer after the walker enters
    ``FAILED``, so "no more data" (``EXHAUSTED``) stays distinguishable
    from "broke while fetching more data".
    """

    def __init__(
        self,
        source: PageSourcePort,
        parse_page: PageParser,
        *,
        max_pages: int | None = None,
    ) -> None:
        if max_pages is not None and max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        self._source = source
        self._parse_page = parse_page
        self._max_pages = max_pages
        self._state = WalkerState.START
        self._token: str | None = None
        self._buffer: deque[VideoSummary] = deque()
        self._seen: set[str] = set()
        self._pages = 0
        self._error: BaseException | None = None

    @property
    def state(self) -> WalkerState:
        return self._state

    @property
    def token(self) -> str | None:
        """Continuation token of the next page while in ``HAS_NEXT``."""
        return self._token

    @property
    def pages_fetched(self) -> int:
        return self._pages

    @property
    def error(self) -> BaseException | None:
        return self._error

    def __aiter__(self) -> ContinuationWalker:
        return self

    async def __anext__(self) -> VideoSummary:
        while not self._buffer:
            if self._state in (WalkerState.EXHAUSTED, WalkerState.FAILED):
                raise StopAsyncIteration
            await self._advance()
        return self._buffer.popleft()

    async def collect(self, limit: int | None = None) -> list[VideoSummary]:
        """Drain the walker into a list, stopping after *limit* items."""
        items: list[VideoSummary] = []
        async for item in self:
            items.append(item)
            if limit is not None and len(items) >= limit:
                break
        return items

    def _fail(self, error: BaseException) -> None:
        self._state = WalkerState.FAILED
        self._error = error
        self._token = None

    async def _advance(self) -> None:
        initial = self._state is WalkerState.START
        try:
            if initial:
                document = await self._source.fetch_initial()
            else:
                document = await self._source.fetch_continuation(self._token)
            page = self._parse_page(document, initial)
        except asyncio.CancelledError as e:
            self._fail(e)
            log.info("listing_walk_cancelled", page=self._pages + 1)
            raise
        except Exception as e:
            self._fail(e)
            log.warning(
                "listing_walk_failed",
                page=self._pages + 1,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise

        self._pages += 1
        fresh = 0
        for item in page.items:
            if item.id in self._seen:
                log.debug("listing_duplicate_skipped", video_id=item.id)
                continue
            self._seen.add(item.id)
            self._buffer.append(item)
            fresh += 1

        next_token = page.next_token
        if next_token is not None and next_token == self._token:
            log.warning("listing_token_repeated", page=self._pages)
            next_token = None
        if self._max_pages is not None and self._pages >= self._max_pages:
            next_token = None

        if next_token:
            self._state = WalkerState.HAS_NEXT
            self._token = next_token
        else:
            self._state = WalkerState.EXHAUSTED
            self._token = None

        log.debug(
            "listing_page_fetched",
            page=self._pages,
            items=fresh,
            state=self._state.value,
        )
