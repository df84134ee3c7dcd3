"""Page extraction use cases: document text in, domain entities out.

No I/O happens here; fetched documents are handed in by the caller.
"""

from __future__ import annotations

import re

import structlog

from tubextract.domain.entities import (
    Channel,
    ListingPage,
    PlayerRef,
    Playlist,
    Video,
    VideoSummary,
)
from tubextract.domain.exceptions import BlobMissing, ExtractionError, SchemaViolation
from tubextract.infrastructure.extraction import (
    BlobKind,
    FieldTable,
    NormalizedTree,
    build_channel,
    build_playlist,
    build_playlist_page,
    build_video,
    default_field_table,
    locate,
    locate_json_body,
    normalize,
)

log = structlog.get_logger(__name__)

_PLAYER_URL_RE = re.compile(r"/s/player/(?P<version>[A-Za-z0-9_-]+)/[A-Za-z0-9_./-]*?base\.js")
_JSON_PREFIXES = ("{", "[", ")]}'")


def _as_text(document: str | bytes) -> str:
    if isinstance(document, bytes):
        return document.decode("utf-8", errors="replace")
    return document


def _is_json_body(document: str) -> bool:
    return document.lstrip().startswith(_JSON_PREFIXES)


class PageExtractor:
    """Turns fetched documents into entities using one field table."""

    def __init__(self, table: FieldTable | None = None) -> None:
        self._table = table or default_field_table()

    @property
    def table(self) -> FieldTable:
        return self._table

    def _tree(self, document: str | bytes, kind: BlobKind) -> NormalizedTree:
        return normalize(locate(document, kind), self._table)

    def _optional_tree(
        self, document: str | bytes, kind: BlobKind
    ) -> NormalizedTree | None:
        try:
            return self._tree(document, kind)
        except BlobMissing:
            log.debug("optional_blob_missing", kind=kind.value)
            return None

    def video(self, document: str | bytes) -> Video:
        """Video with unresolved streams from a watch page.

        The player response is mandatory; initial data only adds the
        like count and may be absent.
        """
        player_response = self._tree(document, BlobKind.PLAYER_RESPONSE)
        initial_data = self._optional_tree(document, BlobKind.INITIAL_DATA)
        return build_video(player_response, initial_data)

    def playlist_page(self, document: str | bytes) -> ListingPage:
        """One listing page from a playlist document or a continuation body."""
        text = _as_text(document)
        if _is_json_body(text):
            tree = normalize(locate_json_body(text), self._table)
        else:
            tree = self._tree(text, BlobKind.INITIAL_DATA)
        return build_playlist_page(tree)

    def parse_page(self, document: str, initial: bool) -> ListingPage:
        """``PageParser`` for the continuation walker."""
        if initial:
            return build_playlist_page(self._tree(document, BlobKind.INITIAL_DATA))
        return build_playlist_page(normalize(locate_json_body(document), self._table))

    def playlist(self, document: str | bytes) -> Playlist:
        return build_playlist(self._tree(document, BlobKind.INITIAL_DATA))

    def channel(self, document: str | bytes) -> Channel:
        return build_channel(self._tree(document, BlobKind.INITIAL_DATA))

    def player_ref(self, document: str | bytes) -> PlayerRef:
        """Player script reference of a watch page.

        Read from the ytcfg blob, falling back to a scan of the document
        for the player script path.
        """
        text = _as_text(document)
        url = None
        try:
            url = self._tree(text, BlobKind.YTCFG).get_str("player_js_url")
        except ExtractionError as e:
            log.debug("ytcfg_unusable", error_type=type(e).__name__)

        match = _PLAYER_URL_RE.search(url) if url else None
        if match is None:
            match = _PLAYER_URL_RE.search(text)
            if match is None:
                log.warning("player_ref_not_found", from_ytcfg=url is not None)
                raise SchemaViolation("player_js_url", BlobKind.YTCFG.value)
            url = match.group(0)

        ref = PlayerRef(version=match.group("version"), url=url)
        log.debug("player_ref_extracted", player_version=ref.version)
        return ref


# ---------------------------------------------------------------------------
# Module-level entry points (packaged field table)
# ---------------------------------------------------------------------------


def extract_video(document: str | bytes) -> Video:
    return PageExtractor().video(document)


def extract_playlist_page(
    document: str | bytes,
) -> tuple[tuple[VideoSummary, ...], str | None]:
    """Items and next continuation token of one listing page."""
    page = PageExtractor().playlist_page(document)
    return page.items, page.next_token


def extract_playlist(document: str | bytes) -> Playlist:
    return PageExtractor().playlist(document)


def extract_channel(document: str | bytes) -> Channel:
    return PageExtractor().channel(document)


def extract_player_ref(document: str | bytes) -> PlayerRef:
    return PageExtractor().player_ref(document)
