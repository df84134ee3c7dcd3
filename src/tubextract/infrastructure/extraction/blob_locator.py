"""Locate embedded JSON blobs inside fetched HTML documents.

A blob starts right after a kind-specific marker (``var ytInitialData =``)
and ends where its bracket nesting balances.  The trailing ``;`` or
``</script>`` is never relied upon.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

import structlog

from tubextract.domain.exceptions import BlobMalformed, BlobMissing

log = structlog.get_logger(__name__)

_OPENERS = {"{": "}", "[": "]"}
_CLOSERS = frozenset(_OPENERS.values())
_XSSI_PREFIX = ")]}'"


class BlobKind(str, Enum):
    INITIAL_DATA = "initial_data"
    PLAYER_RESPONSE = "player_response"
    YTCFG = "ytcfg"
    CONTINUATION = "continuation"


# Prioritized: first marker that is followed by an opening bracket wins.
_MARKERS: dict[BlobKind, tuple[re.Pattern[str], ...]] = {
    BlobKind.INITIAL_DATA: (
        re.compile(r"""(?:var\s+|window\[["'])ytInitialData(?:["']\])?\s*=\s*"""),
        re.compile(r"""\bytInitialData\s*=\s*"""),
    ),
    BlobKind.PLAYER_RESPONSE: (
        re.compile(
            r"""(?:var\s+|window\[["'])ytInitialPlayerResponse(?:["']\])?\s*=\s*"""
        ),
        re.compile(r"""\bytInitialPlayerResponse\s*=\s*"""),
    ),
    BlobKind.YTCFG: (re.compile(r"""\bytcfg\.set\(\s*"""),),
}


@dataclass(frozen=True)
class RawBlob:
    """Span of a document holding one embedded JSON payload."""

    kind: BlobKind
    document: str
    start: int
    end: int

    @property
    def payload(self) -> str:
        return self.document[self.start : self.end]

    def __len__(self) -> int:
        return self.end - self.start


def scan_balanced(text: str, start: int, quotes: str = '"') -> int:
    """Return the index just past the bracket group opening at *start*.

    Tracks ``{}``/``[]`` nesting and skips string literals delimited by
    any character in *quotes*, honouring backslash escapes.

    Raises:
        ValueError: if *start* is not an opening bracket, a closer does
            not match its opener, or the text ends before nesting balances.
    """
    if start >= len(text) or text[start] not in _OPENERS:
        raise ValueError(f"expected an opening bracket at offset {start}")

    stack: list[str] = []
    quote: str | None = None
    escaped = False
    i = start
    length = len(text)
    while i < length:
        ch = text[i]
        if quote is not None:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
        elif ch in quotes:
            quote = ch
        elif ch in _OPENERS:
            stack.append(_OPENERS[ch])
        elif ch in _CLOSERS:
            if not stack or stack.pop() != ch:
                raise ValueError(f"mismatched {ch!r} at offset {i}")
            if not stack:
                return i + 1
        i += 1

    if quote is not None:
        raise ValueError("document ended inside a string literal")
    raise ValueError(f"document ended with {len(stack)} unclosed brackets")


def _as_text(document: str | bytes) -> str:
    if isinstance(document, bytes):
        return document.decode("utf-8", errors="replace")
    return document


def locate(document: str | bytes, kind: BlobKind) -> RawBlob:
    """Find the *kind* blob in *document*.

    Raises:
        BlobMissing: no marker for *kind* is followed by a JSON value.
        BlobMalformed: a marker was found but nesting never balances.
    """
    text = _as_text(document)
    markers = _MARKERS.get(kind)
    if markers is None:
        raise ValueError(f"{kind.value} blobs are not embedded in documents")

    for marker in markers:
        for match in marker.finditer(text):
            start = match.end()
            if start >= len(text) or text[start] not in _OPENERS:
                # e.g. ``var ytInitialPlayerResponse = null;``
                continue
            try:
                end = scan_balanced(text, start)
            except ValueError as e:
                log.warning(
                    "blob_malformed",
                    kind=kind.value,
                    start=start,
                    reason=str(e),
                )
                raise BlobMalformed(kind.value, str(e)) from e
            log.debug("blob_located", kind=kind.value, start=start, end=end)
            return RawBlob(kind=kind, document=text, start=start, end=end)

    log.debug("blob_missing", kind=kind.value)
    raise BlobMissing(kind.value)


def locate_json_body(
    body: str | bytes, kind: BlobKind = BlobKind.CONTINUATION
) -> RawBlob:
    """Wrap a bare JSON response (e.g. a continuation) as a blob.

    An XSSI guard prefix (``)]}'``) and surrounding whitespace are skipped.
    """
    text = _as_text(body)
    start = 0
    stripped = text.lstrip()
    if stripped.startswith(_XSSI_PREFIX):
        start = text.index(_XSSI_PREFIX) + len(_XSSI_PREFIX)

    length = len(text)
    while start < length and text[start].isspace():
        start += 1

    if start >= length:
        raise BlobMissing(kind.value)
    if text[start] not in _OPENERS:
        raise BlobMalformed(kind.value, f"unexpected {text[start]!r} at offset {start}")

    try:
        end = scan_balanced(text, start)
    except ValueError as e:
        raise BlobMalformed(kind.value, str(e)) from e
    return RawBlob(kind=kind, document=text, start=start, end=end)
