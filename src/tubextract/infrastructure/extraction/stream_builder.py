"""Build ``Stream`` descriptors from a player response.

Muxed entries come from ``formats``; ``adaptiveFormats`` are classified
as video-only or audio-only by their mime type.  Advertisement inserts
are dropped here and never surface as streams.
"""

from __future__ import annotations

from datetime import datetime, timezone
from urllib.parse import parse_qs

import structlog

from tubextract.domain.entities import (
    UNKNOWN,
    AudioTrack,
    CipherPayload,
    PlayabilityStatus,
    Stream,
    StreamKind,
    VideoTrack,
)
from tubextract.domain.exceptions import SchemaViolation, StreamsUnplayable
from tubextract.infrastructure.common import parse_codecs

from .normalizer import FieldView, NormalizedTree

log = structlog.get_logger(__name__)


def _maybe(value):
    return UNKNOWN if value is None else value


def parse_signature_cipher(raw: str) -> CipherPayload | None:
    """Decode a ``signatureCipher`` query string (``s=…&sp=…&url=…``)."""
    params = parse_qs(raw)
    signature = params.get("s", [None])[0]
    url = params.get("url", [None])[0]
    if not signature or not url:
        return None
    sp = params.get("sp", ["signature"])[0] or "signature"
    return CipherPayload(url=url, signature=signature, signature_param=sp)


def is_advertisement(node: FieldView) -> bool:
    table = node.table
    itag = node.get_int("itag")
    if itag is not None and itag in table.ad_itags:
        return True
    return any(bool(marker.resolve(node.data)) for marker in table.ad_marker_keys)


def _classify(node: FieldView, mime_type: str, adaptive: bool) -> StreamKind:
    if not adaptive:
        return StreamKind.MUXED
    if mime_type.startswith("video/"):
        return StreamKind.VIDEO_ONLY
    if mime_type.startswith("audio/"):
        return StreamKind.AUDIO_ONLY
    raise node.violation("mime_type")


def _last_modified(raw: int | None) -> datetime | None:
    # Upstream sends microseconds since the epoch.
    if raw is None or raw < 0:
        return None
    try:
        return datetime.fromtimestamp(raw / 1_000_000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _locator(node: FieldView) -> tuple[str | None, CipherPayload | None]:
    url = node.get_str("url")
    if url:
        return url, None

    raw_cipher = node.get_str("signature_cipher")
    if raw_cipher:
        payload = parse_signature_cipher(raw_cipher)
        if payload is None:
            raise node.violation("signature_cipher")
        return None, payload

    tried = node.tried("url", "signature_cipher")
    log.warning("stream_without_locator", itag=node.get_int("itag"), tried=tried)
    raise SchemaViolation("url", "stream", tried=tried)


def build_stream(node: FieldView, *, adaptive: bool) -> Stream:
    """Build one stream from a ``formats`` / ``adaptiveFormats`` entry."""
    itag = node.require_int("itag")
    full_mime = node.require_str("mime_type")
    mime_type = full_mime.split(";", 1)[0].strip()
    kind = _classify(node, mime_type, adaptive)
    url, cipher = _locator(node)

    video = None
    audio = None
    if kind in (StreamKind.MUXED, StreamKind.VIDEO_ONLY):
        video = VideoTrack(
            width=_maybe(node.get_int("width")),
            height=_maybe(node.get_int("height")),
            fps=_maybe(node.get_int("fps")),
            quality_label=_maybe(node.get_str("quality_label")),
        )
    if kind in (StreamKind.MUXED, StreamKind.AUDIO_ONLY):
        audio = AudioTrack(
            sample_rate=_maybe(node.get_int("audio_sample_rate")),
            channels=_maybe(node.get_int("audio_channels")),
            audio_quality=_maybe(node.get_str("audio_quality")),
        )

    return Stream(
        itag=itag,
        kind=kind,
        mime_type=mime_type,
        codecs=parse_codecs(full_mime),
        bitrate=_maybe(node.get_int("bitrate")),
        average_bitrate=_maybe(node.get_int("average_bitrate")),
        content_length=_maybe(node.get_int("content_length")),
        duration_ms=_maybe(node.get_int("duration_ms")),
        last_modified=_maybe(_last_modified(node.get_int("last_modified"))),
        quality=_maybe(node.get_str("quality")),
        url=url,
        cipher=cipher,
        video=video,
        audio=audio,
    )


def build_stream_list(tree: NormalizedTree) -> list[Stream]:
    """Build every non-advertisement stream of a player response.

    Raises:
        StreamsUnplayable: the playability status is not ``OK``.
        SchemaViolation: a stream entry lacks its itag, mime type or locator.
    """
    status = PlayabilityStatus.parse(tree.get_str("playability_status"))
    if not status.streams_available:
        reason = tree.get_str("playability_reason")
        log.info("streams_unplayable", status=status.value, reason=reason)
        raise StreamsUnplayable(status.value, reason)

    streams: list[Stream] = []
    skipped = 0
    for field_name, adaptive in (("muxed_formats", False), ("adaptive_formats", True)):
        for node in tree.nodes(field_name, "stream"):
            if is_advertisement(node):
                skipped += 1
                continue
            streams.append(build_stream(node, adaptive=adaptive))

    log.debug(
        "streams_built",
        count=len(streams),
        ads_skipped=skipped,
        ciphered=sum(1 for s in streams if s.is_ciphered),
    )
    return streams
