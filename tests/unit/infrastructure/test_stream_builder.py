"""Tests for stream descriptor building."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from builders import (
    SCRAMBLED_SIGNATURE,
    audio_format,
    build_watch_html,
    ciphered_video_format,
    make_player_response,
    muxed_format,
)

from tubextract.domain.entities import UNKNOWN, StreamKind
from tubextract.domain.exceptions import SchemaViolation, StreamsUnplayable
from tubextract.infrastructure.extraction import (
    BlobKind,
    build_stream_list,
    parse_signature_cipher,
)


def _streams(tree_of, **kwargs):
    html = build_watch_html(make_player_response(**kwargs))
    return build_stream_list(tree_of(html, BlobKind.PLAYER_RESPONSE))


class TestParseSignatureCipher:
    def test_full_payload(self) -> None:
        payload = parse_signature_cipher("s=AB%3DC&sp=sig&url=https%3A%2F%2Fm.example%2Fv%3Fa%3D1")
        assert payload is not None
        assert payload.signature == "AB=C"
        assert payload.signature_param == "sig"
        assert payload.url == "https://m.example/v?a=1"

    def test_default_signature_param(self) -> None:
        payload = parse_signature_cipher("s=ABC&url=https%3A%2F%2Fm.example%2Fv")
        assert payload is not None
        assert payload.signature_param == "signature"

    def test_incomplete_payload(self) -> None:
        assert parse_signature_cipher("sp=sig&url=https%3A%2F%2Fm.example") is None
        assert parse_signature_cipher("s=ABC") is None


class TestBuildStreamList:
    def test_classifies_streams(self, tree_of) -> None:
        streams = _streams(tree_of)
        assert [(s.itag, s.kind) for s in streams] == [
            (18, StreamKind.MUXED),
            (137, StreamKind.VIDEO_ONLY),
            (140, StreamKind.AUDIO_ONLY),
        ]

    def test_muxed_stream_fields(self, tree_of) -> None:
        muxed = _streams(tree_of)[0]
        assert muxed.url == "https://media.example/videoplayback?itag=18&expire=1"
        assert muxed.cipher is None
        assert muxed.mime_type == "video/mp4"
        assert muxed.codecs == ("avc1.42001E", "mp4a.40.2")
        assert muxed.bitrate == 503000
        assert muxed.content_length == 1234567
        assert muxed.duration_ms == 212091
        assert muxed.quality == "medium"
        assert muxed.last_modified == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        assert muxed.video.quality_label == "360p"
        assert (muxed.video.width, muxed.video.height, muxed.video.fps) == (640, 360, 30)
        assert muxed.audio.sample_rate == 44100
        assert muxed.audio.channels == 2

    def test_ciphered_stream(self, tree_of) -> None:
        video = _streams(tree_of)[1]
        assert video.url is None
        assert video.cipher.signature == SCRAMBLED_SIGNATURE
        assert video.cipher.signature_param == "sig"
        assert video.cipher.url == "https://media.example/videoplayback?itag=137&expire=1"
        assert video.audio is None
        assert video.video.height == 1080

    def test_missing_optional_fields_are_unknown(self, tree_of) -> None:
        audio = _streams(tree_of)[2]
        assert audio.video is None
        assert audio.content_length is UNKNOWN
        assert audio.last_modified is UNKNOWN
        assert audio.audio.audio_quality == "AUDIO_QUALITY_MEDIUM"

    def test_numeric_strings_coerced(self, tree_of) -> None:
        streams = _streams(tree_of, formats=[muxed_format(itag="22", bitrate="1000")])
        assert streams[0].itag == 22
        assert streams[0].bitrate == 1000

    def test_advertisement_entries_skipped(self, tree_of) -> None:
        streams = _streams(
            tree_of,
            formats=[muxed_format(), muxed_format(itag=36, isAd=True)],
            adaptive_formats=[audio_format()],
        )
        assert [s.itag for s in streams] == [18, 140]

    def test_no_streaming_data(self, tree_of) -> None:
        assert _streams(tree_of, formats=[], adaptive_formats=[]) == []

    def test_unplayable_status(self, tree_of) -> None:
        with pytest.raises(StreamsUnplayable) as exc:
            _streams(tree_of, status="LOGIN_REQUIRED")
        assert exc.value.status == "LOGIN_REQUIRED"
        assert exc.value.reason == "This video is private."

    def test_entry_without_locator(self, tree_of) -> None:
        broken = muxed_format()
        del broken["url"]
        with pytest.raises(SchemaViolation) as exc:
            _streams(tree_of, formats=[broken])
        assert exc.value.kind == "stream"
        assert "signatureCipher" in exc.value.tried

    def test_entry_without_itag(self, tree_of) -> None:
        broken = audio_format()
        del broken["itag"]
        with pytest.raises(SchemaViolation) as exc:
            _streams(tree_of, formats=[], adaptive_formats=[broken])
        assert exc.value.path == "itag"

    def test_adaptive_entry_with_unknown_mime(self, tree_of) -> None:
        with pytest.raises(SchemaViolation) as exc:
            _streams(
                tree_of,
                formats=[],
                adaptive_formats=[audio_format(mimeType="text/vtt")],
            )
        assert exc.value.path == "mime_type"

    def test_broken_cipher_payload(self, tree_of) -> None:
        with pytest.raises(SchemaViolation) as exc:
            _streams(
                tree_of,
                formats=[],
                adaptive_formats=[ciphered_video_format(signatureCipher="sp=sig")],
            )
        assert exc.value.path == "signature_cipher"
