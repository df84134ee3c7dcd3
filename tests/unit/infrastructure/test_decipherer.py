"""Tests for signature deciphering and URL resolution."""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import pytest

from tubextract.domain.entities import (
    AudioTrack,
    CipherOperationSequence,
    CipherPayload,
    PlayerProgram,
    Reverse,
    Splice,
    Stream,
    StreamKind,
    Swap,
)
from tubextract.domain.exceptions import CipherProgramNotFound, InvalidCipherInput
from tubextract.infrastructure.cipher import (
    decipher,
    needs_player,
    resolve_n_param,
    resolve_url,
)


def _ops(*ops) -> CipherOperationSequence:
    return CipherOperationSequence(player_version="v1", operations=tuple(ops))


def _program(n_ops=None) -> PlayerProgram:
    return PlayerProgram(
        player_version="v1",
        signature=_ops(Reverse(), Splice(2)),
        n_transform=_ops(*n_ops) if n_ops is not None else None,
    )


def _stream(url: str | None = None, cipher: CipherPayload | None = None) -> Stream:
    return Stream(
        itag=140,
        kind=StreamKind.AUDIO_ONLY,
        mime_type="audio/mp4",
        url=url,
        cipher=cipher,
        audio=AudioTrack(),
    )


def _query(url: str) -> dict[str, list[str]]:
    return parse_qs(urlsplit(url).query)


class TestDecipher:
    def test_swap(self) -> None:
        assert decipher("abcdef", _ops(Swap(2))) == "cbadef"

    def test_swap_wraps_modulo_length(self) -> None:
        assert decipher("abcdef", _ops(Swap(8))) == "cbadef"

    def test_splice(self) -> None:
        assert decipher("abcdef", _ops(Splice(3))) == "def"

    def test_reverse(self) -> None:
        assert decipher("abcdef", _ops(Reverse())) == "fedcba"

    def test_left_to_right(self) -> None:
        # swap -> "cbadef", splice -> "badef", reverse -> "fedab"
        assert decipher("abcdef", _ops(Swap(2), Splice(1), Reverse())) == "fedab"

    def test_order_sensitive(self) -> None:
        forward = decipher("abcdef", _ops(Swap(2), Splice(1), Reverse()))
        backward = decipher("abcdef", _ops(Reverse(), Splice(1), Swap(2)))
        assert forward != backward

    def test_empty_sequence_is_identity(self) -> None:
        assert decipher("abc", _ops()) == "abc"

    def test_deterministic(self) -> None:
        ops = _ops(Reverse(), Swap(5), Splice(1))
        assert decipher("signature", ops) == decipher("signature", ops)

    def test_empty_signature(self) -> None:
        with pytest.raises(InvalidCipherInput):
            decipher("", _ops(Reverse()))

    def test_splice_past_end(self) -> None:
        with pytest.raises(InvalidCipherInput, match="Splice"):
            decipher("abc", _ops(Splice(4)))

    def test_swap_after_splice_emptied(self) -> None:
        with pytest.raises(InvalidCipherInput, match="empty"):
            decipher("abc", _ops(Splice(3), Swap(1)))


class TestResolveNParam:
    def test_applies_transform(self) -> None:
        assert resolve_n_param("abcdef", _ops(Reverse(), Splice(1))) == "edcba"

    def test_empty_value(self) -> None:
        with pytest.raises(InvalidCipherInput):
            resolve_n_param("", _ops(Reverse()))


class TestResolveUrl:
    def test_direct_url_passes_through(self) -> None:
        url = "https://media.example/v?itag=140&expire=1"
        assert resolve_url(_stream(url=url), _program()) == url

    def test_ciphered_stream_gets_signature_param(self) -> None:
        cipher = CipherPayload(
            url="https://media.example/v?itag=140", signature="ABCDEFGHIJ", signature_param="sig"
        )
        resolved = resolve_url(_stream(cipher=cipher), _program())
        query = _query(resolved)
        assert query["sig"] == ["HGFEDCBA"]
        assert query["itag"] == ["140"]
        assert resolved.startswith("https://media.example/v?")

    def test_n_param_rewritten(self) -> None:
        url = "https://media.example/v?itag=140&n=abcdef"
        resolved = resolve_url(_stream(url=url), _program([Reverse(), Splice(1)]))
        assert _query(resolved)["n"] == ["edcba"]

    def test_n_param_without_transform(self) -> None:
        url = "https://media.example/v?n=abcdef"
        with pytest.raises(CipherProgramNotFound, match="n-parameter"):
            resolve_url(_stream(url=url), _program())

    def test_existing_signature_param_replaced(self) -> None:
        cipher = CipherPayload(
            url="https://media.example/v?sig=old&itag=1", signature="ABCDEFGHIJ", signature_param="sig"
        )
        query = _query(resolve_url(_stream(cipher=cipher), _program()))
        assert query["sig"] == ["HGFEDCBA"]


class TestNeedsPlayer:
    def test_plain_direct_url(self) -> None:
        assert not needs_player(_stream(url="https://media.example/v?itag=1&sn=2"))

    def test_direct_url_with_n(self) -> None:
        assert needs_player(_stream(url="https://media.example/v?n=abc"))

    def test_ciphered(self) -> None:
        cipher = CipherPayload(url="https://media.example/v", signature="abc")
        assert needs_player(_stream(cipher=cipher))
