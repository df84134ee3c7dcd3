"""Interpret cipher operation sequences over signature strings.

Pure functions: no I/O, no shared state, safe to call concurrently.
"""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import structlog

from tubextract.domain.entities import (
    CipherOperationSequence,
    PlayerProgram,
    Reverse,
    Splice,
    Stream,
    Swap,
)
from tubextract.domain.exceptions import CipherProgramNotFound, InvalidCipherInput

log = structlog.get_logger(__name__)

N_PARAM = "n"


def _apply(chars: list[str], ops: CipherOperationSequence, what: str) -> str:
    for op in ops.operations:
        if isinstance(op, Reverse):
            chars.reverse()
        elif isinstance(op, Splice):
            if op.index > len(chars):
                raise InvalidCipherInput(
                    f"Splice({op.index}) on a {what} of length {len(chars)}"
                )
            del chars[: op.index]
        elif isinstance(op, Swap):
            if not chars:
                raise InvalidCipherInput(f"Swap({op.index}) on an empty {what}")
            i = op.index % len(chars)
            chars[0], chars[i] = chars[i], chars[0]
        else:
            raise TypeError(f"unsupported cipher operation {op!r}")
    return "".join(chars)


def decipher(signature: str, ops: CipherOperationSequence) -> str:
    """Apply *ops* left to right over the characters of *signature*.

    Raises:
        InvalidCipherInput: *signature* is empty or an operation indexes
            past its end.
    """
    if not signature:
        raise InvalidCipherInput("Cannot decipher an empty signature")
    return _apply(list(signature), ops, "signature")


def resolve_n_param(value: str, n_transform: CipherOperationSequence) -> str:
    """Apply the n-parameter transform to *value*."""
    if not value:
        raise InvalidCipherInput("Cannot transform an empty n-parameter")
    return _apply(list(value), n_transform, "n-parameter")


def _with_query(url: str, updates: dict[str, str]) -> str:
    parts = urlsplit(url)
    seen = set()
    rewritten = []
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key in updates:
            if key in seen:
                continue
            seen.add(key)
            rewritten.append((key, updates[key]))
        else:
            rewritten.append((key, value))
    for key, value in updates.items():
        if key not in seen:
            rewritten.append((key, value))
    return urlunsplit(parts._replace(query=urlencode(rewritten)))


def _n_value(url: str) -> str | None:
    for key, value in parse_qsl(urlsplit(url).query, keep_blank_values=True):
        if key == N_PARAM:
            return value
    return None


def needs_player(stream: Stream) -> bool:
    """Whether resolving *stream* requires an analyzed player program."""
    return stream.is_ciphered or _n_value(stream.url or "") is not None


def resolve_url(stream: Stream, program: PlayerProgram) -> str:
    """Final fetchable URL of *stream* under *program*.

    Direct URLs pass through unless they carry an ``n`` parameter; ciphered
    payloads get the deciphered signature under their signature parameter.

    Raises:
        InvalidCipherInput: the signature or n-parameter cannot be transformed.
        CipherProgramNotFound: the URL needs an n-parameter transform the
            player does not provide.
    """
    if stream.cipher is not None:
        url = stream.cipher.url
        updates = {
            stream.cipher.signature_param: decipher(
                stream.cipher.signature, program.signature
            )
        }
    else:
        url = stream.url
        updates = {}

    n_value = _n_value(url)
    if n_value is not None:
        if program.n_transform is None:
            raise CipherProgramNotFound(program.player_version, "n-parameter transform")
        updates[N_PARAM] = resolve_n_param(n_value, program.n_transform)

    if not updates:
        return url

    resolved = _with_query(url, updates)
    log.debug(
        "stream_url_resolved",
        itag=stream.itag,
        player_version=program.player_version,
        ciphered=stream.is_ciphered,
        n_transformed=N_PARAM in updates,
    )
    return resolved
