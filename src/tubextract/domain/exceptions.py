"""Error taxonomy for page extraction and stream resolution.

Structural errors (blob, schema, entity) abort only the entity or page
being built.  Cipher errors abort stream resolution for one player
version.  ``TransportError`` is raised by transport adapters and only
propagated by the core.
"""

from __future__ import annotations

from collections.abc import Iterable


class TubextractError(Exception):
    """Base class for every error raised by tubextract."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint


# --- Extraction --------------------------------------------------------------


class ExtractionError(TubextractError):
    """Base class for blob, schema and entity failures."""


class BlobMissing(ExtractionError):
    """The marker for a blob kind is absent from the document.

    Recoverable: the page simply does not carry this feature.
    """

    def __init__(self, kind: str) -> None:
        super().__init__(f"No {kind} blob found in document")
        self.kind = kind


class BlobMalformed(ExtractionError):
    """A blob marker was found but its payload could not be delimited or parsed."""

    def __init__(self, kind: str, reason: str) -> None:
        super().__init__(
            f"Malformed {kind} blob: {reason}",
            hint="The page layout probably changed upstream.",
        )
        self.kind = kind
        self.reason = reason


class SchemaViolation(ExtractionError):
    """A field required by every known schema variant is absent or uncoercible."""

    def __init__(self, path: str, kind: str, *, tried: Iterable[str] = ()) -> None:
        self.path = path
        self.kind = kind
        self.tried = tuple(tried)
        message = f"{kind}: required field '{path}' is missing or has the wrong type"
        if self.tried:
            message += f" (tried: {', '.join(self.tried)})"
        super().__init__(message, hint="Refresh the field path table.")


class IncompleteEntity(ExtractionError):
    """Mandatory entity fields (id, title) are absent after normalization."""

    def __init__(self, entity: str, missing_fields: Iterable[str]) -> None:
        self.entity = entity
        self.missing_fields = tuple(missing_fields)
        super().__init__(
            f"{entity} is missing mandatory fields: {', '.join(self.missing_fields)}"
        )


class FieldTableError(TubextractError):
    """The field path table could not be read or failed validation."""


class InvalidId(TubextractError, ValueError):
    """An identifier does not match the expected alphabet or length."""

    def __init__(self, kind: str, value: str, reason: str) -> None:
        super().__init__(f"Invalid {kind} id {value!r}: {reason}")
        self.kind = kind
        self.value = value


class StreamsUnplayable(TubextractError):
    """Upstream refused to hand out streams for this video."""

    def __init__(self, status: str, reason: str | None = None) -> None:
        message = f"Streams unavailable: {status}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.status = status
        self.reason = reason


# --- Cipher ------------------------------------------------------------------


class CipherError(TubextractError):
    """Base class for player analysis and deciphering failures."""


class CipherProgramNotFound(CipherError):
    """The player script no longer contains a recognised cipher structure.

    Distinct from transport failures: this means the site changed.
    """

    def __init__(self, player_version: str, what: str) -> None:
        super().__init__(
            f"Player {player_version}: {what} not found",
            hint="The player code changed upstream; update the signature table.",
        )
        self.player_version = player_version
        self.what = what


class UnknownOperationShape(CipherError):
    """A cipher helper body matched none of the known operation shapes."""

    def __init__(self, player_version: str, function_name: str, body: str) -> None:
        super().__init__(
            f"Player {player_version}: unknown cipher operation "
            f"[{function_name}]: {body!r}",
            hint="The player code changed upstream; update the signature table.",
        )
        self.player_version = player_version
        self.function_name = function_name
        self.body = body


class InvalidCipherInput(CipherError):
    """A signature or n-parameter value cannot be transformed."""


# --- Transport ---------------------------------------------------------------


class TransportError(TubextractError):
    """A fetch failed.  Fatal and non-retryable for the call that issued it."""

    def __init__(self, url: str, message: str, *, status: int | None = None) -> None:
        super().__init__(f"{message}: {url}")
        self.url = url
        self.status = status
