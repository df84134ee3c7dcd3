"""Compile the player's cipher functions into typed operation sequences.

The player script is treated as data: the scramble function is located
by its structure, every statement is matched against known idioms and
the result is a ``CipherOperationSequence`` that the decipherer
interprets.  Player code is never executed.
"""

from __future__ import annotations

import re

import structlog

from tubextract.domain.entities import (
    CipherOp,
    CipherOperationSequence,
    PlayerProgram,
    Reverse,
)
from tubextract.domain.exceptions import (
    CipherError,
    CipherProgramNotFound,
    UnknownOperationShape,
)
from tubextract.infrastructure.extraction.blob_locator import scan_balanced

from .signatures import ALL_PLAYER_SIGNATURES, OperationShape, PlayerSignatures

log = structlog.get_logger(__name__)

_JS_QUOTES = "\"'`"
_MAX_BODY_REPR = 200
_INDEX_LITERAL = re.compile(r"[0-9]{1,9}")


def _function_body(source: str, open_brace: int) -> str:
    """Text between the braces of the function body opening at *open_brace*."""
    end = scan_balanced(source, open_brace, quotes=_JS_QUOTES)
    return source[open_brace + 1 : end - 1]


def _brace_after(source: str, pos: int) -> int | None:
    while pos < len(source) and source[pos].isspace():
        pos += 1
    if pos < len(source) and source[pos] == "{":
        return pos
    return None


class _Compiler:
    """Compiles statement lists of one player script."""

    def __init__(self, source: str, version: str, signatures: PlayerSignatures):
        self.source = source
        self.version = version
        self.sig = signatures
        self._objects: dict[str, str] = {}
        self._helpers: dict[tuple[str, str], OperationShape] = {}

    # --- helper resolution -------------------------------------------------

    def _object_text(self, name: str) -> str:
        """Source of the helper object literal, or the whole script."""
        if name in self._objects:
            return self._objects[name]

        text = self.source
        decl = re.search(
            rf"(?:var\s+|[;,\s]){re.escape(name)}\s*=\s*\{{", self.source
        )
        if decl:
            brace = decl.end() - 1
            try:
                end = scan_balanced(self.source, brace, quotes=_JS_QUOTES)
                text = self.source[brace:end]
            except ValueError:
                log.debug(
                    "cipher_helper_object_unbalanced",
                    player_version=self.version,
                    object=name,
                )
        self._objects[name] = text
        return text

    def _helper_shape(self, obj: str, helper: str) -> OperationShape:
        key = (obj, helper)
        if key in self._helpers:
            return self._helpers[key]

        text = self._object_text(obj)
        definition = re.compile(
            self.sig.helper_definition.format(helper=re.escape(helper))
        ).search(text)
        brace = _brace_after(text, definition.end()) if definition else None
        if brace is None:
            log.warning(
                "cipher_helper_not_found",
                player_version=self.version,
                object=obj,
                helper=helper,
            )
            raise CipherProgramNotFound(self.version, f"cipher helper '{helper}'")

        try:
            body = _function_body(text, brace)
        except ValueError as e:
            raise CipherProgramNotFound(
                self.version, f"body of cipher helper '{helper}'"
            ) from e

        for shape in self.sig.helper_shapes:
            if shape.pattern.search(body):
                self._helpers[key] = shape
                return shape

        log.warning(
            "cipher_unknown_operation",
            player_version=self.version,
            helper=helper,
            body=body[:_MAX_BODY_REPR],
        )
        raise UnknownOperationShape(self.version, helper, body[:_MAX_BODY_REPR])

    # --- statements --------------------------------------------------------

    def _statement(self, function_name: str, stmt: str) -> CipherOp:
        for shape in self.sig.inline_ops:
            m = shape.pattern.match(stmt)
            if m:
                arg = m.group("arg") if shape.takes_index else None
                return self._instantiate(shape, arg, function_name, stmt)

        for pattern in self.sig.helper_calls:
            m = pattern.match(stmt)
            if m:
                shape = self._helper_shape(m.group("object"), m.group("helper"))
                return self._instantiate(shape, m.group("arg"), function_name, stmt)

        log.warning(
            "cipher_unknown_statement",
            player_version=self.version,
            function=function_name,
            statement=stmt[:_MAX_BODY_REPR],
        )
        raise UnknownOperationShape(self.version, function_name, stmt[:_MAX_BODY_REPR])

    def _instantiate(
        self, shape: OperationShape, arg: str | None, function_name: str, stmt: str
    ) -> CipherOp:
        if not shape.takes_index:
            return shape.op()
        if arg is None or not _INDEX_LITERAL.fullmatch(arg):
            raise UnknownOperationShape(self.version, function_name, stmt)
        return shape.op(int(arg))

    def compile(self, function_name: str, body: str) -> CipherOperationSequence:
        statements = [s.strip() for s in body.split(";")]
        ops = tuple(self._statement(function_name, s) for s in statements if s)
        return CipherOperationSequence(player_version=self.version, operations=ops)


# --- entry points --------------------------------------------------------------


def _signature_function(
    source: str, signatures: PlayerSignatures
) -> tuple[str, str] | None:
    for pattern in signatures.entry_functions:
        m = pattern.search(source)
        if m:
            return m.group("name"), m.group("body")
    return None


def _n_function_name(source: str, signatures: PlayerSignatures) -> str | None:
    for pattern in signatures.n_function_refs:
        m = pattern.search(source)
        if not m:
            continue
        name, idx = m.group("name"), m.group("idx")
        if idx is None:
            return name
        # ``b=Xy[0](b)``: Xy is an array literal holding the function.
        array = re.search(rf"var\s+{re.escape(name)}\s*=\s*\[([^\]]*)\]", source)
        if array is None:
            return None
        entries = [e.strip() for e in array.group(1).split(",")]
        position = int(idx)
        return entries[position] if position < len(entries) else None
    return None


def _n_function_body(source: str, name: str) -> str | None:
    escaped = re.escape(name)
    for pattern in (
        rf"(?:^|[;,\s]){escaped}\s*=\s*function\([A-Za-z0-9_$]+\)",
        rf"\bfunction\s+{escaped}\([A-Za-z0-9_$]+\)",
    ):
        m = re.search(pattern, source)
        if not m:
            continue
        brace = _brace_after(source, m.end())
        if brace is None:
            continue
        try:
            return _function_body(source, brace)
        except ValueError:
            return None
    return None


def _compile_n_transform(
    compiler: _Compiler, source: str, version: str, signatures: PlayerSignatures
) -> CipherOperationSequence | None:
    """Compile the n-parameter function; ``None`` when it is not recognised.

    Throttling mitigation is optional: signature deciphering keeps working
    without it, and resolving a URL that needs it fails explicitly.
    """
    name = _n_function_name(source, signatures)
    if name is None:
        log.warning("n_function_not_found", player_version=version)
        return None

    body = _n_function_body(source, name)
    shape = signatures.split_join_body.match(body.strip()) if body else None
    if shape is None:
        log.warning("n_function_unrecognised", player_version=version, function=name)
        return None

    try:
        return compiler.compile(name, shape.group("body"))
    except CipherError as e:
        log.warning(
            "n_function_uncompilable",
            player_version=version,
            function=name,
            error_type=type(e).__name__,
            error_message=str(e),
        )
        return None


def analyze_player(
    source: str,
    player_version: str,
    signatures: tuple[PlayerSignatures, ...] = ALL_PLAYER_SIGNATURES,
) -> PlayerProgram:
    """Compile the signature scramble and n-parameter functions of a player.

    Raises:
        CipherProgramNotFound: no known layout matches the scramble
            function, or a helper it calls is missing.
        UnknownOperationShape: a helper body or statement matches no known
            operation shape.
    """
    for sig in signatures:
        found = _signature_function(source, sig)
        if found is None:
            continue

        name, body = found
        compiler = _Compiler(source, player_version, sig)
        sequence = compiler.compile(name, body)
        n_transform = _compile_n_transform(compiler, source, player_version, sig)

        log.info(
            "cipher_program_analyzed",
            player_version=player_version,
            layout=sig.name,
            ops=len(sequence),
            n_transform=n_transform is not None,
        )
        return PlayerProgram(
            player_version=player_version,
            signature=sequence,
            n_transform=n_transform,
        )

    log.error("cipher_program_not_found", player_version=player_version)
    raise CipherProgramNotFound(player_version, "signature scramble function")


def analyze(source: str, player_version: str) -> CipherOperationSequence:
    """Signature operation sequence of a player script."""
    return analyze_player(source, player_version).signature


def describe(sequence: CipherOperationSequence) -> list[str]:
    """Human-readable ops, e.g. ``["Reverse", "Splice(2)"]``."""
    out = []
    for op in sequence.operations:
        if isinstance(op, Reverse):
            out.append("Reverse")
        else:
            out.append(f"{type(op).__name__}({op.index})")
    return out
