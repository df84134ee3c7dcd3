"""Parse raw blobs into immutable, schema-tagged trees.

``normalize`` never fails on unknown extra fields or on values whose
coercion is unambiguous (``"212"`` → ``212``).  It fails with
``SchemaViolation`` only when a field required by every known variant
is absent.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from types import MappingProxyType

import structlog

from tubextract.domain.exceptions import BlobMalformed, SchemaViolation
from tubextract.infrastructure.common import to_bool, to_int, to_str

from .blob_locator import BlobKind, RawBlob
from .field_table import FieldTable, Section, default_field_table

log = structlog.get_logger(__name__)

UNKNOWN_SCHEMA = "unknown"


def freeze(value: object) -> object:
    """Recursively turn dicts into read-only mappings and lists into tuples."""
    if isinstance(value, dict):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(freeze(v) for v in value)
    return value


class FieldView:
    """Typed accessors over one JSON node, keyed by logical field names.

    Accessors return ``None`` (or ``()`` for lists) when a field is absent
    or its value cannot be coerced; ``require_*`` raise ``SchemaViolation``.
    """

    __slots__ = ("_data", "_section", "_kind", "_table")

    def __init__(
        self, data: object, section: Section, table: FieldTable, kind: str
    ) -> None:
        self._data = data
        self._section = section
        self._table = table
        self._kind = kind

    @property
    def data(self) -> object:
        return self._data

    @property
    def table(self) -> FieldTable:
        return self._table

    def _candidates(self, name: str):
        for path in self._section.paths(name):
            value = path.resolve(self._data)
            if value is not None:
                yield path, value

    def _coerced(self, name: str, convert) -> object | None:
        seen = False
        for path, value in self._candidates(name):
            seen = True
            converted = convert(value)
            if converted is not None:
                return converted
        if seen:
            log.debug(
                "field_uncoercible",
                kind=self._kind,
                field=name,
                converter=convert.__name__,
            )
        return None

    def has(self, name: str) -> bool:
        return any(True for _ in self._candidates(name))

    def get(self, name: str) -> object | None:
        """Raw (frozen) value of the first resolving path."""
        for _, value in self._candidates(name):
            return value
        return None

    def get_str(self, name: str) -> str | None:
        return self._coerced(name, to_str)

    def get_int(self, name: str) -> int | None:
        return self._coerced(name, to_int)

    def get_bool(self, name: str) -> bool | None:
        return self._coerced(name, to_bool)

    def get_list(self, name: str) -> tuple:
        value = self._coerced(name, _to_tuple)
        return value if value is not None else ()

    def get_mapping(self, name: str) -> Mapping | None:
        return self._coerced(name, _to_mapping)

    def node(self, name: str, section: str) -> FieldView | None:
        """View of the mapping at *name*, read through *section*'s paths."""
        value = self.get_mapping(name)
        if value is None:
            return None
        return self.view(value, section)

    def nodes(self, name: str, section: str) -> tuple[FieldView, ...]:
        """Views of every mapping element of the list at *name*."""
        return tuple(
            self.view(item, section)
            for item in self.get_list(name)
            if isinstance(item, Mapping)
        )

    def view(self, data: object, section: str) -> FieldView:
        return FieldView(data, self._table.section(section), self._table, section)

    def tried(self, *names: str) -> list[str]:
        """Every path the table lists for *names*, in priority order."""
        return [str(p) for name in names for p in self._section.paths(name)]

    def violation(self, name: str) -> SchemaViolation:
        tried = self.tried(name)
        log.warning("schema_violation", kind=self._kind, field=name, tried=tried)
        return SchemaViolation(name, self._kind, tried=tried)

    def require_str(self, name: str) -> str:
        value = self.get_str(name)
        if value is None:
            raise self.violation(name)
        return value

    def require_int(self, name: str) -> int:
        value = self.get_int(name)
        if value is None:
            raise self.violation(name)
        return value

    def require(self, name: str) -> object:
        value = self.get(name)
        if value is None:
            raise self.violation(name)
        return value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldView):
            return NotImplemented
        return self._kind == other._kind and self._data == other._data

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self._kind!r})"


def _to_tuple(value: object) -> tuple | None:
    return value if isinstance(value, tuple) else None


def _to_mapping(value: object) -> Mapping | None:
    return value if isinstance(value, Mapping) else None


class NormalizedTree(FieldView):
    """A parsed blob tagged with the schema variant it matched."""

    __slots__ = ("blob_kind", "schema_version")

    def __init__(
        self,
        data: object,
        section: Section,
        table: FieldTable,
        blob_kind: BlobKind,
        schema_version: str,
    ) -> None:
        super().__init__(data, section, table, blob_kind.value)
        self.blob_kind = blob_kind
        self.schema_version = schema_version

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NormalizedTree):
            return NotImplemented
        return (
            self.blob_kind == other.blob_kind
            and self.schema_version == other.schema_version
            and self._data == other._data
        )

    def __repr__(self) -> str:
        return (
            f"NormalizedTree(kind={self.blob_kind.value!r}, "
            f"schema_version={self.schema_version!r})"
        )


def _parse_json(blob: RawBlob) -> object:
    try:
        return freeze(json.loads(blob.payload))
    except (ValueError, RecursionError) as e:
        log.warning(
            "blob_json_invalid",
            kind=blob.kind.value,
            start=blob.start,
            error_message=str(e),
        )
        raise BlobMalformed(blob.kind.value, f"invalid JSON: {e}") from e


def _detect_variant(data: object, section: Section) -> str:
    for variant in section.variants:
        if variant.marker.resolve(data) is not None:
            return variant.name
    return UNKNOWN_SCHEMA


def normalize(blob: RawBlob, table: FieldTable | None = None) -> NormalizedTree:
    """Parse *blob* and tag it with the first matching schema variant.

    Raises:
        BlobMalformed: the payload is not valid JSON.
        SchemaViolation: a field every variant requires is absent.
    """
    table = table or default_field_table()
    section = table.section(blob.kind.value)
    data = _parse_json(blob)

    schema_version = _detect_variant(data, section)
    tree = NormalizedTree(data, section, table, blob.kind, schema_version)

    for name in section.required:
        if not tree.has(name):
            raise tree.violation(name)

    log.debug(
        "blob_normalized",
        kind=blob.kind.value,
        schema_version=schema_version,
        table_version=table.version,
    )
    return tree
