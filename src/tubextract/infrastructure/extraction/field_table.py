"""Prioritized alternate field paths, loaded from YAML.

The table maps logical field names onto the concrete JSON paths known
for each upstream schema variant.  A new upstream layout is supported by
appending a path alternative to the YAML file; no code changes.

Path syntax::

    videoDetails.thumbnail.thumbnails   # mapping keys
    tabs.0.tabRenderer                  # decimal segment indexes a list
    contents.*.videoRenderer.videoId    # first element the rest resolves in
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Dict, List, Optional

import structlog
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from tubextract.domain.exceptions import FieldTableError

log = structlog.get_logger(__name__)

_PACKAGE = "tubextract.infrastructure.extraction"
_DEFAULT_TABLE = "data/field_paths.yaml"
_WILDCARD = "*"


# === Pydantic validation models ===


class VariantModel(BaseModel):
    name: str = Field(..., min_length=1)
    marker: str = Field(..., min_length=1)


class SectionModel(BaseModel):
    """One blob kind or node kind and the logical fields it carries."""

    required: List[str] = Field(default_factory=list)
    variants: List[VariantModel] = Field(default_factory=list)
    fields: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator("fields")
    @classmethod
    def _validate_paths(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        for name, paths in v.items():
            if not paths:
                raise ValueError(f"field '{name}' needs at least one path")
            for path in paths:
                if not path or any(not seg for seg in path.split(".")):
                    raise ValueError(f"field '{name}' has an empty path segment")
        return v

    @model_validator(mode="after")
    def _validate_required(self) -> "SectionModel":
        unknown = [name for name in self.required if name not in self.fields]
        if unknown:
            raise ValueError(f"required fields without paths: {', '.join(unknown)}")
        return self


class FieldTableModel(BaseModel):
    version: str
    sections: Dict[str, SectionModel]
    ad_itags: List[int] = Field(default_factory=list)
    ad_marker_keys: List[str] = Field(default_factory=list)
    description: Optional[str] = None


# === Frozen runtime table ===


@dataclass(frozen=True)
class FieldPath:
    raw: str
    segments: tuple[str, ...]

    @classmethod
    def parse(cls, raw: str) -> FieldPath:
        return cls(raw=raw, segments=tuple(raw.split(".")))

    def resolve(self, node: object) -> object | None:
        """Walk *node* along this path; ``None`` when any step is absent."""
        return _walk(node, self.segments)

    def __str__(self) -> str:
        return self.raw


def _walk(node: object, segments: Sequence[str]) -> object | None:
    for i, seg in enumerate(segments):
        if node is None:
            return None
        if seg == _WILDCARD:
            if isinstance(node, Mapping):
                children = list(node.values())
            elif _is_list(node):
                children = list(node)
            else:
                return None
            rest = segments[i + 1 :]
            for child in children:
                found = _walk(child, rest)
                if found is not None:
                    return found
            return None
        if isinstance(node, Mapping):
            node = node.get(seg)
        elif _is_list(node) and seg.isascii() and seg.isdigit():
            idx = int(seg)
            node = node[idx] if idx < len(node) else None
        else:
            return None
    return node


def _is_list(node: object) -> bool:
    return isinstance(node, Sequence) and not isinstance(node, (str, bytes))


@dataclass(frozen=True)
class Variant:
    name: str
    marker: FieldPath


@dataclass(frozen=True)
class Section:
    name: str
    fields: Mapping[str, tuple[FieldPath, ...]]
    required: tuple[str, ...] = ()
    variants: tuple[Variant, ...] = ()

    def paths(self, field_name: str) -> tuple[FieldPath, ...]:
        return self.fields.get(field_name, ())


@dataclass(frozen=True)
class FieldTable:
    version: str
    sections: Mapping[str, Section]
    ad_itags: frozenset[int] = frozenset()
    ad_marker_keys: tuple[FieldPath, ...] = ()

    def section(self, name: str) -> Section:
        try:
            return self.sections[name]
        except KeyError:
            raise FieldTableError(
                f"Field table {self.version} has no section '{name}'"
            ) from None


def to_field_table(model: FieldTableModel) -> FieldTable:
    """Convert the validated pydantic model into the frozen runtime table."""
    sections = {}
    for name, sec in model.sections.items():
        sections[name] = Section(
            name=name,
            fields={
                field_name: tuple(FieldPath.parse(p) for p in paths)
                for field_name, paths in sec.fields.items()
            },
            required=tuple(sec.required),
            variants=tuple(
                Variant(name=v.name, marker=FieldPath.parse(v.marker))
                for v in sec.variants
            ),
        )
    return FieldTable(
        version=model.version,
        sections=sections,
        ad_itags=frozenset(model.ad_itags),
        ad_marker_keys=tuple(FieldPath.parse(k) for k in model.ad_marker_keys),
    )


def parse_field_table(raw: str, *, source: str = "<string>") -> FieldTable:
    """Validate YAML text and return the runtime table."""
    try:
        data = yaml.safe_load(raw)
        if data is None:
            raise FieldTableError("Field table YAML is empty")
        if not isinstance(data, dict):
            raise FieldTableError("Field table YAML root must be a mapping")
        model = FieldTableModel.model_validate(data)
    except ValidationError as e:
        log.error(
            "field_table_validation_failed",
            source=source,
            error_type="ValidationError",
            error_details=e.errors(),
        )
        raise FieldTableError(str(e)) from e
    except yaml.YAMLError as e:
        log.error(
            "field_table_validation_failed",
            source=source,
            error_type=type(e).__name__,
            error_message=str(e),
        )
        raise FieldTableError(str(e)) from e

    table = to_field_table(model)
    log.debug(
        "field_table_loaded",
        source=source,
        version=table.version,
        sections=len(table.sections),
    )
    return table


def load_field_table(path: Path | None = None) -> FieldTable:
    """Load a field table from *path*, or the packaged table when ``None``."""
    if path is None:
        return default_field_table()
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        log.error(
            "field_table_load_failed",
            source=str(path),
            error_type=type(e).__name__,
            error_message=str(e),
        )
        raise FieldTableError(str(e)) from e
    return parse_field_table(raw, source=str(path))


@lru_cache(maxsize=1)
def default_field_table() -> FieldTable:
    raw = resources.files(_PACKAGE).joinpath(_DEFAULT_TABLE).read_text(encoding="utf-8")
    return parse_field_table(raw, source=_DEFAULT_TABLE)
