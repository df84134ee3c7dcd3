"""Layered configuration loading: defaults < YAML < ENV < CLI."""

from __future__ import annotations

from collections.abc import Iterator
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import structlog
import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

log = structlog.get_logger(__name__)

_GENERAL_KEYS = ("app_name", "environment")

# Section -> {flat key: key inside the section}
_SECTIONS: dict[str, dict[str, str]] = {
    "http": {
        "base_url": "base_url",
        "http_timeout_seconds": "timeout_seconds",
        "http_user_agent": "user_agent",
        "http_accept_language": "accept_language",
    },
    "logging": {
        "log_level": "level",
        "log_format": "format",
    },
    "extraction": {
        "field_table_path": "field_table_path",
    },
}


def _merge_into(target: dict[str, Any], layer: Mapping[str, Any]) -> None:
    """Nested mappings merge key by key; any other value replaces."""
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            target[key] = value


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Bring one layer into the sectioned shape ``AppConfig`` validates.

    Layers may mix sectioned blocks (``http: {timeout_seconds: 5}``) with
    flat keys (``http_timeout_seconds``); flat keys win within a layer.
    """
    out: dict[str, Any] = {k: layer[k] for k in _GENERAL_KEYS if k in layer}

    for section, flat_keys in _SECTIONS.items():
        block = layer.get(section)
        merged = dict(block) if isinstance(block, Mapping) else {}
        for flat_key, section_key in flat_keys.items():
            if flat_key in layer:
                merged[section_key] = layer[flat_key]
        if merged:
            out[section] = merged

    return out


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return parsed


def _layers(
    config_path: Path | None, cli_overrides: Mapping[str, Any]
) -> Iterator[tuple[str, Mapping[str, Any]]]:
    yield "defaults", deepcopy(DEFAULT_CONFIG)
    if config_path is not None:
        yield "yaml", _read_yaml(config_path)
    yield "env", EnvOverrides().to_update_dict()
    yield "cli", cli_overrides


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """Merge every configuration layer and validate the result once.

    A ``.env`` file, when given, only feeds the ENV layer; variables
    already set in the process environment win over it.  Nothing is
    written to disk.

    Raises:
        FileNotFoundError: *config_path* or *dotenv_path* does not exist.
        ValueError: the YAML root is not a mapping, or validation fails.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    merged: dict[str, Any] = {}
    for name, layer in _layers(config_path, cli_overrides or {}):
        section_layer = _sectioned(layer)
        if section_layer and name != "defaults":
            log.debug("config_layer_applied", layer=name, keys=sorted(section_layer))
        _merge_into(merged, section_layer)

    return AppConfig.model_validate(merged)
