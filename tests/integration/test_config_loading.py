"""Integration tests for configuration loading with layered precedence.

Exercises the real load_config() with YAML files, .env files, environment
variables and CLI overrides: defaults < YAML < ENV < CLI.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml

from tubextract.infrastructure.config.load import load_config

pytestmark = pytest.mark.integration


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    """Write a minimal YAML config and return its path."""
    config = {
        "app_name": "tubextract-test",
        "environment": "test",
        "http": {
            "base_url": "https://yt.example/",
            "timeout_seconds": 15.0,
            "user_agent": "TestAgent/1.0",
        },
        "logging": {"level": "DEBUG", "format": "console"},
        "extraction": {"field_table_path": str(tmp_path / "paths.yaml")},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


class TestDefaultsOnly:
    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "tubextract"
        assert config.environment == "dev"
        assert config.base_url == "https://www.youtube.com"
        assert config.http_timeout_seconds == 30.0
        assert config.log_level == "INFO"
        assert config.log_format == "console"  # dev -> console
        assert config.field_table_path is None

    def test_defaults_derive_log_format_from_environment(self) -> None:
        config = load_config(cli_overrides={"environment": "prod"})
        assert config.log_format == "json"


class TestYamlOverrides:
    def test_yaml_overrides_defaults(self, yaml_config: Path, tmp_path: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "tubextract-test"
        assert config.environment == "test"
        assert config.base_url == "https://yt.example"
        assert config.http_timeout_seconds == 15.0
        assert config.http_user_agent == "TestAgent/1.0"
        assert config.log_level == "DEBUG"
        assert config.field_table_path == tmp_path / "paths.yaml"

    def test_yaml_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nonexistent.yaml")

    def test_yaml_partial_override_preserves_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "partial.yaml"
        path.write_text(yaml.dump({"http": {"timeout_seconds": 99.0}}), encoding="utf-8")

        config = load_config(config_path=path)
        assert config.http_timeout_seconds == 99.0
        assert config.http_accept_language == "en"  # default preserved
        assert config.app_name == "tubextract"

    def test_empty_yaml_is_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(config_path=path).app_name == "tubextract"

    def test_non_mapping_yaml_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_config(config_path=path)

    def test_invalid_timeout_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.dump({"http": {"timeout_seconds": 0}}), encoding="utf-8")
        with pytest.raises(ValueError, match="http_timeout_seconds"):
            load_config(config_path=path)


class TestEnvOverrides:
    def test_env_overrides_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TUBEXTRACT_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("TUBEXTRACT_HTTP_TIMEOUT_SECONDS", "60.0")

        config = load_config(config_path=yaml_config)
        assert config.log_level == "WARNING"
        assert config.http_timeout_seconds == 60.0
        assert config.app_name == "tubextract-test"

    def test_env_overrides_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TUBEXTRACT_ENVIRONMENT", "prod")

        config = load_config()
        assert config.environment == "prod"
        assert config.log_format == "json"

    def test_dotenv_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("TUBEXTRACT_BASE_URL", raising=False)
        dotenv = tmp_path / ".env"
        dotenv.write_text("TUBEXTRACT_BASE_URL=https://mirror.example\n", encoding="utf-8")
        try:
            config = load_config(dotenv_path=dotenv)
        finally:
            os.environ.pop("TUBEXTRACT_BASE_URL", None)
        assert config.base_url == "https://mirror.example"

    def test_missing_dotenv_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(dotenv_path=tmp_path / "missing.env")


class TestCliOverrides:
    def test_cli_overrides_yaml_and_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TUBEXTRACT_LOG_LEVEL", "WARNING")

        config = load_config(
            config_path=yaml_config,
            cli_overrides={"log_level": "ERROR"},
        )
        assert config.log_level == "ERROR"

    def test_cli_overrides_with_sectioned_format(self, yaml_config: Path) -> None:
        config = load_config(
            config_path=yaml_config,
            cli_overrides={"http": {"timeout_seconds": 5.0}},
        )
        assert config.http_timeout_seconds == 5.0
        assert config.http_user_agent == "TestAgent/1.0"

    def test_cli_field_table_path(self) -> None:
        config = load_config(cli_overrides={"field_table_path": "~/paths.yaml"})
        assert config.field_table_path == Path("~/paths.yaml").expanduser()


class TestSectionedExport:
    def test_round_trips_through_loader(self, yaml_config: Path, tmp_path: Path) -> None:
        config = load_config(config_path=yaml_config)
        exported = tmp_path / "exported.yaml"
        exported.write_text(yaml.dump(config.to_sectioned_dict()), encoding="utf-8")
        assert load_config(config_path=exported) == config
