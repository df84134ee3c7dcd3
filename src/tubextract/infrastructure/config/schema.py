"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from .defaults import (
    DEFAULT_ACCEPT_LANGUAGE,
    DEFAULT_BASE_URL,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
)

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _normalize_path(value: Any) -> Path:
    """Expand ``~`` in a path-like value; the filesystem is never touched."""
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class AppConfig(BaseModel):
    """Validated configuration after all layers are merged.

    Accepts both flat field names and the sectioned YAML shape
    (``http.timeout_seconds``); ``load_config`` feeds it the latter.
    """

    # General
    app_name: str = Field(default="tubextract", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment; prod switches the default log format to json.",
    )

    # HTTP (YAML section: http.*)
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        validation_alias=AliasChoices(
            "base_url",
            AliasPath("http", "base_url"),
        ),
        description="Origin that page, continuation and player URLs are built on.",
    )
    http_timeout_seconds: float = Field(
        default=DEFAULT_HTTP_TIMEOUT_SECONDS,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="HTTP timeout in seconds for every fetch.",
    )
    http_user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent sent with page, continuation and player fetches.",
    )
    http_accept_language: str = Field(
        default=DEFAULT_ACCEPT_LANGUAGE,
        validation_alias=AliasChoices(
            "http_accept_language",
            AliasPath("http", "accept_language"),
        ),
        description="Accept-Language header; page text parsing assumes English.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description="Log format (json in prod, console otherwise when unset).",
    )

    # Extraction (YAML section: extraction.*)
    field_table_path: Optional[Path] = Field(
        default=None,
        validation_alias=AliasChoices(
            "field_table_path",
            AliasPath("extraction", "field_table_path"),
        ),
        description="External field path table replacing the packaged one.",
    )

    @field_validator("field_table_path", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Optional[Path]:
        if v is None:
            return None
        return _normalize_path(v)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return v.rstrip("/")

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Keep log_format sane by default
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Export config in the canonical sectioned YAML shape.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "base_url": self.base_url,
                "timeout_seconds": self.http_timeout_seconds,
                "user_agent": self.http_user_agent,
                "accept_language": self.http_accept_language,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "extraction": {
                "field_table_path": str(self.field_table_path)
                if self.field_table_path
                else None
            },
        }


class EnvOverrides(BaseSettings):
    """``TUBEXTRACT_*`` environment variables, flat names only.

    ``TUBEXTRACT_HTTP_TIMEOUT_SECONDS=10`` overrides ``http.timeout_seconds``;
    unset variables stay ``None`` and are left out of the ENV layer.
    """

    model_config = SettingsConfigDict(
        env_prefix="TUBEXTRACT_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    base_url: Optional[str] = None
    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None
    http_accept_language: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    field_table_path: Optional[Path] = None

    @field_validator("field_table_path", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """Variables that were set, as a flat layer for ``load_config``."""
        return self.model_dump(exclude_none=True)
