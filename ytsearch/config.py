from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://youtube.com"
DEFAULT_MARKER = "ytInitialData"
_BOOLEAN_COERCION_FIELDS: tuple[str, ...] = ("telemetry_enabled",)


def _resolve_path(value: str | Path) -> Path:
    return Path(value).expanduser().resolve()


def _parse_bool_with_default(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value == 1:
            return True
        if value == 0:
            return False
        return default
    if not isinstance(value, str):
        return default

    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _normalize_optional_text(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        return None
    normalized = value.strip()
    if normalized:
        return normalized
    return None


class SearchSettings(BaseSettings):
    """
    Runtime configuration for search, logging and telemetry.

    Every option can be set through a `YTSEARCH_*` environment variable or
    a `.env` file in the working directory.
    """

    model_config = SettingsConfigDict(
        env_prefix="YTSEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Request and page extraction.
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Site root; search requests go to `{base_url}/results`.",
    )
    marker: str = Field(
        default=DEFAULT_MARKER,
        description="Token that precedes the embedded JSON blob in the results page.",
    )
    user_agent: str | None = Field(
        default=None,
        description="Optional User-Agent header. Unset sends urllib's default headers only.",
    )
    http_timeout_seconds: float = Field(
        default=0.0,
        ge=0.0,
        description="Per-request transport timeout. `0` leaves requests unbounded.",
    )
    default_timeout_seconds: float = Field(
        default=0.0,
        description=(
            "Overall search timeout used when callers pass none. "
            "Zero or negative disables the timeout race."
        ),
    )

    # Marker retry policy.
    marker_max_attempts: int = Field(
        default=5,
        ge=0,
        description=(
            "Requests issued while the results page lacks the marker. "
            "`0` retries until the marker appears or a request fails."
        ),
    )
    marker_retry_backoff_seconds: float = Field(
        default=0.5,
        ge=0.0,
        description="Base delay before re-issuing a request whose page lacked the marker.",
    )
    marker_retry_backoff_max_seconds: float = Field(
        default=8.0,
        ge=0.0,
        description="Upper bound for the exponential marker retry delay.",
    )

    # Logging.
    log_dir: Path | None = Field(
        default=None,
        description="Directory for JSON log files. Unset logs to the console only.",
    )
    log_level: str = Field(
        default="INFO",
        description="Console log level (stdout).",
    )

    # Telemetry.
    telemetry_enabled: bool = Field(
        default=True,
        description="Enable lightweight internal telemetry events.",
    )
    telemetry_sink: Literal["none", "log"] = Field(
        default="log",
        description=(
            "Telemetry sink backend. `log` emits structured telemetry locally; "
            "`none` disables sink output."
        ),
    )

    @field_validator("base_url", mode="before")
    @classmethod
    def _normalize_base_url(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("YTSEARCH_BASE_URL must be a string.")
        normalized = value.strip().rstrip("/")
        if not normalized:
            raise ValueError("YTSEARCH_BASE_URL must not be empty.")
        return normalized

    @field_validator("marker", mode="before")
    @classmethod
    def _normalize_marker(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("YTSEARCH_MARKER must be a string.")
        normalized = value.strip()
        if not normalized:
            raise ValueError("YTSEARCH_MARKER must not be empty.")
        return normalized

    @field_validator("telemetry_sink", mode="before")
    @classmethod
    def _normalize_telemetry_sink(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("YTSEARCH_TELEMETRY_SINK must be a string.")
        normalized = value.strip().lower()
        if normalized in {"none", "log"}:
            return normalized
        raise ValueError("YTSEARCH_TELEMETRY_SINK must be set to: none, log.")

    @field_validator("log_dir", mode="before")
    @classmethod
    def _normalize_log_dir(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return _resolve_path(value)

    @field_validator(*_BOOLEAN_COERCION_FIELDS, mode="before")
    @classmethod
    def _normalize_booleans(cls, value: Any, info: ValidationInfo) -> bool:
        field_name = info.field_name
        assert field_name is not None
        default_value = cls.model_fields[field_name].default
        assert isinstance(default_value, bool)
        return _parse_bool_with_default(value, default=default_value)

    @field_validator("user_agent", mode="before")
    @classmethod
    def _normalize_optional_strings(cls, value: Any) -> str | None:
        return _normalize_optional_text(value)


def load_settings() -> SearchSettings:
    return SearchSettings()
