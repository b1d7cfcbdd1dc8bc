from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog

from ytsearch.config import SearchSettings

TELEMETRY_LOGGER_NAME = "ytsearch.telemetry"
REDACTED = "[redacted]"

# Attribute names containing one of these carry user input or page content.
_PRIVATE_NAME_PARTS: tuple[str, ...] = ("query", "user_agent", "body", "cookie")
_MAX_TEXT_LENGTH = 160

TelemetryValue = bool | int | float | str | None


@dataclass(frozen=True)
class SearchEvent:
    """One telemetry record, e.g. `search.fetch.attempt` with `attempt=2`."""

    name: str
    attributes: dict[str, TelemetryValue] = field(default_factory=dict)


class TelemetrySink(Protocol):
    def write(self, event: SearchEvent) -> None:
        ...


class DiscardingSink:
    def write(self, event: SearchEvent) -> None:
        _ = event


class LogSink:
    def __init__(self) -> None:
        self._logger = structlog.get_logger(TELEMETRY_LOGGER_NAME)

    def write(self, event: SearchEvent) -> None:
        self._logger.info("telemetry", telemetry_event=event.name, **event.attributes)


@dataclass(frozen=True)
class TelemetryClient:
    sink: TelemetrySink = field(default_factory=DiscardingSink)
    enabled: bool = False

    @classmethod
    def disabled(cls) -> TelemetryClient:
        return cls()

    def emit(self, event_name: str, **attributes: Any) -> None:
        if not self.enabled:
            return
        self.sink.write(SearchEvent(name=event_name, attributes=_scrub(attributes)))


def build_telemetry_client(settings: SearchSettings) -> TelemetryClient:
    if not settings.telemetry_enabled or settings.telemetry_sink == "none":
        return TelemetryClient.disabled()
    return TelemetryClient(sink=LogSink(), enabled=True)


def describe_query(query: str) -> dict[str, int]:
    """Shape of a search query without its text."""
    return {"term_count": len(query.split()), "char_count": len(query)}


def _scrub(attributes: Mapping[str, Any]) -> dict[str, TelemetryValue]:
    scrubbed: dict[str, TelemetryValue] = {}
    for name, value in attributes.items():
        if any(part in name for part in _PRIVATE_NAME_PARTS):
            scrubbed[name] = REDACTED
        elif value is None or isinstance(value, bool | int | float):
            scrubbed[name] = value
        elif isinstance(value, str):
            text = " ".join(value.split())
            scrubbed[name] = text if len(text) <= _MAX_TEXT_LENGTH else text[:_MAX_TEXT_LENGTH] + "..."
        else:
            scrubbed[name] = type(value).__name__
    return scrubbed
