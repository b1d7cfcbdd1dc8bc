from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

import structlog
from structlog.typing import EventDict, Processor

from ytsearch.config import SearchSettings
from ytsearch.telemetry import TELEMETRY_LOGGER_NAME

LOG_FILE_NAME = "ytsearch.log"
TELEMETRY_LOG_FILE_NAME = "ytsearch-telemetry.log"

_PACKAGE_LOGGER_NAME = "ytsearch"


def configure_logging(settings: SearchSettings, *, stream: TextIO | None = None) -> Path | None:
    """
    Send `ytsearch.*` logs to `stream` (stdout by default) and, when
    `log_dir` is set, to JSON files.

    Telemetry events never reach the console. Without a `log_dir` they are
    dropped. Returns the path of the main log file, if any.
    """
    _configure_structlog()

    console_stream = stream if stream is not None else sys.stdout
    console_handler = logging.StreamHandler(console_stream)
    console_handler.setLevel(_resolve_log_level(settings.log_level))
    console_handler.setFormatter(_console_formatter(colors=_is_tty(console_stream)))

    search_handlers: list[logging.Handler] = [console_handler]
    telemetry_handlers: list[logging.Handler] = [logging.NullHandler()]
    log_file: Path | None = None
    if settings.log_dir is not None:
        settings.log_dir.mkdir(parents=True, exist_ok=True)
        log_file = settings.log_dir / LOG_FILE_NAME
        search_handlers.append(_json_file_handler(log_file, level=logging.DEBUG))
        telemetry_handlers = [
            _json_file_handler(settings.log_dir / TELEMETRY_LOG_FILE_NAME, level=logging.INFO)
        ]

    _install_handlers(_PACKAGE_LOGGER_NAME, logging.DEBUG, search_handlers)
    _install_handlers(TELEMETRY_LOGGER_NAME, logging.INFO, telemetry_handlers)

    logging.getLogger("ytsearch.logging").debug(
        "logging configured console_level=%s log_file=%s",
        settings.log_level.upper(),
        log_file,
    )
    return log_file


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _install_handlers(logger_name: str, level: int, handlers: list[logging.Handler]) -> None:
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    logger.propagate = False
    for stale in list(logger.handlers):
        logger.removeHandler(stale)
        stale.close()
    for handler in handlers:
        logger.addHandler(handler)


def _json_file_handler(path: Path, *, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_pre_chain(),
            processors=[
                _add_thread_name,
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(sort_keys=True),
            ],
        )
    )
    return handler


def _console_formatter(*, colors: bool) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_pre_chain(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=colors),
        ],
    )


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
    ]


def _add_thread_name(_logger: object, _method_name: str, event_dict: EventDict) -> EventDict:
    # Timed searches run on the `ytsearch-search` worker thread.
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord):
        event_dict["thread_name"] = record.threadName
    return event_dict


def _resolve_log_level(raw_level: str) -> int:
    level = logging.getLevelName(raw_level.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _is_tty(stream: object) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty()) if callable(isatty) else False
