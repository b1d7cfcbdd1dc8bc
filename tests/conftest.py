from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from ytsearch.dependencies import reset_cached_dependencies


@pytest.fixture(autouse=True)
def _isolated_settings_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:  # pyright: ignore[reportUnusedFunction]
    monkeypatch.setenv("YTSEARCH_TELEMETRY_ENABLED", "0")
    monkeypatch.setenv("YTSEARCH_MARKER_RETRY_BACKOFF_SECONDS", "0")
    for name in ("YTSEARCH_LOG_DIR", "YTSEARCH_BASE_URL", "YTSEARCH_USER_AGENT"):
        monkeypatch.delenv(name, raising=False)
    reset_cached_dependencies()
    yield
    reset_cached_dependencies()
    # Handlers installed by configure_logging may point at per-test streams.
    for logger_name in ("ytsearch", "ytsearch.telemetry"):
        logger = logging.getLogger(logger_name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
