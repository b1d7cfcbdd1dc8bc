from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Generic, TypeVar, cast
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode, urlsplit
from urllib.request import Request, urlopen

from ytsearch.config import DEFAULT_BASE_URL, DEFAULT_MARKER, SearchSettings, load_settings
from ytsearch.errors import (
    HTTPStatusError,
    InitialDataNotFoundError,
    RequestBuildError,
    SearchTimeoutError,
    TransportError,
    YouTubeSearchError,
)
from ytsearch.models.video_record import VideoRecord
from ytsearch.services.initial_data import decode_section_list, locate_initial_data
from ytsearch.services.record_extractor import extract_video_records
from ytsearch.telemetry import TelemetryClient, describe_query

LOGGER = logging.getLogger("ytsearch.search")

_T = TypeVar("_T")

TimeoutLike = float | int | timedelta | None


@dataclass
class _RaceOutcome(Generic[_T]):
    result: _T | None = None
    error: Exception | None = None


class YouTubeSearchService:
    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        marker: str = DEFAULT_MARKER,
        user_agent: str | None = None,
        http_timeout_seconds: float = 0.0,
        default_timeout_seconds: float = 0.0,
        marker_max_attempts: int = 5,
        marker_retry_backoff_seconds: float = 0.5,
        marker_retry_backoff_max_seconds: float = 8.0,
        telemetry: TelemetryClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._marker = marker.encode("utf-8")
        self._user_agent = user_agent
        self._http_timeout_seconds = max(0.0, http_timeout_seconds)
        self._default_timeout_seconds = default_timeout_seconds
        self._marker_max_attempts = max(0, marker_max_attempts)
        self._marker_retry_backoff_seconds = max(0.0, marker_retry_backoff_seconds)
        self._marker_retry_backoff_max_seconds = max(0.0, marker_retry_backoff_max_seconds)
        self._telemetry = telemetry if telemetry is not None else TelemetryClient.disabled()

    @classmethod
    def from_settings(
        cls,
        settings: SearchSettings,
        *,
        telemetry: TelemetryClient | None = None,
    ) -> YouTubeSearchService:
        return cls(
            base_url=settings.base_url,
            marker=settings.marker,
            user_agent=settings.user_agent,
            http_timeout_seconds=settings.http_timeout_seconds,
            default_timeout_seconds=settings.default_timeout_seconds,
            marker_max_attempts=settings.marker_max_attempts,
            marker_retry_backoff_seconds=settings.marker_retry_backoff_seconds,
            marker_retry_backoff_max_seconds=settings.marker_retry_backoff_max_seconds,
            telemetry=telemetry,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def build_search_url(self, query: str) -> str:
        parsed = urlsplit(self._base_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise RequestBuildError(f"Invalid search base URL: {self._base_url!r}")
        return f"{self._base_url}/results?{urlencode({'search_query': query})}"

    def search(
        self,
        query: str,
        timeout: TimeoutLike = None,
        *,
        limit: int | None = None,
    ) -> list[VideoRecord]:
        """
        Run one search and return the video hits in page order.

        A positive `timeout` (seconds or `timedelta`) races the whole
        pipeline against a timer and raises `SearchTimeoutError` as soon as
        it elapses. The deadline is also pushed into every HTTP request and
        the marker retry loop, so the abandoned worker stops shortly after.
        Zero, negative or missing timeouts run the pipeline synchronously.
        """
        timeout_seconds = _timeout_to_seconds(timeout, default=self._default_timeout_seconds)
        url = self.build_search_url(query)
        started_at = time.monotonic()
        self._telemetry.emit(
            "search.start",
            timeout_seconds=timeout_seconds,
            limit=limit,
            **describe_query(query),
        )

        try:
            if timeout_seconds > 0:
                deadline = started_at + timeout_seconds
                records = _race_against_timer(
                    lambda: self._run_pipeline(url, deadline=deadline, limit=limit),
                    deadline=deadline,
                    timeout_seconds=timeout_seconds,
                )
            else:
                records = self._run_pipeline(url, deadline=None, limit=limit)
        except SearchTimeoutError as exc:
            if exc.timeout_seconds is None:
                exc.timeout_seconds = timeout_seconds
            LOGGER.warning("search timed out timeout_seconds=%s", timeout_seconds)
            self._telemetry.emit(
                "search.timeout",
                timeout_seconds=timeout_seconds,
                duration_ms=_elapsed_ms(started_at),
            )
            raise
        except YouTubeSearchError as exc:
            LOGGER.warning("search failed error_type=%s error=%s", type(exc).__name__, exc)
            self._telemetry.emit(
                "search.error",
                error_type=type(exc).__name__,
                duration_ms=_elapsed_ms(started_at),
            )
            raise

        LOGGER.info(
            "search finished records=%s duration_ms=%s",
            len(records),
            _elapsed_ms(started_at),
        )
        self._telemetry.emit(
            "search.finish",
            records=len(records),
            duration_ms=_elapsed_ms(started_at),
        )
        return records

    def _run_pipeline(
        self,
        url: str,
        *,
        deadline: float | None,
        limit: int | None,
    ) -> list[VideoRecord]:
        blob = self._fetch_initial_data(url, deadline=deadline)
        sections = decode_section_list(blob)
        return extract_video_records(sections, limit=limit)

    def _fetch_initial_data(self, url: str, *, deadline: float | None) -> bytes:
        attempt = 0
        while True:
            attempt += 1
            self._telemetry.emit("search.fetch.attempt", attempt=attempt)
            request_timeout = self._request_timeout_seconds(deadline)
            try:
                status_code, body = _fetch_search_page(
                    url,
                    timeout_seconds=request_timeout,
                    headers=self._request_headers(),
                )
            except TransportError as exc:
                # A socket timeout set from the remaining budget is the deadline
                # expiring, not a network failure.
                if (
                    deadline is not None
                    and _is_timeout(exc.__cause__)
                    and not self._http_timeout_applied(request_timeout)
                ):
                    raise _deadline_exceeded(deadline) from exc
                raise
            if status_code != 200:
                raise HTTPStatusError(
                    f"Search request returned HTTP {status_code}.",
                    status_code=status_code,
                )

            blob = locate_initial_data(body, self._marker)
            if blob is not None:
                LOGGER.debug("initial data located attempt=%s bytes=%s", attempt, len(blob))
                return blob

            self._telemetry.emit("search.marker.missing", attempt=attempt)
            if self._marker_max_attempts and attempt >= self._marker_max_attempts:
                raise InitialDataNotFoundError(
                    f"Search page did not contain {self._marker.decode('utf-8')} "
                    f"after {attempt} attempts.",
                    attempts=attempt,
                )

            delay_seconds = self._marker_backoff_seconds(attempt)
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise _deadline_exceeded(deadline)
                delay_seconds = min(delay_seconds, remaining)
            LOGGER.info(
                "search page missing initial data; retrying attempt=%s max_attempts=%s "
                "delay_seconds=%.2f",
                attempt,
                self._marker_max_attempts or "unbounded",
                delay_seconds,
            )
            if delay_seconds > 0:
                time.sleep(delay_seconds)

    def _marker_backoff_seconds(self, attempt: int) -> float:
        if self._marker_retry_backoff_seconds <= 0:
            return 0.0
        exponent = max(0, attempt - 1)
        # Cap the exponent so the float stays finite on long unbounded runs.
        delay = self._marker_retry_backoff_seconds * (2 ** min(exponent, 32))
        return min(delay, self._marker_retry_backoff_max_seconds)

    def _request_timeout_seconds(self, deadline: float | None) -> float | None:
        http_timeout = self._http_timeout_seconds if self._http_timeout_seconds > 0 else None
        if deadline is None:
            return http_timeout

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise _deadline_exceeded(deadline)
        if http_timeout is None:
            return remaining
        return min(http_timeout, remaining)

    def _http_timeout_applied(self, request_timeout: float | None) -> bool:
        return (
            request_timeout is not None
            and self._http_timeout_seconds > 0
            and request_timeout >= self._http_timeout_seconds
        )

    def _request_headers(self) -> dict[str, str]:
        if self._user_agent is None:
            return {}
        return {"User-Agent": self._user_agent}


def search(
    query: str,
    timeout: TimeoutLike = None,
    *,
    limit: int | None = None,
    settings: SearchSettings | None = None,
) -> list[VideoRecord]:
    resolved_settings = settings if settings is not None else load_settings()
    service = YouTubeSearchService.from_settings(resolved_settings)
    return service.search(query, timeout, limit=limit)


def _fetch_search_page(
    url: str,
    *,
    timeout_seconds: float | None,
    headers: dict[str, str],
) -> tuple[int, bytes]:
    try:
        request = Request(url, headers=headers, method="GET")
    except ValueError as exc:
        raise RequestBuildError(f"Could not build search request for {url!r}: {exc}") from exc

    try:
        with urlopen(request, timeout=timeout_seconds) as response:
            status_code = int(response.getcode() or 0)
            body = response.read()
    except HTTPError as exc:
        # Status errors are reported by the caller; the body is irrelevant.
        exc.close()
        return int(exc.code), b""
    except (URLError, TimeoutError, OSError) as exc:
        raise TransportError(f"Search request failed: {exc}") from exc
    return status_code, body


def _race_against_timer(
    work: Callable[[], _T],
    *,
    deadline: float,
    timeout_seconds: float,
) -> _T:
    done = threading.Event()
    outcome: _RaceOutcome[_T] = _RaceOutcome()

    def _run() -> None:
        try:
            outcome.result = work()
        except Exception as exc:
            outcome.error = exc
        finally:
            done.set()

    worker = threading.Thread(target=_run, name="ytsearch-search", daemon=True)
    worker.start()

    # Same deadline as the worker. The outcome is only read after `done`
    # is observed.
    if not done.wait(max(0.0, deadline - time.monotonic())):
        raise SearchTimeoutError(
            f"Search did not finish within {timeout_seconds:g} seconds.",
            timeout_seconds=timeout_seconds,
        )
    if outcome.error is not None:
        raise outcome.error
    return cast(_T, outcome.result)


def _is_timeout(error: BaseException | None) -> bool:
    if isinstance(error, URLError):
        return isinstance(error.reason, TimeoutError)
    return isinstance(error, TimeoutError)


def _timeout_to_seconds(timeout: TimeoutLike, *, default: float) -> float:
    if timeout is None:
        return default
    if isinstance(timeout, timedelta):
        return timeout.total_seconds()
    return float(timeout)


def _deadline_exceeded(deadline: float) -> SearchTimeoutError:
    overrun = max(0.0, time.monotonic() - deadline)
    return SearchTimeoutError(f"Search deadline passed {overrun:.3f} seconds ago.")


def _elapsed_ms(started_at: float) -> int:
    return int((time.monotonic() - started_at) * 1000)
