from __future__ import annotations

import threading
from collections.abc import Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient
from page_fixtures import MARKERLESS_PAGE, search_page, video_renderer

from ytsearch.dependencies import reset_cached_dependencies
from ytsearch.errors import TransportError
from ytsearch.main import create_app
from ytsearch.telemetry import SearchEvent, TelemetryClient

_FETCH_TARGET = "ytsearch.services.youtube_search_service._fetch_search_page"


def _fetch_returning(*responses: tuple[int, bytes] | Exception) -> Any:
    remaining = list(responses)

    def _fetch(
        url: str,
        *,
        timeout_seconds: float | None,
        headers: dict[str, str],
    ) -> tuple[int, bytes]:
        _ = (url, timeout_seconds, headers)
        response = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        if isinstance(response, Exception):
            raise response
        return response

    return _fetch


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(create_app()) as test_client:
        yield test_client


def test_health_check(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-ID"]


def test_search_returns_records(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    page = search_page(
        video_renderer(
            "abc123",
            "Hello",
            navigationEndpoint={
                "commandMetadata": {"webCommandMetadata": {"url": "/watch?v=abc123"}}
            },
        ),
        video_renderer("def456", "World"),
    )
    monkeypatch.setattr(_FETCH_TARGET, _fetch_returning((200, page)))

    response = client.get("/search", params={"q": "hello world"})

    assert response.status_code == 200
    body = response.json()
    assert body["query"] == "hello world"
    assert body["count"] == 2
    first = body["videos"][0]
    assert first["video_id"] == "abc123"
    assert first["title"] == "Hello"
    assert first["thumbnails"] == []
    assert first["url_suffix"] == "/watch?v=abc123"
    assert first["watch_url"] == "https://youtube.com/watch?v=abc123"
    assert body["videos"][1]["watch_url"] == ""


def test_search_limit_truncates(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    page = search_page(video_renderer("a"), video_renderer("b"), video_renderer("c"))
    monkeypatch.setattr(_FETCH_TARGET, _fetch_returning((200, page)))

    response = client.get("/search", params={"q": "x", "limit": 2})

    assert response.status_code == 200
    assert [video["video_id"] for video in response.json()["videos"]] == ["a", "b"]


def test_search_echoes_request_id(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(_FETCH_TARGET, _fetch_returning((200, search_page())))

    response = client.get("/search", params={"q": "x"}, headers={"X-Request-ID": "req-42"})

    assert response.status_code == 200
    assert response.json()["count"] == 0
    assert response.headers["X-Request-ID"] == "req-42"


@pytest.mark.parametrize(
    ("params", "expected_status"),
    [
        ({}, 422),
        ({"q": ""}, 422),
        ({"q": "x", "limit": 0}, 422),
        ({"q": "x", "limit": 101}, 422),
        ({"q": "x", "timeout_seconds": "soon"}, 422),
    ],
)
def test_search_validates_query_parameters(
    client: TestClient,
    params: dict[str, Any],
    expected_status: int,
) -> None:
    response = client.get("/search", params=params)

    assert response.status_code == expected_status


@pytest.mark.parametrize(
    ("fetch_response", "expected_code", "retryable"),
    [
        ((503, b""), "upstream_status", True),
        ((404, b""), "upstream_status", False),
        (TransportError("connection reset"), "upstream_unreachable", True),
        ((200, MARKERLESS_PAGE), "initial_data_unavailable", True),
        ((200, b'var ytInitialData = {"contents": []};'), "initial_data_unparseable", False),
    ],
)
def test_search_maps_upstream_failures_to_502(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
    fetch_response: tuple[int, bytes] | Exception,
    expected_code: str,
    retryable: bool,
) -> None:
    monkeypatch.setenv("YTSEARCH_MARKER_MAX_ATTEMPTS", "2")
    reset_cached_dependencies()
    monkeypatch.setattr(_FETCH_TARGET, _fetch_returning(fetch_response))

    response = client.get("/search", params={"q": "x"})

    assert response.status_code == 502
    detail = response.json()["detail"]
    assert detail["code"] == expected_code
    assert detail["retryable"] is retryable
    assert detail["message"]


def test_search_bad_base_url_is_a_server_error(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("YTSEARCH_BASE_URL", "ftp://youtube.com")
    reset_cached_dependencies()

    response = client.get("/search", params={"q": "x"})

    assert response.status_code == 500
    assert response.json()["detail"]["code"] == "request_build_failed"


def test_search_timeout_maps_to_504(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    release = threading.Event()

    def _blocking_fetch(
        url: str,
        *,
        timeout_seconds: float | None,
        headers: dict[str, str],
    ) -> tuple[int, bytes]:
        _ = (url, timeout_seconds, headers)
        release.wait(5)
        return 200, search_page()

    monkeypatch.setattr(_FETCH_TARGET, _blocking_fetch)

    try:
        response = client.get("/search", params={"q": "x", "timeout_seconds": 0.05})
    finally:
        release.set()

    assert response.status_code == 504
    detail = response.json()["detail"]
    assert detail["code"] == "search_timeout"
    assert detail["retryable"] is True


class _CaptureSink:
    def __init__(self) -> None:
        self.events: list[SearchEvent] = []

    def write(self, event: SearchEvent) -> None:
        self.events.append(event)


def test_search_requests_are_recorded_without_the_query(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    sink = _CaptureSink()
    monkeypatch.setattr(
        "ytsearch.main.get_telemetry",
        lambda: TelemetryClient(sink=sink, enabled=True),
    )
    monkeypatch.setattr(_FETCH_TARGET, _fetch_returning((200, search_page(video_renderer("a")))))

    response = client.get(
        "/search",
        params={"q": "secret words", "limit": 5},
        headers={"X-Request-ID": "req-7"},
    )

    assert response.status_code == 200
    assert [event.name for event in sink.events] == ["api.request"]
    attributes = sink.events[0].attributes
    assert attributes["request_id"] == "req-7"
    assert attributes["route"] == "/search"
    assert attributes["status_code"] == 200
    assert attributes["limit"] == "5"
    assert attributes["timeout_seconds"] is None
    assert "secret words" not in str(attributes)
