from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from structlog.contextvars import bind_contextvars, reset_contextvars

from ytsearch.dependencies import get_search_service
from ytsearch.errors import (
    DecodeError,
    ExtractionError,
    HTTPStatusError,
    RequestBuildError,
    SearchTimeoutError,
    TransportError,
    YouTubeSearchError,
)
from ytsearch.models.search_contracts import (
    SearchErrorDetail,
    SearchResponse,
    VideoRecordPayload,
)
from ytsearch.services.youtube_search_service import YouTubeSearchService

router = APIRouter()


def _error_response(exc: YouTubeSearchError) -> HTTPException:
    if isinstance(exc, SearchTimeoutError):
        status_code, code, retryable = 504, "search_timeout", True
    elif isinstance(exc, HTTPStatusError):
        status_code, code = 502, "upstream_status"
        retryable = exc.status_code >= 500 or exc.status_code in {408, 429}
    elif isinstance(exc, TransportError):
        status_code, code, retryable = 502, "upstream_unreachable", True
    elif isinstance(exc, ExtractionError):
        status_code, code, retryable = 502, "initial_data_unavailable", True
    elif isinstance(exc, DecodeError):
        status_code, code, retryable = 502, "initial_data_unparseable", False
    elif isinstance(exc, RequestBuildError):
        status_code, code, retryable = 500, "request_build_failed", False
    else:
        status_code, code, retryable = 500, "search_failed", False

    detail = SearchErrorDetail(code=code, message=str(exc), retryable=retryable)
    return HTTPException(status_code=status_code, detail=detail.model_dump())


@router.get(
    "/search",
    response_model=SearchResponse,
    tags=["search"],
    operation_id="search_videos",
)
def search_videos(
    service: Annotated[YouTubeSearchService, Depends(get_search_service)],
    q: Annotated[str, Query(min_length=1, description="Search query.")],
    timeout_seconds: Annotated[
        float | None,
        Query(description="Overall deadline; zero or negative disables it."),
    ] = None,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> SearchResponse:
    context_tokens = bind_contextvars(search_limit=limit)
    try:
        records = service.search(q, timeout_seconds, limit=limit)
    except YouTubeSearchError as exc:
        raise _error_response(exc) from exc
    finally:
        reset_contextvars(**context_tokens)

    return SearchResponse(
        query=q,
        count=len(records),
        videos=[VideoRecordPayload.from_record(record) for record in records],
    )
