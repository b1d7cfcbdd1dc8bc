from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from structlog.contextvars import bound_contextvars

from ytsearch.api.routes import router
from ytsearch.dependencies import get_settings, get_telemetry
from ytsearch.logging_config import configure_logging

REQUEST_ID_HEADER = "X-Request-ID"


def health_check() -> dict[str, str]:
    return {"status": "ok"}


@asynccontextmanager
async def app_lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_logging(get_settings())
    yield


def _request_id(request: Request) -> str:
    supplied = request.headers.get(REQUEST_ID_HEADER, "").strip()
    return supplied or uuid4().hex


async def tag_search_requests(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Tag logs with a request id and record how each API call ended."""
    request_id = _request_id(request)
    started_at = perf_counter()
    with bound_contextvars(request_id=request_id):
        response = await call_next(request)

    response.headers[REQUEST_ID_HEADER] = request_id
    get_telemetry().emit(
        "api.request",
        request_id=request_id,
        route=request.url.path,
        status_code=response.status_code,
        limit=request.query_params.get("limit"),
        timeout_seconds=request.query_params.get("timeout_seconds"),
        duration_ms=int((perf_counter() - started_at) * 1000),
    )
    return response


def create_app() -> FastAPI:
    app = FastAPI(title="ytsearch API", version="0.1.0", lifespan=app_lifespan)
    app.middleware("http")(tag_search_requests)
    app.include_router(router)
    app.add_api_route(
        "/health",
        health_check,
        methods=["GET"],
        tags=["system"],
        operation_id="health_check",
    )
    return app


app = create_app()
