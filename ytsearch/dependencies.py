from __future__ import annotations

from functools import lru_cache

from ytsearch.config import SearchSettings, load_settings
from ytsearch.services.youtube_search_service import YouTubeSearchService
from ytsearch.telemetry import TelemetryClient, build_telemetry_client


@lru_cache(maxsize=1)
def get_settings() -> SearchSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_search_service() -> YouTubeSearchService:
    return YouTubeSearchService.from_settings(get_settings(), telemetry=get_telemetry())


@lru_cache(maxsize=1)
def get_telemetry() -> TelemetryClient:
    return build_telemetry_client(get_settings())


def reset_cached_dependencies() -> None:
    get_search_service.cache_clear()
    get_telemetry.cache_clear()
    get_settings.cache_clear()
