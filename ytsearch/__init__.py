from ytsearch.errors import (
    DecodeError,
    ExtractionError,
    HTTPStatusError,
    InitialDataNotFoundError,
    RequestBuildError,
    SearchTimeoutError,
    TransportError,
    YouTubeSearchError,
)
from ytsearch.models.video_record import VideoRecord
from ytsearch.services.youtube_search_service import YouTubeSearchService, search

__all__ = [
    "DecodeError",
    "ExtractionError",
    "HTTPStatusError",
    "InitialDataNotFoundError",
    "RequestBuildError",
    "SearchTimeoutError",
    "TransportError",
    "VideoRecord",
    "YouTubeSearchError",
    "YouTubeSearchService",
    "search",
]
