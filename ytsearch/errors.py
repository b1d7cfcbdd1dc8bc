from __future__ import annotations


class YouTubeSearchError(Exception):
    pass


class RequestBuildError(YouTubeSearchError):
    pass


class TransportError(YouTubeSearchError):
    pass


class HTTPStatusError(YouTubeSearchError):
    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class ExtractionError(YouTubeSearchError):
    pass


class InitialDataNotFoundError(ExtractionError):
    def __init__(self, message: str, *, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class DecodeError(YouTubeSearchError):
    pass


class SearchTimeoutError(YouTubeSearchError, TimeoutError):
    def __init__(self, message: str, *, timeout_seconds: float | None = None) -> None:
        super().__init__(message)
        self.timeout_seconds = timeout_seconds
