from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ytsearch.models.video_record import VideoRecord


def _default_thumbnails() -> list[str]:
    return []


def _default_videos() -> list[VideoRecordPayload]:
    return []


class VideoRecordPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    video_id: str = ""
    thumbnails: list[str] = Field(default_factory=_default_thumbnails)
    title: str = ""
    long_description: str = ""
    channel: str = ""
    duration: str = ""
    views: str = ""
    publish_time: str = ""
    url_suffix: str = ""
    watch_url: str = ""

    @classmethod
    def from_record(cls, record: VideoRecord) -> VideoRecordPayload:
        return cls.model_validate(record.to_dict())


class SearchResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    query: str
    count: int
    videos: list[VideoRecordPayload] = Field(default_factory=_default_videos)


class SearchErrorDetail(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str
    message: str
    retryable: bool = False
