from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFAULT_WATCH_BASE_URL = "https://youtube.com"


@dataclass(frozen=True)
class VideoRecord:
    """
    One normalized search hit.

    Every field is best-effort: a value missing from the page is an empty
    string (or an empty tuple for thumbnails), never an error.
    """

    video_id: str = ""
    thumbnails: tuple[str, ...] = ()
    title: str = ""
    long_description: str = ""
    channel: str = ""
    duration: str = ""
    views: str = ""
    publish_time: str = ""
    url_suffix: str = ""

    @property
    def watch_url(self) -> str:
        return build_watch_url(self.url_suffix)

    def to_dict(self) -> dict[str, Any]:
        return {
            "video_id": self.video_id,
            "thumbnails": list(self.thumbnails),
            "title": self.title,
            "long_description": self.long_description,
            "channel": self.channel,
            "duration": self.duration,
            "views": self.views,
            "publish_time": self.publish_time,
            "url_suffix": self.url_suffix,
            "watch_url": self.watch_url,
        }


def build_watch_url(url_suffix: str, *, base_url: str = DEFAULT_WATCH_BASE_URL) -> str:
    if not url_suffix:
        return ""
    return f"{base_url.rstrip('/')}{url_suffix}"
