from __future__ import annotations

import logging
from collections.abc import Sequence

from ytsearch.models.video_record import VideoRecord
from ytsearch.services.json_value import JsonValue

LOGGER = logging.getLogger("ytsearch.record_extractor")


def extract_video_records(
    sections: Sequence[JsonValue],
    *,
    limit: int | None = None,
) -> list[VideoRecord]:
    records: list[VideoRecord] = []
    skipped_sections = 0
    skipped_items = 0

    for section in sections:
        # Ads, shelves and continuation sections have no itemSectionRenderer.
        items = section.path("itemSectionRenderer", "contents").as_sequence()
        if items is None:
            skipped_sections += 1
            continue

        for item in items:
            renderer = item.get("videoRenderer")
            if renderer.as_mapping() is None:
                skipped_items += 1
                continue
            records.append(_build_video_record(renderer))
            if limit is not None and len(records) >= limit:
                LOGGER.debug("record limit reached limit=%s", limit)
                return records

    LOGGER.debug(
        "extracted video records count=%s skipped_sections=%s skipped_items=%s",
        len(records),
        skipped_sections,
        skipped_items,
    )
    return records


def _build_video_record(renderer: JsonValue) -> VideoRecord:
    return VideoRecord(
        video_id=renderer.get("videoId").string_or_empty(),
        thumbnails=_extract_thumbnail_urls(renderer.get("thumbnail")),
        title=_first_run_text(renderer.get("title")),
        long_description=_first_run_text(renderer.get("descriptionSnippet")),
        channel=_first_run_text(renderer.get("longBylineText")),
        duration=_simple_text(renderer.get("lengthText")),
        views=_simple_text(renderer.get("viewCountText")),
        publish_time=_simple_text(renderer.get("publishedTimeText")),
        url_suffix=renderer.path(
            "navigationEndpoint",
            "commandMetadata",
            "webCommandMetadata",
            "url",
        ).string_or_empty(),
    )


def _extract_thumbnail_urls(thumbnail: JsonValue) -> tuple[str, ...]:
    entries = thumbnail.get("thumbnails").as_sequence() or []
    urls: list[str] = []
    for entry in entries:
        url_value = entry.get("url").as_string()
        if url_value is not None:
            urls.append(url_value)
    return tuple(urls)


def _first_run_text(text_node: JsonValue) -> str:
    return text_node.get("runs").first().get("text").string_or_empty()


def _simple_text(text_node: JsonValue) -> str:
    return text_node.get("simpleText").string_or_empty()
