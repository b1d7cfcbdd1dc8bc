from __future__ import annotations

import json
import logging
from typing import Any, cast

from pydantic import ValidationError

from ytsearch.errors import DecodeError, ExtractionError
from ytsearch.models.search_page_contracts import SearchPageContents
from ytsearch.services.json_value import JsonValue

LOGGER = logging.getLogger("ytsearch.initial_data")

INITIAL_DATA_MARKER = b"ytInitialData"
STATEMENT_TERMINATOR = b"};"
# Bytes allowed between the marker and the opening brace:
# `var ytInitialData = {`, `ytInitialData={`, `window["ytInitialData"] = {`.
_ASSIGNMENT_SEPARATOR_BYTES = frozenset(b" \t\r\n=:\"']")


def locate_initial_data(body: bytes, marker: bytes = INITIAL_DATA_MARKER) -> bytes | None:
    """
    Return the JSON object assigned to `marker` in a search-results page.

    `None` means the marker is not in the body at all, which callers treat
    as a page that is not ready yet. A marker without a `};` terminator
    after it is a malformed page and raises `ExtractionError`.
    """
    position = body.find(marker)
    if position < 0:
        return None

    start = position + len(marker)
    while start < len(body) and body[start] in _ASSIGNMENT_SEPARATOR_BYTES:
        start += 1

    end = body.find(STATEMENT_TERMINATOR, start)
    if end < 0:
        raise ExtractionError(
            f"Found {marker.decode('ascii', errors='replace')} at offset {position} "
            "but no terminating '};' after it."
        )
    return body[start : end + 1]


def decode_section_list(blob: bytes | str) -> list[JsonValue]:
    top_level = _decode_top_level(blob)
    if "contents" not in top_level:
        raise DecodeError("ytInitialData has no 'contents' key.")

    try:
        contents = SearchPageContents.model_validate(top_level["contents"])
    except ValidationError as exc:
        raise DecodeError(
            "ytInitialData 'contents' does not match the search results renderer path: "
            f"{_summarize_validation_error(exc)}"
        ) from exc

    sections = [JsonValue.from_raw(section) for section in contents.sections]
    LOGGER.debug("decoded search results sections count=%s", len(sections))
    return sections


def _decode_top_level(blob: bytes | str) -> dict[str, Any]:
    try:
        parsed = json.loads(blob)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DecodeError(f"ytInitialData is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise DecodeError(
            f"ytInitialData must be a JSON object, got {type(parsed).__name__}."
        )
    return cast(dict[str, Any], parsed)


def _summarize_validation_error(exc: ValidationError) -> str:
    locations = [
        ".".join(str(part) for part in error.get("loc", ())) or "<root>"
        for error in exc.errors()
    ]
    return ", ".join(locations[:3])
