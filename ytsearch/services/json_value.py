from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, cast

JsonKind = Literal["object", "array", "string", "number", "boolean", "null", "missing"]


@dataclass(frozen=True)
class JsonValue:
    """
    Tagged wrapper around one node of a decoded JSON document.

    Lookups never raise: asking an array for a key, or an object for an
    index, yields a `missing` node, and the typed accessors return `None`
    when the node has a different kind. Chains such as
    `node.get("a").get("b").as_string()` therefore degrade to `None`.
    """

    kind: JsonKind
    raw: Any = None

    @classmethod
    def from_raw(cls, raw: Any) -> JsonValue:
        if isinstance(raw, dict):
            return cls(kind="object", raw=raw)
        if isinstance(raw, list):
            return cls(kind="array", raw=raw)
        if isinstance(raw, str):
            return cls(kind="string", raw=raw)
        # bool before number: bool is an int subclass.
        if isinstance(raw, bool):
            return cls(kind="boolean", raw=raw)
        if isinstance(raw, int | float):
            return cls(kind="number", raw=raw)
        if raw is None:
            return cls(kind="null")
        return MISSING

    @property
    def is_missing(self) -> bool:
        return self.kind == "missing"

    def get(self, key: str) -> JsonValue:
        if self.kind != "object":
            return MISSING
        raw_dict = cast(dict[object, object], self.raw)
        if key not in raw_dict:
            return MISSING
        return JsonValue.from_raw(raw_dict[key])

    def path(self, *keys: str) -> JsonValue:
        node = self
        for key in keys:
            node = node.get(key)
            if node.is_missing:
                return MISSING
        return node

    def at(self, index: int) -> JsonValue:
        if self.kind != "array":
            return MISSING
        items = cast(list[Any], self.raw)
        if not -len(items) <= index < len(items):
            return MISSING
        return JsonValue.from_raw(items[index])

    def first(self) -> JsonValue:
        return self.at(0)

    def as_mapping(self) -> dict[str, JsonValue] | None:
        if self.kind != "object":
            return None
        raw_dict = cast(dict[object, object], self.raw)
        converted: dict[str, JsonValue] = {}
        for key, item in raw_dict.items():
            if isinstance(key, str):
                converted[key] = JsonValue.from_raw(item)
        return converted

    def as_sequence(self) -> list[JsonValue] | None:
        if self.kind != "array":
            return None
        return [JsonValue.from_raw(item) for item in cast(list[Any], self.raw)]

    def as_string(self) -> str | None:
        if self.kind != "string":
            return None
        return cast(str, self.raw)

    def string_or_empty(self) -> str:
        value = self.as_string()
        return "" if value is None else value


MISSING = JsonValue(kind="missing")
