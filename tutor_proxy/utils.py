from datetime import datetime, timezone
from typing import Any, Iterable

MISSING: Any = object()


def includes_any(text: str, patterns: Iterable[str]) -> bool:
    low = text.lower()
    return any(p in low for p in patterns)


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a trailing Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def json_type_name(value: Any) -> str:
    """Name the JSON type of a decoded value; pass MISSING for an absent key."""
    if value is MISSING:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"
