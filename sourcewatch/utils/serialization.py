"""Shared serialization helpers for log records.

Provides the ``snake_to_camel`` alias generator used by the
Pydantic record models, plus the pretty-printer and preview
truncation used when records are written to the traffic log.
"""

from __future__ import annotations

import json

import pydantic


def snake_to_camel(name: str) -> str:
    """Convert a snake_case string to camelCase.

    Args:
        name: A snake_case identifier such as
            ``"is_service_worker"``.

    Returns:
        The camelCase equivalent, e.g. ``"isServiceWorker"``.
    """
    parts = name.split("_")
    return parts[0] + "".join(w.capitalize() for w in parts[1:])


def truncate(text: str | None, limit: int) -> str | None:
    """Return at most *limit* characters of *text*, marking a cut with ``...``."""
    if text is None:
        return None
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def to_pretty_json(record: pydantic.BaseModel | dict[str, object]) -> str:
    """Render *record* as 2-space indented JSON.

    Pydantic models are dumped by alias with ``None`` fields
    omitted, so keys match the camelCase wire names.
    """
    if isinstance(record, pydantic.BaseModel):
        data = record.model_dump(by_alias=True, exclude_none=True)
    else:
        data = record
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)
