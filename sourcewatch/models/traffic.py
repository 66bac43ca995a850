"""Pydantic models for observed traffic and sources-value detections.

Records are immutable snapshots written once to the traffic log;
nothing keeps them after emission.  Keys serialise in camelCase
so the log matches the browser's own field naming.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

import pydantic
from sourcewatch.utils import serialization

DetectionChannel = Literal[
    "request",
    "websocket-sent",
    "websocket-received",
    "execution-context",
    "console",
    "evaluation",
    "service-worker-script",
    "service-worker-version",
]


def now_iso() -> str:
    """Return the current UTC time in ISO-8601 form."""
    return datetime.now(timezone.utc).isoformat()


class TrafficEvent(pydantic.BaseModel):
    """Snapshot of one observed request or response."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel,
        populate_by_name=True,
        frozen=True,
    )

    timestamp: str = pydantic.Field(default_factory=now_iso)
    url: str
    method: str | None = None
    status: int | None = None
    headers: dict[str, str] = pydantic.Field(default_factory=dict)
    resource_type: str | None = None
    is_service_worker: bool
    body: str | None = None


class SourceDetection(pydantic.BaseModel):
    """A captured sources value seen again in later traffic."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel,
        populate_by_name=True,
        frozen=True,
    )

    channel: DetectionChannel
    url: str | None = None
    type: str | None = None
    status: str | None = None
    resource_type: str | None = None
    post_data: str | None = None
    payload: str | None = None
    context: str | None = None


class SourceCapture(pydantic.BaseModel):
    """Announcement of a newly registered sources value."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel,
        populate_by_name=True,
        frozen=True,
    )

    value: str
    total_values: int
