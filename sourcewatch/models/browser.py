"""Pydantic models for browser session state and navigation."""

from __future__ import annotations

from typing import Literal

import pydantic

SessionState = Literal["idle", "monitoring", "terminated"]


class NavigationResult(pydantic.BaseModel):
    """Result of the initial navigation attempt."""

    success: bool
    error_message: str | None = None
