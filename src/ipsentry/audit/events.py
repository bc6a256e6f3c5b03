# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Security event record written to the event sink."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from ipsentry.core.constants import LogLevel


class SecurityEvent(BaseModel):
    """A single entry of the security event log.

    ``event_type`` is a free-form string: the engines emit the values of
    :class:`~ipsentry.core.constants.SecurityEventType`, and the host
    application records its own raw events (``login_failed``,
    ``data_export``...) through the same sink.
    """

    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    event_type: str
    severity: LogLevel = LogLevel.INFO
    message: str = ""
    subject_id: int | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
