# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Security event sink writing to structured JSON files and SQLite."""

from __future__ import annotations

import abc
import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ipsentry.audit.events import SecurityEvent
from ipsentry.audit.store import SecurityEventStore
from ipsentry.core.constants import LogLevel
from ipsentry.models.threat import Origin

_logger = logging.getLogger("ipsentry.audit")

_PY_LEVELS: dict[LogLevel, int] = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.CRITICAL: logging.CRITICAL,
}


class EventSink(abc.ABC):
    """Destination for security events emitted by the engines.

    Callers never inspect the outcome; a sink that fails must not break the
    operation that produced the event.
    """

    @abc.abstractmethod
    async def log_security_event(
        self,
        event_type: str,
        message: str,
        severity: LogLevel,
        *,
        subject_id: int | None = None,
        origin: Origin | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> SecurityEvent:
        """Record one security event and return it."""


class SecurityEventLogger(EventSink):
    """Records security events to daily JSONL files and the event log table.

    The logger provides fire-and-forget semantics: failures to persist an
    event are logged but never propagate to the caller.
    """

    def __init__(
        self,
        store: SecurityEventStore | None = None,
        *,
        log_dir: Path | None = None,
    ) -> None:
        self._store = store
        self._log_dir = log_dir
        if self._log_dir is not None:
            self._log_dir.mkdir(parents=True, exist_ok=True)

    async def log_security_event(
        self,
        event_type: str,
        message: str,
        severity: LogLevel,
        *,
        subject_id: int | None = None,
        origin: Origin | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> SecurityEvent:
        event = SecurityEvent(
            event_type=event_type,
            severity=severity,
            message=f"Security Event: {message}",
            subject_id=subject_id,
            ip_address=origin.ip_address if origin else None,
            user_agent=origin.user_agent if origin else None,
            metadata={"event_type": event_type, "type": "security_event", **(metadata or {})},
        )
        return await self.log(event)

    async def log(self, event: SecurityEvent) -> SecurityEvent:
        """Persist *event* to the JSON log file and the database."""
        self._write_json_log(event)
        await self._persist_to_db(event)

        _logger.log(
            _PY_LEVELS.get(event.severity, logging.INFO),
            "security event=%s type=%s subject=%s message=%s",
            event.event_id,
            event.event_type,
            event.subject_id,
            event.message,
        )
        return event

    def _write_json_log(self, event: SecurityEvent) -> None:
        if self._log_dir is None:
            return
        try:
            today = datetime.now(UTC).strftime("%Y-%m-%d")
            log_file = self._log_dir / f"security-{today}.jsonl"
            line = json.dumps(event.model_dump(mode="json"), default=str)
            with log_file.open("a") as fh:
                fh.write(line + "\n")
        except Exception:
            _logger.exception("Failed to write JSON security event log")

    async def _persist_to_db(self, event: SecurityEvent) -> None:
        if self._store is None:
            return
        try:
            await self._store.insert(event)
        except Exception:
            _logger.exception("Failed to persist security event to database")
