# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Security event persistence to the SQLite ``security_event_logs`` table."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import aiosqlite

from ipsentry.audit.events import SecurityEvent


def to_db_timestamp(value: datetime) -> str:
    """Normalise *value* to an ISO-8601 UTC string so text ordering is chronological."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


class EventFilter:
    """WHERE-clause builder shared by the event queries."""

    def __init__(self) -> None:
        self.clauses: list[str] = []
        self.params: list[Any] = []

    def add(self, clause: str, value: Any) -> None:
        if value is not None:
            self.clauses.append(clause)
            self.params.append(value)

    @property
    def where(self) -> str:
        return (" WHERE " + " AND ".join(self.clauses)) if self.clauses else ""


def build_event_filter(
    *,
    subject_id: int | None = None,
    event_type: str | None = None,
    severity: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> EventFilter:
    f = EventFilter()
    f.add("user_id = ?", subject_id)
    f.add("event_type = ?", event_type)
    f.add("severity = ?", severity)
    f.add("timestamp >= ?", to_db_timestamp(start) if start else None)
    f.add("timestamp <= ?", to_db_timestamp(end) if end else None)
    return f


class SecurityEventStore:
    """Repository for persisting and querying security events in SQLite."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def insert(self, event: SecurityEvent) -> None:
        await self._db.execute(
            """
            INSERT INTO security_event_logs (
                event_id, timestamp, event_type, severity, message,
                user_id, ip_address, user_agent, metadata
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                event.event_id,
                to_db_timestamp(event.timestamp),
                event.event_type,
                str(event.severity),
                event.message,
                event.subject_id,
                event.ip_address,
                event.user_agent,
                json.dumps(event.metadata, default=str),
            ),
        )
        await self._db.commit()

    async def get_by_id(self, event_id: str) -> SecurityEvent | None:
        cursor = await self._db.execute(
            "SELECT * FROM security_event_logs WHERE event_id = ?", (event_id,)
        )
        row = await cursor.fetchone()
        return _row_to_event(row) if row is not None else None

    async def list_events(
        self,
        *,
        subject_id: int | None = None,
        event_type: str | None = None,
        severity: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
    ) -> list[SecurityEvent]:
        """Query events with optional filters, newest first."""
        f = build_event_filter(
            subject_id=subject_id,
            event_type=event_type,
            severity=severity,
            start=start,
            end=end,
        )
        query = f"SELECT * FROM security_event_logs{f.where} ORDER BY timestamp DESC"  # noqa: S608
        params = list(f.params)
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        cursor = await self._db.execute(query, params)
        rows = await cursor.fetchall()
        return [_row_to_event(row) for row in rows]

    async def count_events(
        self,
        *,
        subject_id: int | None = None,
        event_type: str | None = None,
        severity: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> int:
        f = build_event_filter(
            subject_id=subject_id,
            event_type=event_type,
            severity=severity,
            start=start,
            end=end,
        )
        cursor = await self._db.execute(
            f"SELECT COUNT(*) FROM security_event_logs{f.where}",  # noqa: S608
            f.params,
        )
        row = await cursor.fetchone()
        return int(row[0]) if row else 0

    async def count_distinct_ips(self, subject_id: int, since: datetime) -> int:
        cursor = await self._db.execute(
            """
            SELECT COUNT(DISTINCT ip_address) FROM security_event_logs
            WHERE user_id = ? AND timestamp >= ?
              AND ip_address IS NOT NULL AND ip_address != ''
            """,
            (subject_id, to_db_timestamp(since)),
        )
        row = await cursor.fetchone()
        return int(row[0]) if row else 0


def _row_to_event(row: aiosqlite.Row) -> SecurityEvent:
    """Convert a ``security_event_logs`` row, tolerating corrupt metadata."""
    d = dict(row)
    try:
        metadata = json.loads(d.get("metadata") or "{}")
    except (json.JSONDecodeError, TypeError):
        metadata = {}
    return SecurityEvent(
        event_id=d["event_id"],
        timestamp=datetime.fromisoformat(d["timestamp"]),
        event_type=d["event_type"],
        severity=d["severity"],
        message=d.get("message") or "",
        subject_id=d.get("user_id"),
        ip_address=d.get("ip_address"),
        user_agent=d.get("user_agent"),
        metadata=metadata if isinstance(metadata, dict) else {},
    )
