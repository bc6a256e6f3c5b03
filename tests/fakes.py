# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""In-memory collaborators shared by the unit tests."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from ipsentry.audit.events import SecurityEvent
from ipsentry.audit.logger import EventSink
from ipsentry.core.constants import LogLevel
from ipsentry.core.exceptions import StorageError
from ipsentry.models.threat import Origin
from ipsentry.notifications.base import NotificationChannel
from ipsentry.notifications.events import NotificationEvent
from ipsentry.notifications.router import NotificationRouter
from ipsentry.storage.records import RecordStore


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 3, 12, 14, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class InMemoryRecordStore(RecordStore):
    """RecordStore over plain lists and dicts.

    Set ``broken = True`` to make every query raise :class:`StorageError`.
    """

    def __init__(self) -> None:
        self.events: list[SecurityEvent] = []
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.columns: dict[str, list[str]] = {}
        self.users: dict[int, dict[str, Any]] = {}
        self.broken = False

    def _check(self) -> None:
        if self.broken:
            raise StorageError("record store unavailable")

    # -- seeding helpers -------------------------------------------------

    def add_event(
        self,
        event_type: str,
        *,
        subject_id: int | None = None,
        timestamp: datetime | None = None,
        ip_address: str | None = None,
        severity: LogLevel = LogLevel.INFO,
        metadata: dict[str, Any] | None = None,
    ) -> SecurityEvent:
        event = SecurityEvent(
            event_type=event_type,
            subject_id=subject_id,
            timestamp=timestamp or datetime.now(UTC),
            ip_address=ip_address,
            severity=severity,
            metadata=metadata or {},
        )
        self.events.append(event)
        return event

    def add_table(self, name: str, rows: list[dict[str, Any]] | None = None,
                  columns: list[str] | None = None) -> None:
        self.tables[name] = list(rows or [])
        self.columns[name] = list(columns or (rows[0].keys() if rows else ["id"]))

    def add_user(self, subject_id: int, username: str, *, status: str = "active",
                 last_login_at: datetime | None = None) -> None:
        self.users[subject_id] = {
            "username": username,
            "status": status,
            "last_login_at": last_login_at,
        }

    # -- RecordStore -----------------------------------------------------

    def _matching(
        self,
        *,
        subject_id: int | None = None,
        event_type: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        severity: str | None = None,
    ) -> list[SecurityEvent]:
        result = []
        for e in self.events:
            if subject_id is not None and e.subject_id != subject_id:
                continue
            if event_type is not None and e.event_type != event_type:
                continue
            if severity is not None and e.severity != severity:
                continue
            if start is not None and e.timestamp < start:
                continue
            if end is not None and e.timestamp > end:
                continue
            result.append(e)
        return result

    async def count_events(self, *, subject_id=None, event_type=None, since=None,
                           severity=None) -> int:
        self._check()
        return len(self._matching(subject_id=subject_id, event_type=event_type,
                                  start=since, severity=severity))

    async def count_distinct_origins(self, subject_id: int, since: datetime) -> int:
        self._check()
        ips = {e.ip_address for e in self._matching(subject_id=subject_id, start=since)}
        return len({ip for ip in ips if ip})

    async def list_events(self, *, event_type=None, subject_id=None, start=None,
                          end=None) -> list[SecurityEvent]:
        self._check()
        events = self._matching(subject_id=subject_id, event_type=event_type,
                                start=start, end=end)
        return sorted(events, key=lambda e: e.timestamp, reverse=True)

    async def table_exists(self, table: str) -> bool:
        self._check()
        return table in self.tables

    async def table_columns(self, table: str) -> list[str]:
        self._check()
        return list(self.columns.get(table, []))

    async def count_rows(self, table: str, *, equals: Mapping[str, Any] | None = None,
                         before: tuple[str, datetime] | None = None) -> int:
        self._check()
        count = 0
        for row in self.tables.get(table, []):
            if any(row.get(k) != v for k, v in (equals or {}).items()):
                continue
            if before is not None:
                column, cutoff = before
                if row.get(column) is None or row[column] >= cutoff:
                    continue
            count += 1
        return count

    async def resolve_username(self, subject_id: int) -> str | None:
        self._check()
        user = self.users.get(subject_id)
        return user["username"] if user else None

    async def count_users(self, *, active_since=None, status=None) -> int:
        self._check()
        count = 0
        for user in self.users.values():
            if status is not None and user["status"] != status:
                continue
            if active_since is not None and (
                user["last_login_at"] is None or user["last_login_at"] < active_since
            ):
                continue
            count += 1
        return count


class RecordingSink(EventSink):
    """EventSink that keeps every event in memory.

    With ``broken = True`` every call raises, so callers' fail-open paths
    can be exercised.
    """

    def __init__(self) -> None:
        self.events: list[SecurityEvent] = []
        self.broken = False

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
        if self.broken:
            raise RuntimeError("sink unavailable")
        event = SecurityEvent(
            event_type=event_type,
            message=message,
            severity=severity,
            subject_id=subject_id,
            ip_address=origin.ip_address if origin else None,
            user_agent=origin.user_agent if origin else None,
            metadata=dict(metadata or {}),
        )
        self.events.append(event)
        return event

    def of_type(self, event_type: str) -> list[SecurityEvent]:
        return [e for e in self.events if e.event_type == event_type]


def compliant_store(now: datetime) -> InMemoryRecordStore:
    """A store in which every built-in compliance rule passes."""
    store = InMemoryRecordStore()
    store.add_table("users", columns=["id", "username", "email", "status", "last_login_at"])
    store.add_table("user_consents", [{"id": 1, "user_id": 1, "consent_type": "terms"}])
    store.add_table("data_exports", [])
    store.add_table("security_settings", [{"id": 1, "category": "encryption", "key": "aes"}])
    store.add_table("security_event_logs", [{"id": 1, "event_type": "login"}])
    store.add_table("backup_records", [{"id": 1, "started_at": now - timedelta(days=3)}])
    return store


class RecordingChannel(NotificationChannel):
    """Notification channel that remembers what it was sent."""

    def __init__(self, name: str = "recording", *, fail: bool = False) -> None:
        self._name = name
        self.fail = fail
        self.sent: list[NotificationEvent] = []

    @property
    def name(self) -> str:
        return self._name

    async def send(self, event: NotificationEvent) -> bool:
        if self.fail:
            raise RuntimeError("channel down")
        self.sent.append(event)
        return True


def recording_router(channel: RecordingChannel | None = None) -> tuple[NotificationRouter, RecordingChannel]:
    channel = channel or RecordingChannel()
    router = NotificationRouter()
    router.register(channel)
    return router, channel
