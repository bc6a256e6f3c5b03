# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Narrow query interface the engines use to reach persisted records.

The engines keep their derived state in memory and only ask the record
store for historical counts, schema facts, and display names.
:class:`SQLRecordStore` answers those questions from the SQLite database
created by :mod:`ipsentry.storage.migrations`.
"""

from __future__ import annotations

import abc
import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any

import aiosqlite

from ipsentry.audit.events import SecurityEvent
from ipsentry.audit.store import SecurityEventStore, to_db_timestamp
from ipsentry.core.exceptions import StorageError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class RecordStore(abc.ABC):
    """Abstract persistence collaborator."""

    # ------------------------------------------------------------------
    # Security event log
    # ------------------------------------------------------------------

    @abc.abstractmethod
    async def count_events(
        self,
        *,
        subject_id: int | None = None,
        event_type: str | None = None,
        since: datetime | None = None,
        severity: str | None = None,
    ) -> int:
        """Count logged events matching every given filter."""

    @abc.abstractmethod
    async def count_distinct_origins(self, subject_id: int, since: datetime) -> int:
        """Count distinct non-empty origin IPs logged for a subject since *since*."""

    @abc.abstractmethod
    async def list_events(
        self,
        *,
        event_type: str | None = None,
        subject_id: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[SecurityEvent]:
        """Return matching events, newest first."""

    # ------------------------------------------------------------------
    # Schema and row state
    # ------------------------------------------------------------------

    @abc.abstractmethod
    async def table_exists(self, table: str) -> bool:
        """Return ``True`` if a table named *table* exists."""

    @abc.abstractmethod
    async def table_columns(self, table: str) -> list[str]:
        """Return the column names of *table* (empty if it does not exist)."""

    @abc.abstractmethod
    async def count_rows(
        self,
        table: str,
        *,
        equals: Mapping[str, Any] | None = None,
        before: tuple[str, datetime] | None = None,
    ) -> int:
        """Count rows of *table*.

        Args:
            equals: Column/value pairs that must all match.
            before: ``(column, cutoff)``; only rows whose timestamp column is
                strictly earlier than *cutoff* are counted.
        """

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @abc.abstractmethod
    async def resolve_username(self, subject_id: int) -> str | None:
        """Return the display name of *subject_id*, or ``None`` if unknown."""

    @abc.abstractmethod
    async def count_users(
        self,
        *,
        active_since: datetime | None = None,
        status: str | None = None,
    ) -> int:
        """Count users, optionally only those who logged in since *active_since*."""


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        msg = f"Invalid SQL identifier: {name!r}"
        raise StorageError(msg)
    return name


class SQLRecordStore(RecordStore):
    """:class:`RecordStore` backed by an :class:`aiosqlite.Connection`."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db
        self._events = SecurityEventStore(db)

    async def count_events(
        self,
        *,
        subject_id: int | None = None,
        event_type: str | None = None,
        since: datetime | None = None,
        severity: str | None = None,
    ) -> int:
        return await self._events.count_events(
            subject_id=subject_id,
            event_type=event_type,
            severity=severity,
            start=since,
        )

    async def count_distinct_origins(self, subject_id: int, since: datetime) -> int:
        return await self._events.count_distinct_ips(subject_id, since)

    async def list_events(
        self,
        *,
        event_type: str | None = None,
        subject_id: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[SecurityEvent]:
        return await self._events.list_events(
            event_type=event_type,
            subject_id=subject_id,
            start=start,
            end=end,
        )

    async def table_exists(self, table: str) -> bool:
        cursor = await self._db.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
            (table,),
        )
        return await cursor.fetchone() is not None

    async def table_columns(self, table: str) -> list[str]:
        cursor = await self._db.execute(f"PRAGMA table_info({_check_identifier(table)})")
        rows = await cursor.fetchall()
        return [row["name"] for row in rows]

    async def count_rows(
        self,
        table: str,
        *,
        equals: Mapping[str, Any] | None = None,
        before: tuple[str, datetime] | None = None,
    ) -> int:
        clauses: list[str] = []
        params: list[Any] = []
        for column, value in (equals or {}).items():
            clauses.append(f"{_check_identifier(column)} = ?")
            params.append(value)
        if before is not None:
            column, cutoff = before
            clauses.append(f"{_check_identifier(column)} < ?")
            params.append(to_db_timestamp(cutoff))

        where = (" WHERE " + " AND ".join(clauses)) if clauses else ""
        cursor = await self._db.execute(
            f"SELECT COUNT(*) FROM {_check_identifier(table)}{where}",  # noqa: S608
            params,
        )
        row = await cursor.fetchone()
        return int(row[0]) if row else 0

    async def resolve_username(self, subject_id: int) -> str | None:
        cursor = await self._db.execute(
            "SELECT username FROM users WHERE id = ?", (subject_id,)
        )
        row = await cursor.fetchone()
        return row["username"] if row else None

    async def count_users(
        self,
        *,
        active_since: datetime | None = None,
        status: str | None = None,
    ) -> int:
        clauses: list[str] = []
        params: list[Any] = []
        if status is not None:
            clauses.append("status = ?")
            params.append(status)
        if active_since is not None:
            clauses.append("last_login_at >= ?")
            params.append(to_db_timestamp(active_since))

        where = (" WHERE " + " AND ".join(clauses)) if clauses else ""
        cursor = await self._db.execute(f"SELECT COUNT(*) FROM users{where}", params)  # noqa: S608
        row = await cursor.fetchone()
        return int(row[0]) if row else 0
