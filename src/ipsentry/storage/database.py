# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""SQLite connection setup for the record store and the event sink.

Connections are returned to the caller rather than held in module state;
the application context owns the connection it opened.
"""

from __future__ import annotations

from pathlib import Path

import aiosqlite

from ipsentry.core.exceptions import StorageError
from ipsentry.storage.migrations import run_migrations


async def init_db(
    db_path: Path | str = "ipsentry.db",
    *,
    auto_migrate: bool = True,
) -> aiosqlite.Connection:
    """Open a connection, optionally run migrations, and return it.

    Enables WAL mode and foreign keys.  When *auto_migrate* is True (the
    default), pending schema migrations are applied.
    """
    try:
        db = await aiosqlite.connect(str(db_path))
    except Exception as exc:
        msg = f"Failed to open database at {db_path}: {exc}"
        raise StorageError(msg) from exc

    try:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA journal_mode=WAL")
        await db.execute("PRAGMA foreign_keys=ON")
        if auto_migrate:
            await run_migrations(db)
    except Exception as exc:
        await db.close()
        msg = f"Failed to initialize database at {db_path}: {exc}"
        raise StorageError(msg) from exc

    return db
