# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Storage layer -- SQLite connection, migrations, and the record store."""

from ipsentry.storage.database import init_db
from ipsentry.storage.migrations import run_migrations
from ipsentry.storage.records import RecordStore, SQLRecordStore

__all__ = [
    "RecordStore",
    "SQLRecordStore",
    "init_db",
    "run_migrations",
]
