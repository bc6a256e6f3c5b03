# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Shared test fixtures and configuration."""

from datetime import UTC

import pytest
from fakes import FrozenClock, InMemoryRecordStore, RecordingSink

from ipsentry.compliance.evaluator import ComplianceEvaluator
from ipsentry.risk.tracker import AuditRiskTracker
from ipsentry.storage.database import init_db
from ipsentry.threats.scorer import ThreatScorer


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def scorer(store, sink, clock) -> ThreatScorer:
    # Pin detection to UTC so the 14:00 default clock is inside normal hours
    return ThreatScorer(store, sink, local_tz=UTC, clock=clock)


@pytest.fixture
def tracker(store, sink, clock) -> AuditRiskTracker:
    return AuditRiskTracker(store, sink, clock=clock)


@pytest.fixture
def evaluator(store, sink, clock) -> ComplianceEvaluator:
    return ComplianceEvaluator(store, sink, clock=clock)


@pytest.fixture
async def db(tmp_path):
    """A migrated SQLite connection in a temporary directory."""
    conn = await init_db(tmp_path / "ipsentry_test.db")
    try:
        yield conn
    finally:
        await conn.close()
