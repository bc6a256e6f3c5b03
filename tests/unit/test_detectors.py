# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Tests for the fixed-logic threat detectors."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from ipsentry.core.constants import IndicatorKind, Severity
from ipsentry.core.exceptions import DetectorError
from ipsentry.models.threat import Origin
from ipsentry.threats.detectors import (
    AuthenticationDetector,
    DataAccessDetector,
    DetectionContext,
    NetworkDetector,
    SystemOperationDetector,
    default_detectors,
)

NOON = datetime(2025, 3, 12, 12, 0, tzinfo=UTC)


def _ctx(store, event_type, *, now=NOON, metadata=None, ip=None, tz=UTC, subject_id=7):
    return DetectionContext(
        subject_id=subject_id,
        event_type=event_type,
        store=store,
        now=now,
        metadata=metadata or {},
        origin=Origin(ip_address=ip) if ip else None,
        local_tz=tz,
    )


class TestAuthenticationDetector:
    async def test_five_recent_failures_emit_high(self, store):
        for i in range(5):
            store.add_event("login_failed", subject_id=7, timestamp=NOON - timedelta(minutes=i))

        indicators = await AuthenticationDetector().detect(_ctx(store, "login_failed"))

        assert len(indicators) == 1
        assert indicators[0].severity == Severity.HIGH
        assert indicators[0].kind == IndicatorKind.AUTHENTICATION
        assert "5" in indicators[0].description
        assert indicators[0].metadata["failure_count"] == 5

    async def test_four_failures_are_below_threshold(self, store):
        for i in range(4):
            store.add_event("login_failed", subject_id=7, timestamp=NOON - timedelta(minutes=i))
        assert await AuthenticationDetector().detect(_ctx(store, "login")) == []

    async def test_failures_outside_window_are_ignored(self, store):
        for i in range(6):
            store.add_event("login_failed", subject_id=7, timestamp=NOON - timedelta(minutes=10 + i))
        assert await AuthenticationDetector().detect(_ctx(store, "login_failed")) == []

    async def test_other_subjects_failures_do_not_count(self, store):
        for _ in range(6):
            store.add_event("login_failed", subject_id=99, timestamp=NOON)
        assert await AuthenticationDetector().detect(_ctx(store, "login_failed")) == []

    @pytest.mark.parametrize("hour", [0, 3, 5, 23])
    async def test_unusual_hour_emits_medium(self, store, hour):
        now = NOON.replace(hour=hour)
        indicators = await AuthenticationDetector().detect(_ctx(store, "login", now=now))
        assert [i.severity for i in indicators] == [Severity.MEDIUM]
        assert indicators[0].metadata["login_hour"] == hour

    @pytest.mark.parametrize("hour", [6, 12, 22])
    async def test_normal_hours_are_quiet(self, store, hour):
        now = NOON.replace(hour=hour)
        assert await AuthenticationDetector().detect(_ctx(store, "login", now=now)) == []

    async def test_hour_is_evaluated_in_local_timezone(self, store):
        # 12:00 UTC is 02:00 in Honolulu
        honolulu = ZoneInfo("Pacific/Honolulu")
        indicators = await AuthenticationDetector().detect(_ctx(store, "login", tz=honolulu))
        assert len(indicators) == 1
        assert indicators[0].metadata["login_hour"] == 2

    def test_applies_only_to_auth_events(self, store):
        detector = AuthenticationDetector()
        assert detector.applies_to(_ctx(store, "login_success"))
        assert not detector.applies_to(_ctx(store, "data_access"))


class TestDataAccessDetector:
    async def test_export_burst_emits_medium(self, store):
        for i in range(10):
            store.add_event("data_export", subject_id=7, timestamp=NOON - timedelta(minutes=i))

        indicators = await DataAccessDetector().detect(
            _ctx(store, "data_access", metadata={"operation": "export"})
        )

        assert [i.severity for i in indicators] == [Severity.MEDIUM]
        assert indicators[0].metadata["export_count"] == 10

    async def test_exports_are_only_counted_for_export_operations(self, store):
        for _ in range(12):
            store.add_event("data_export", subject_id=7, timestamp=NOON)
        indicators = await DataAccessDetector().detect(
            _ctx(store, "data_access", metadata={"operation": "read"})
        )
        assert indicators == []

    async def test_sensitive_data_emits_low(self, store):
        indicators = await DataAccessDetector().detect(
            _ctx(store, "data_access", metadata={"sensitiveData": True, "dataType": "contract"})
        )
        assert [i.severity for i in indicators] == [Severity.LOW]
        assert "contract" in indicators[0].description

    async def test_sensitive_flag_without_data_type_is_ignored(self, store):
        indicators = await DataAccessDetector().detect(
            _ctx(store, "data_access", metadata={"sensitiveData": True})
        )
        assert indicators == []


class TestSystemOperationDetector:
    @pytest.mark.parametrize("operation", ["role_change", "permission_grant"])
    async def test_privilege_changes_emit_high(self, store, operation):
        indicators = await SystemOperationDetector().detect(
            _ctx(store, "system_operation", metadata={"operation": operation, "newRole": "admin"})
        )
        assert [i.severity for i in indicators] == [Severity.HIGH]
        assert indicators[0].metadata["new_role"] == "admin"

    async def test_config_change_emits_medium(self, store):
        indicators = await SystemOperationDetector().detect(
            _ctx(store, "system_operation", metadata={"operation": "config_change", "configKey": "mfa"})
        )
        assert [i.severity for i in indicators] == [Severity.MEDIUM]

    async def test_other_operations_are_quiet(self, store):
        indicators = await SystemOperationDetector().detect(
            _ctx(store, "system_operation", metadata={"operation": "restart"})
        )
        assert indicators == []


class TestNetworkDetector:
    async def test_suspicious_ip_emits_medium(self, store):
        detector = NetworkDetector(["10.0.0.50"])
        indicators = await detector.detect(_ctx(store, "data_access", ip="10.0.0.50"))
        assert [i.severity for i in indicators] == [Severity.MEDIUM]
        assert indicators[0].kind == IndicatorKind.NETWORK

    async def test_many_distinct_origins_emit_low(self, store):
        for n in range(4):
            store.add_event("login", subject_id=7, ip_address=f"203.0.113.{n}", timestamp=NOON)
        indicators = await NetworkDetector().detect(_ctx(store, "login", ip="203.0.113.0"))
        assert [i.severity for i in indicators] == [Severity.LOW]
        assert indicators[0].metadata["ip_count"] == 4

    async def test_three_distinct_origins_are_tolerated(self, store):
        for n in range(3):
            store.add_event("login", subject_id=7, ip_address=f"203.0.113.{n}", timestamp=NOON)
        assert await NetworkDetector().detect(_ctx(store, "login", ip="203.0.113.0")) == []

    @pytest.mark.parametrize("ip", [None, "unknown"])
    def test_requires_a_known_origin(self, store, ip):
        assert not NetworkDetector().applies_to(_ctx(store, "login", ip=ip))


def test_default_detectors_cover_every_family():
    names = [d.name for d in default_detectors(["10.0.0.50"])]
    assert names == ["authentication", "data_access", "system_operation", "network"]


async def test_run_wraps_store_failures(store):
    store.broken = True
    with pytest.raises(DetectorError, match="authentication detector failed"):
        await AuthenticationDetector().run(_ctx(store, "login_failed"))
