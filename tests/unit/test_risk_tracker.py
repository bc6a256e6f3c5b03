# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Tests for AuditRiskTracker: trail, metrics, risk, dashboard, cleanup."""

from __future__ import annotations

from datetime import timedelta

from fakes import recording_router

from ipsentry.core.constants import (
    AlertType,
    LogLevel,
    MetricCategory,
    MetricStatus,
    MetricTrend,
    RiskLevel,
    Severity,
)
from ipsentry.models.threat import Origin
from ipsentry.notifications.events import EventType
from ipsentry.risk.tracker import AuditRiskTracker, metric_status


class TestRecordAuditEvent:
    async def test_trail_entry(self, tracker, store, sink, clock):
        store.add_user(1, "alice")
        trail = await tracker.record_audit_event(
            1, "export", "contract", "c-9", {"format": "csv"}, Origin(ip_address="198.51.100.2")
        )

        assert trail.username == "alice"
        assert trail.risk_level == RiskLevel.HIGH
        assert trail.resource_id == "c-9"
        assert trail.ip_address == "198.51.100.2"
        assert trail.timestamp == clock.now
        assert trail.id.startswith("audit_")

        logged = sink.of_type("audit_event")
        assert len(logged) == 1
        assert logged[0].severity == LogLevel.ERROR
        assert logged[0].message == "Audit event: export on contract"

    async def test_unknown_user_falls_back(self, tracker):
        trail = await tracker.record_audit_event(42, "login", "user")
        assert trail.username == "Unknown"

    async def test_store_failure_falls_back(self, tracker, store):
        store.add_user(1, "alice")
        store.broken = True
        trail = await tracker.record_audit_event(1, "login", "user")
        assert trail.username == "Unknown"

    async def test_sink_failure_is_tolerated(self, tracker, sink):
        sink.broken = True
        await tracker.record_audit_event(1, "delete", "security")
        assert len(tracker.get_audit_trails()) == 1
        assert tracker.get_user_risk_assessment(1).risk_score == 10

    async def test_trail_is_bounded_fifo(self, store, sink, clock):
        tracker = AuditRiskTracker(store, sink, trail_cap=5, clock=clock)
        for n in range(6):
            clock.advance(seconds=1)
            await tracker.record_audit_event(1, "update", "patent", resource_id=str(n))

        trails = tracker.get_audit_trails()
        assert len(trails) == 5
        assert [t.resource_id for t in trails] == ["5", "4", "3", "2", "1"]

    async def test_trail_query_filters(self, tracker, clock):
        await tracker.record_audit_event(1, "login", "user")
        clock.advance(hours=1)
        await tracker.record_audit_event(2, "login", "user")
        clock.advance(hours=1)
        await tracker.record_audit_event(1, "logout", "user")

        assert [t.action for t in tracker.get_audit_trails(subject_id=1)] == ["logout", "login"]
        assert len(tracker.get_audit_trails(start=clock.now - timedelta(minutes=90))) == 2
        assert len(tracker.get_audit_trails(limit=1)) == 1

    async def test_naive_bounds_are_read_as_utc(self, tracker, clock):
        await tracker.record_audit_event(1, "login", "user")
        naive_now = clock.now.replace(tzinfo=None)

        assert len(tracker.get_audit_trails(start=naive_now - timedelta(minutes=1))) == 1
        assert tracker.get_audit_trails(end=naive_now - timedelta(minutes=1)) == []

    async def test_default_cap_evicts_oldest(self, tracker, clock):
        for n in range(1001):
            clock.advance(seconds=1)
            await tracker.record_audit_event(1, "update", "patent", resource_id=str(n))

        trails = tracker.get_audit_trails(limit=2000)
        assert len(trails) == 1000
        assert trails[-1].resource_id == "1"
        assert "0" not in {t.resource_id for t in trails}


class TestMetrics:
    async def test_daily_bucket(self, tracker):
        for _ in range(3):
            await tracker.record_audit_event(1, "export", "patent")

        metrics = tracker.get_security_metrics()
        assert len(metrics) == 1
        metric = metrics[0]
        assert metric.name == "data_access_export"
        assert metric.category == MetricCategory.DATA_ACCESS
        assert metric.value == 3
        assert metric.threshold == 10
        assert metric.trend == MetricTrend.INCREASING

    async def test_new_day_opens_new_bucket(self, tracker, clock):
        await tracker.record_audit_event(1, "login", "user")
        clock.advance(days=1)
        await tracker.record_audit_event(1, "login", "user")
        assert [m.value for m in tracker.get_security_metrics()] == [1, 1]

    async def test_status_follows_threshold(self, tracker):
        for _ in range(8):
            await tracker.record_audit_event(1, "export", "patent")
        assert tracker.get_security_metrics()[0].status == MetricStatus.WARNING
        for _ in range(2):
            await tracker.record_audit_event(1, "export", "patent")
        assert tracker.get_security_metrics()[0].status == MetricStatus.CRITICAL

    async def test_category_filter(self, tracker):
        await tracker.record_audit_event(1, "login", "user")
        await tracker.record_audit_event(1, "backup", "system")
        names = [m.name for m in tracker.get_security_metrics(MetricCategory.SYSTEM_SECURITY)]
        assert names == ["system_security_backup"]

    async def test_naive_bounds_are_read_as_utc(self, tracker, clock):
        await tracker.record_audit_event(1, "login", "user")
        naive_now = clock.now.replace(tzinfo=None)

        assert len(tracker.get_security_metrics(start=naive_now - timedelta(hours=1))) == 1
        assert tracker.get_security_metrics(end=naive_now - timedelta(hours=1)) == []

    async def test_metric_list_is_bounded_fifo(self, store, sink, clock):
        tracker = AuditRiskTracker(store, sink, metrics_cap=3, clock=clock)
        for action in ("login", "logout", "export", "import"):
            clock.advance(seconds=1)
            await tracker.record_audit_event(1, action, "patent")

        names = {m.name for m in tracker.get_security_metrics()}
        assert names == {"authentication_logout", "data_access_export", "data_access_import"}

    async def test_action_case_is_normalised(self, tracker):
        await tracker.record_audit_event(1, "Login", "user")
        await tracker.record_audit_event(1, "LOGIN", "user")

        [metric] = tracker.get_security_metrics()
        assert metric.name == "authentication_login"
        assert metric.category == MetricCategory.AUTHENTICATION
        assert metric.value == 2

    def test_metric_status_without_threshold(self):
        assert metric_status(1000, None) == MetricStatus.NORMAL


class TestRiskAssessment:
    async def test_assessment_accumulates(self, tracker, clock):
        await tracker.record_audit_event(1, "delete", "security")  # critical, +10
        await tracker.record_audit_event(1, "update", "user")  # medium, +4

        assessment = tracker.get_user_risk_assessment(1)
        assert assessment.id == "risk_1"
        assert assessment.risk_score == 14
        assert assessment.risk_level == RiskLevel.LOW
        assert [f.weight for f in assessment.factors] == [1.0, 0.6]
        assert assessment.factors[0].factor == "delete on security"
        assert assessment.next_assessment == clock.now + timedelta(hours=24)
        assert assessment.recommendations

    async def test_risk_decays_hourly(self, tracker, clock):
        for _ in range(3):
            await tracker.record_audit_event(1, "delete", "security")
        clock.advance(hours=5)
        await tracker.record_audit_event(1, "login", "patent")  # low, +1
        assert tracker.get_user_risk_assessment(1).risk_score == 26

    async def test_escalation_notifies_once_per_tier(self, store, sink, clock):
        router, channel = recording_router()
        tracker = AuditRiskTracker(store, sink, notifier=router, clock=clock)

        for _ in range(8):
            await tracker.record_audit_event(1, "delete", "security")

        assert [e.level for e in channel.sent] == ["medium", "high", "critical"]
        assert all(e.event_type == EventType.RISK_ESCALATED for e in channel.sent)
        assert channel.sent[-1].score == 80

    async def test_score_clamps_and_factors_are_capped(self, tracker):
        for n in range(15):
            await tracker.record_audit_event(1, "delete", "security", resource_id=str(n))

        assessment = tracker.get_user_risk_assessment(1)
        assert assessment.risk_score == 100
        assert assessment.risk_level == RiskLevel.CRITICAL
        assert len(assessment.factors) == 10

    async def test_unknown_subject(self, tracker):
        assert tracker.get_user_risk_assessment(5) is None
        assert tracker.get_all_risk_assessments() == []


class TestDashboard:
    async def test_overview_counts(self, tracker, store, clock):
        store.add_user(1, "alice", last_login_at=clock.now - timedelta(days=1))
        store.add_user(2, "bob", status="blocked", last_login_at=clock.now - timedelta(days=60))
        store.add_user(3, "carol")
        store.add_event("threat_detected", subject_id=1, severity=LogLevel.CRITICAL)
        store.add_event("threat_detected", subject_id=1, severity=LogLevel.WARN)

        dashboard = await tracker.generate_security_dashboard(compliance_score=83)

        overview = dashboard.overview
        assert overview.total_users == 3
        assert overview.active_users == 1
        assert overview.blocked_users == 1
        assert overview.total_threats == 2
        assert overview.critical_threats == 1
        assert overview.compliance_score == 83

    async def test_store_failure_reports_zero(self, tracker, store):
        store.add_user(1, "alice")
        await tracker.record_audit_event(1, "login", "user")
        store.broken = True

        dashboard = await tracker.generate_security_dashboard()

        assert dashboard.overview.total_users == 0
        assert dashboard.overview.total_threats == 0
        assert len(dashboard.recent_activity) == 1

    async def test_top_risks_and_alerts(self, tracker):
        for _ in range(7):
            await tracker.record_audit_event(1, "delete", "security")  # 70 high
        for _ in range(8):
            await tracker.record_audit_event(2, "delete", "system")  # 80 critical
        await tracker.record_audit_event(3, "login", "user")

        dashboard = await tracker.generate_security_dashboard()

        assert [a.subject_id for a in dashboard.top_risks] == [2, 1]
        user_alerts = [a for a in dashboard.alerts if a.type == AlertType.USER]
        assert {a.severity for a in user_alerts} == {Severity.CRITICAL, Severity.HIGH}
        assert dashboard.overview.compliance_score is None

    async def test_metric_alerts(self, tracker):
        for _ in range(10):
            await tracker.record_audit_event(1, "export", "patent")
        dashboard = await tracker.generate_security_dashboard()
        system = [a for a in dashboard.alerts if a.type == AlertType.SYSTEM]
        assert len(system) == 1
        assert system[0].message == "Security metric anomaly: data_access_export = 10 count"

    async def test_alerts_are_capped(self, tracker):
        for subject in range(25):
            for _ in range(6):
                await tracker.record_audit_event(subject, "delete", "security")
        dashboard = await tracker.generate_security_dashboard()
        assert len(dashboard.alerts) == 20
        assert len(dashboard.top_risks) == 10
        assert len(dashboard.recent_activity) == 20


class TestCleanup:
    async def test_removes_old_records(self, tracker, clock):
        await tracker.record_audit_event(1, "login", "user")
        clock.advance(days=100)
        await tracker.record_audit_event(1, "logout", "user")

        removed = tracker.cleanup_old_data(90)

        assert removed == 2  # one trail, one metric bucket
        assert [t.action for t in tracker.get_audit_trails()] == ["logout"]
        assert len(tracker.get_security_metrics()) == 1

    async def test_configured_retention_is_the_default(self, store, sink, clock):
        tracker = AuditRiskTracker(store, sink, retention_days=30, clock=clock)
        await tracker.record_audit_event(1, "login", "user")
        clock.advance(days=40)

        assert tracker.cleanup_old_data() == 2
        assert tracker.get_audit_trails() == []

    async def test_nothing_to_remove(self, tracker):
        await tracker.record_audit_event(1, "login", "user")
        assert tracker.cleanup_old_data() == 0
