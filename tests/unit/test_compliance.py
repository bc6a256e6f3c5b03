# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Tests for the compliance evaluator and its check procedures."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from fakes import compliant_store, recording_router

from ipsentry.compliance.checks import add_months, next_check_time, registered_rule_ids
from ipsentry.compliance.evaluator import ComplianceEvaluator, compliance_level, overall_score
from ipsentry.core.constants import (
    CheckInterval,
    CheckStatus,
    ComplianceCategory,
    ComplianceLevel,
    LogLevel,
    Regulation,
    ReportPeriod,
)
from ipsentry.models.compliance import ComplianceRule, DataRetentionPolicy
from ipsentry.notifications.events import EventType


@pytest.fixture
def healthy(sink, clock) -> ComplianceEvaluator:
    return ComplianceEvaluator(compliant_store(clock.now), sink, clock=clock)


def _statuses(checks):
    return {c.rule_id: c.status for c in checks}


class TestChecks:
    async def test_everything_in_place(self, healthy, sink):
        checks = await healthy.perform_compliance_check()

        assert len(checks) == 6
        assert set(_statuses(checks).values()) == {CheckStatus.PASS}
        logged = sink.of_type("compliance_check")
        assert len(logged) == 6
        assert {e.severity for e in logged} == {LogLevel.INFO}

    async def test_empty_store(self, evaluator):
        statuses = _statuses(await evaluator.perform_compliance_check())
        assert statuses == {
            "gdpr_data_minimization": CheckStatus.PASS,
            "gdpr_consent_management": CheckStatus.FAIL,
            "gdpr_right_to_access": CheckStatus.FAIL,
            "encryption_requirement": CheckStatus.FAIL,
            "access_logging": CheckStatus.FAIL,
            "data_retention": CheckStatus.FAIL,
        }

    async def test_unnecessary_user_fields(self, healthy):
        healthy._store.add_table("users", columns=["id", "fakeName", "testField"])
        [check] = await healthy.perform_compliance_check("gdpr_data_minimization")
        assert check.status == CheckStatus.FAIL
        assert check.violations == ["Unnecessary user fields found: fakeName, testField"]

    @pytest.mark.parametrize(
        ("table", "rule_id"),
        [
            ("user_consents", "gdpr_consent_management"),
            ("security_event_logs", "access_logging"),
            ("backup_records", "data_retention"),
        ],
    )
    async def test_empty_tables_warn(self, healthy, table, rule_id):
        healthy._store.add_table(table, [])
        [check] = await healthy.perform_compliance_check(rule_id)
        assert check.status == CheckStatus.WARNING

    async def test_missing_encryption_settings_warn(self, healthy):
        healthy._store.add_table("security_settings", [{"id": 1, "category": "session"}])
        [check] = await healthy.perform_compliance_check("encryption_requirement")
        assert check.status == CheckStatus.WARNING

    async def test_expired_backups_warn(self, healthy, clock):
        healthy._store.tables["backup_records"].append(
            {"id": 2, "started_at": clock.now - timedelta(days=400)}
        )
        [check] = await healthy.perform_compliance_check("data_retention")
        assert check.status == CheckStatus.WARNING
        assert check.violations == ["1 expired backups need cleanup"]

    async def test_store_failure_fails_the_check(self, healthy):
        healthy._store.broken = True
        [check] = await healthy.perform_compliance_check("access_logging")
        assert check.status == CheckStatus.FAIL
        assert check.details.startswith("Error during check: Access logging check failed")
        assert len(check.violations) == 1

    async def test_unknown_rule(self, evaluator, sink):
        assert await evaluator.perform_compliance_check("nope") == []
        assert sink.events == []

    async def test_disabled_rule_runs_only_when_named(self, healthy):
        healthy.update_rule("access_logging", enabled=False)
        assert len(await healthy.perform_compliance_check()) == 5
        [check] = await healthy.perform_compliance_check("access_logging")
        assert check.status == CheckStatus.PASS

    async def test_rule_without_procedure_warns(self, healthy):
        healthy.add_rule(
            ComplianceRule(
                id="custom_rule",
                name="Custom",
                regulation=Regulation.CUSTOM,
                category=ComplianceCategory.ACCESS_CONTROL,
            )
        )
        [check] = await healthy.perform_compliance_check("custom_rule")
        assert check.status == CheckStatus.WARNING

    async def test_check_ids_and_schedule(self, healthy, clock):
        [check] = await healthy.perform_compliance_check("gdpr_consent_management")
        assert check.id == f"check_gdpr_consent_management_{int(clock.now.timestamp() * 1000)}"
        assert check.next_check == clock.now + timedelta(minutes=5)

    async def test_sink_failure_is_tolerated(self, healthy, sink):
        sink.broken = True
        assert len(await healthy.perform_compliance_check()) == 6

    def test_every_default_rule_has_a_procedure(self, evaluator):
        assert sorted(r.id for r in evaluator.get_rules()) == registered_rule_ids()


class TestSchedule:
    NOW = datetime(2025, 1, 31, 9, 30, tzinfo=UTC)

    @pytest.mark.parametrize(
        ("interval", "delta"),
        [
            (CheckInterval.REALTIME, timedelta(minutes=5)),
            (CheckInterval.HOURLY, timedelta(hours=1)),
            (CheckInterval.DAILY, timedelta(days=1)),
            (CheckInterval.WEEKLY, timedelta(days=7)),
        ],
    )
    def test_fixed_intervals(self, interval, delta):
        assert next_check_time(interval, self.NOW) == self.NOW + delta

    def test_monthly_clamps_to_month_end(self):
        assert next_check_time(CheckInterval.MONTHLY, self.NOW) == self.NOW.replace(month=2, day=28)

    def test_add_months_leap_year_and_rollover(self):
        assert add_months(datetime(2024, 1, 31), 1) == datetime(2024, 2, 29)
        assert add_months(datetime(2024, 12, 15), 1) == datetime(2025, 1, 15)


class TestScoring:
    @pytest.mark.parametrize(
        ("score", "level"),
        [
            (100, ComplianceLevel.COMPLIANT),
            (90, ComplianceLevel.COMPLIANT),
            (89, ComplianceLevel.PARTIALLY_COMPLIANT),
            (70, ComplianceLevel.PARTIALLY_COMPLIANT),
            (69, ComplianceLevel.NON_COMPLIANT),
        ],
    )
    def test_levels(self, score, level):
        assert compliance_level(score) == level

    def test_no_checks_scores_zero(self):
        assert overall_score([]) == 0


class TestReports:
    async def test_report(self, healthy, sink, clock):
        start = clock.now - timedelta(days=30)
        report = await healthy.generate_compliance_report(ReportPeriod.MONTHLY, start, clock.now)

        assert report.overall_score == 100
        assert report.compliance_level == ComplianceLevel.COMPLIANT
        assert report.summary.total_rules == 6
        assert report.summary.passed_checks == 6
        assert report.rule_results[0].rule_name
        assert report.id.startswith("report_monthly_")
        assert healthy.latest_score == 100
        assert len(sink.of_type("compliance_report_generated")) == 1

    async def test_mixed_results(self, healthy, clock):
        healthy._store.tables["user_consents"] = []
        del healthy._store.tables["data_exports"]

        report = await healthy.generate_compliance_report(ReportPeriod.WEEKLY, clock.now, clock.now)

        assert report.overall_score == 67  # 4 of 6
        assert report.compliance_level == ComplianceLevel.NON_COMPLIANT
        assert report.summary.failed_checks == 1
        assert report.summary.warning_checks == 1

    async def test_no_enabled_rules(self, store, sink, clock):
        evaluator = ComplianceEvaluator(store, sink, rules=[], clock=clock)
        report = await evaluator.generate_compliance_report(ReportPeriod.DAILY, clock.now, clock.now)
        assert report.overall_score == 0
        assert report.compliance_level == ComplianceLevel.NON_COMPLIANT

    async def test_degradation_notifies(self, sink, clock):
        router, channel = recording_router()
        store = compliant_store(clock.now)
        evaluator = ComplianceEvaluator(store, sink, notifier=router, clock=clock)

        await evaluator.generate_compliance_report(ReportPeriod.DAILY, clock.now, clock.now)
        assert channel.sent == []

        del store.tables["data_exports"]
        await evaluator.generate_compliance_report(ReportPeriod.DAILY, clock.now, clock.now)
        await evaluator.generate_compliance_report(ReportPeriod.DAILY, clock.now, clock.now)

        assert len(channel.sent) == 1
        event = channel.sent[0]
        assert event.event_type == EventType.COMPLIANCE_DEGRADED
        assert event.level == ComplianceLevel.PARTIALLY_COMPLIANT
        assert event.factors == ["Right of access"]


class TestRegistries:
    def test_rule_crud(self, evaluator):
        assert [r.priority for r in evaluator.get_rules()] == [1, 2, 3, 4, 5, 6]
        assert evaluator.update_rule("data_retention", priority=0)
        assert evaluator.get_rules()[0].id == "data_retention"
        assert not evaluator.update_rule("data_retention", check_interval="fortnightly")
        assert evaluator.delete_rule("data_retention")
        assert evaluator.get_rule("data_retention") is None

    def test_retention_policy_crud(self, evaluator):
        assert len(evaluator.get_retention_policies()) == 3
        evaluator.add_retention_policy(
            DataRetentionPolicy(id="chat_logs", data_type="chat", retention_period=30)
        )
        assert evaluator.get_retention_policies()[-1].id == "chat_logs"
        assert evaluator.update_retention_policy("chat_logs", retention_period=60)
        assert evaluator.get_retention_policies()[-1].retention_period == 60
        assert not evaluator.update_retention_policy("missing", enabled=False)
        assert evaluator.delete_retention_policy("chat_logs")
        assert len(evaluator.get_retention_policies()) == 3
