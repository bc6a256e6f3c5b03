# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Compliance evaluator: runs rule checks and aggregates them into reports."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from ipsentry.audit.logger import EventSink
from ipsentry.compliance.checks import get_procedure, next_check_time
from ipsentry.compliance.rules import default_compliance_rules, default_retention_policies
from ipsentry.core.constants import (
    CheckStatus,
    ComplianceLevel,
    LogLevel,
    ReportPeriod,
    SecurityEventType,
)
from ipsentry.core.registry import PriorityRegistry
from ipsentry.models.compliance import (
    ComplianceCheck,
    ComplianceReport,
    ComplianceRule,
    ComplianceSummary,
    DataRetentionPolicy,
    RuleResult,
)
from ipsentry.notifications.events import NotificationEvent
from ipsentry.notifications.router import NotificationRouter, notify
from ipsentry.storage.records import RecordStore

logger = logging.getLogger("ipsentry.compliance.evaluator")

_LEVEL_RANK = {
    ComplianceLevel.NON_COMPLIANT: 0,
    ComplianceLevel.PARTIALLY_COMPLIANT: 1,
    ComplianceLevel.COMPLIANT: 2,
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


def compliance_level(score: int) -> ComplianceLevel:
    if score >= 90:
        return ComplianceLevel.COMPLIANT
    if score >= 70:
        return ComplianceLevel.PARTIALLY_COMPLIANT
    return ComplianceLevel.NON_COMPLIANT


def overall_score(checks: list[ComplianceCheck]) -> int:
    """Percentage of passed checks, rounded; 0 when nothing was checked."""
    if not checks:
        return 0
    passed = sum(1 for c in checks if c.status == CheckStatus.PASS)
    return round(100 * passed / len(checks))


class ComplianceEvaluator:
    """Evaluates compliance rules against the record store."""

    def __init__(
        self,
        store: RecordStore,
        sink: EventSink,
        *,
        rules: Iterable[ComplianceRule] | None = None,
        retention_policies: Iterable[DataRetentionPolicy] | None = None,
        notifier: NotificationRouter | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._sink = sink
        self._rules: PriorityRegistry[ComplianceRule] = PriorityRegistry(
            default_compliance_rules() if rules is None else rules
        )
        self._policies: PriorityRegistry[DataRetentionPolicy] = PriorityRegistry(
            default_retention_policies() if retention_policies is None else retention_policies,
            ordered=False,
        )
        self._notifier = notifier
        self._clock = clock
        self._latest_report: ComplianceReport | None = None

    @property
    def latest_score(self) -> int | None:
        """Overall score of the most recent report, if any was generated."""
        return self._latest_report.overall_score if self._latest_report else None

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    async def perform_compliance_check(self, rule_id: str | None = None) -> list[ComplianceCheck]:
        """Check one rule, or every enabled rule when *rule_id* is ``None``.

        A named rule is checked even when disabled.  An unknown rule id
        yields an empty list.
        """
        if rule_id is not None:
            rule = self._rules.get(rule_id)
            rules = [rule] if rule is not None else []
        else:
            rules = [r for r in self._rules.get_all() if r.enabled]

        now = self._clock()
        checks: list[ComplianceCheck] = []
        for rule in rules:
            check = await self._check_rule(rule, now)
            checks.append(check)
            await self._log_check(rule, check)

        logger.info("Compliance check complete: %d rule(s) evaluated", len(checks))
        return checks

    async def _check_rule(self, rule: ComplianceRule, now: datetime) -> ComplianceCheck:
        check = ComplianceCheck(
            id=f"check_{rule.id}_{int(now.timestamp() * 1000)}",
            rule_id=rule.id,
            timestamp=now,
            next_check=next_check_time(rule.check_interval, now),
        )

        procedure = get_procedure(rule.id)
        if procedure is None:
            check.mark(
                CheckStatus.WARNING,
                details="No check procedure for this rule",
                recommendations=["Review the rule configuration"],
            )
            return check

        try:
            await procedure(self._store, check, now)
        except Exception as exc:
            logger.warning("Compliance check %s failed: %s", rule.id, exc)
            check.mark(
                CheckStatus.FAIL,
                details=f"Error during check: {exc}",
                violations=[str(exc)],
                recommendations=["Contact the system administrator"],
            )
        return check

    async def _log_check(self, rule: ComplianceRule, check: ComplianceCheck) -> None:
        try:
            await self._sink.log_security_event(
                SecurityEventType.COMPLIANCE_CHECK,
                f"Compliance check completed: {rule.name} - {check.status}",
                LogLevel.INFO if check.status == CheckStatus.PASS else LogLevel.WARN,
                metadata={
                    "rule_id": rule.id,
                    "status": check.status,
                    "violations": check.violations,
                },
            )
        except Exception:
            logger.exception("Failed to log compliance check for %s", rule.id)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    async def generate_compliance_report(
        self,
        period: ReportPeriod,
        start: datetime,
        end: datetime,
    ) -> ComplianceReport:
        """Run every enabled check and aggregate the results."""
        checks = await self.perform_compliance_check()

        score = overall_score(checks)
        level = compliance_level(score)
        summary = ComplianceSummary(
            total_rules=len(checks),
            passed_checks=sum(1 for c in checks if c.status == CheckStatus.PASS),
            failed_checks=sum(1 for c in checks if c.status == CheckStatus.FAIL),
            warning_checks=sum(1 for c in checks if c.status == CheckStatus.WARNING),
            pending_checks=sum(1 for c in checks if c.status == CheckStatus.PENDING),
        )

        results: list[RuleResult] = []
        for check in checks:
            rule = self._rules.get(check.rule_id)
            results.append(
                RuleResult(
                    rule_id=check.rule_id,
                    rule_name=rule.name if rule else "Unknown rule",
                    regulation=rule.regulation if rule else "UNKNOWN",
                    status=check.status,
                    violations=check.violations,
                    recommendations=check.recommendations,
                )
            )

        now = self._clock()
        report = ComplianceReport(
            id=f"report_{period}_{int(now.timestamp() * 1000)}",
            period=period,
            start_date=start,
            end_date=end,
            overall_score=score,
            compliance_level=level,
            summary=summary,
            rule_results=results,
            generated_at=now,
        )

        try:
            await self._sink.log_security_event(
                SecurityEventType.COMPLIANCE_REPORT_GENERATED,
                f"Compliance report generated: {period} - score {score} ({level})",
                LogLevel.INFO,
                metadata={
                    "period": period,
                    "overall_score": score,
                    "compliance_level": level,
                    "total_checks": len(checks),
                },
            )
        except Exception:
            logger.exception("Failed to log compliance report")

        previous = self._latest_report
        self._latest_report = report
        previous_level = previous.compliance_level if previous else ComplianceLevel.COMPLIANT
        if _LEVEL_RANK[level] < _LEVEL_RANK[previous_level]:
            await notify(self._notifier, NotificationEvent.from_compliance_report(report))

        return report

    # ------------------------------------------------------------------
    # Rule registry
    # ------------------------------------------------------------------

    def get_rules(self) -> list[ComplianceRule]:
        return self._rules.get_all()

    def get_rule(self, rule_id: str) -> ComplianceRule | None:
        return self._rules.get(rule_id)

    def add_rule(self, rule: ComplianceRule) -> None:
        self._rules.add(rule)

    def update_rule(self, rule_id: str, /, **changes: Any) -> bool:
        changes.pop("id", None)
        try:
            return self._rules.update(rule_id, changes) is not None
        except ValidationError as exc:
            logger.warning("Rejected update of compliance rule %s: %s", rule_id, exc)
            return False

    def delete_rule(self, rule_id: str) -> bool:
        return self._rules.delete(rule_id)

    # ------------------------------------------------------------------
    # Retention policies
    # ------------------------------------------------------------------

    def get_retention_policies(self) -> list[DataRetentionPolicy]:
        return self._policies.get_all()

    def add_retention_policy(self, policy: DataRetentionPolicy) -> None:
        self._policies.add(policy)

    def update_retention_policy(self, policy_id: str, /, **changes: Any) -> bool:
        changes.pop("id", None)
        try:
            return self._policies.update(policy_id, changes) is not None
        except ValidationError as exc:
            logger.warning("Rejected update of retention policy %s: %s", policy_id, exc)
            return False

    def delete_retention_policy(self, policy_id: str) -> bool:
        return self._policies.delete(policy_id)
