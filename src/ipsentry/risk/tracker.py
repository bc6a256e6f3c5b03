# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Audit risk tracker: audit trail, daily security metrics, and user risk."""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from ipsentry.audit.logger import EventSink
from ipsentry.core.constants import (
    AUDIT_TRAIL_CAP,
    MAX_DASHBOARD_ALERTS,
    MAX_FACTORS,
    METRICS_CAP,
    RISK_FACTOR_WEIGHTS,
    RISK_LEVEL_BREAKPOINTS,
    RISK_LEVEL_DELTAS,
    AlertType,
    MetricCategory,
    MetricStatus,
    MetricTrend,
    RiskLevel,
    SecurityEventType,
    Severity,
)
from ipsentry.core.scoring import ScoreScale, trim_to_recent
from ipsentry.core.state import KeyedLock, SubjectStateMap
from ipsentry.models.audit import (
    AuditTrail,
    DashboardOverview,
    RiskAssessment,
    RiskFactor,
    SecurityAlert,
    SecurityDashboard,
    SecurityMetric,
)
from ipsentry.models.threat import Origin
from ipsentry.notifications.events import NotificationEvent, is_escalation
from ipsentry.notifications.router import NotificationRouter, notify
from ipsentry.risk.heuristics import (
    assess_action_risk,
    categorize_action,
    default_threshold,
    recommendations_for,
    risk_to_log_level,
)
from ipsentry.storage.records import RecordStore

logger = logging.getLogger("ipsentry.risk.tracker")

RISK_SCALE: ScoreScale[RiskLevel] = ScoreScale(
    breakpoints=RISK_LEVEL_BREAKPOINTS,
    floor_level=RiskLevel.LOW,
    weights=RISK_LEVEL_DELTAS,
)

REASSESSMENT_INTERVAL = timedelta(hours=24)
ACTIVE_USER_WINDOW = timedelta(days=30)
DASHBOARD_METRICS_WINDOW = timedelta(days=7)
RECENT_ACTIVITY_LIMIT = 20
TOP_RISKS_LIMIT = 10
WARNING_RATIO = 0.8

_ELEVATED = frozenset({RiskLevel.HIGH, RiskLevel.CRITICAL})


def _utcnow() -> datetime:
    return datetime.now(UTC)


def metric_status(value: int, threshold: int | None) -> MetricStatus:
    if not threshold:
        return MetricStatus.NORMAL
    if value >= threshold:
        return MetricStatus.CRITICAL
    if value >= threshold * WARNING_RATIO:
        return MetricStatus.WARNING
    return MetricStatus.NORMAL


def metric_trend(previous: int, current: int) -> MetricTrend:
    if current > previous:
        return MetricTrend.INCREASING
    if current < previous:
        return MetricTrend.DECREASING
    return MetricTrend.STABLE


def _as_utc(value: datetime | None) -> datetime | None:
    # Naive bounds are read as UTC, matching the SQL event store
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class AuditRiskTracker:
    """Keeps the audit trail, security metrics and per-user risk in memory.

    Audited actions are classified by :func:`assess_action_risk`; each one
    appends to a bounded trail, bumps a daily ``{category}_{action}`` metric
    and feeds a decaying per-user risk score.  Collaborator failures are
    logged and never reach the caller.
    """

    def __init__(
        self,
        store: RecordStore,
        sink: EventSink,
        *,
        trail_cap: int = AUDIT_TRAIL_CAP,
        metrics_cap: int = METRICS_CAP,
        max_subjects: int = 10_000,
        retention_days: int = 90,
        notifier: NotificationRouter | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._sink = sink
        self._trails: deque[AuditTrail] = deque(maxlen=trail_cap)
        self._metrics: list[SecurityMetric] = []
        self._metrics_cap = metrics_cap
        self.retention_days = retention_days
        self._assessments: SubjectStateMap[int, RiskAssessment] = SubjectStateMap(max_subjects)
        self._locks: KeyedLock[int] = KeyedLock()
        self._lock = threading.Lock()
        self._notifier = notifier
        self._clock = clock

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    async def record_audit_event(
        self,
        subject_id: int,
        action: str,
        resource: str,
        resource_id: str | None = None,
        details: dict[str, Any] | None = None,
        origin: Origin | None = None,
    ) -> AuditTrail:
        """Record one user action and update the derived state."""
        details = dict(details or {})
        username = await self._username(subject_id)

        try:
            risk_level = assess_action_risk(action, resource, details)
        except Exception:
            logger.exception("Risk assessment failed for %s on %s", action, resource)
            risk_level = RiskLevel.LOW

        trail = AuditTrail(
            subject_id=subject_id,
            username=username,
            action=action,
            resource=resource,
            resource_id=resource_id,
            details=details,
            ip_address=origin.ip_address if origin else None,
            user_agent=origin.user_agent if origin else None,
            timestamp=self._clock(),
            risk_level=risk_level,
        )
        with self._lock:
            self._trails.append(trail)

        try:
            await self._sink.log_security_event(
                SecurityEventType.AUDIT_EVENT,
                f"Audit event: {action} on {resource}",
                risk_to_log_level(risk_level),
                subject_id=subject_id,
                origin=origin,
                metadata=details,
            )
        except Exception:
            logger.exception("Failed to log audit event for subject %s", subject_id)

        self._update_metric(action, trail.timestamp)

        previous, assessment = self._update_assessment(trail)
        if is_escalation(previous or RISK_SCALE.floor_level, assessment.risk_level):
            await notify(self._notifier, NotificationEvent.from_risk_assessment(assessment, previous))

        return trail

    async def _username(self, subject_id: int) -> str:
        try:
            return await self._store.resolve_username(subject_id) or "Unknown"
        except Exception:
            logger.warning("Could not resolve username for subject %s", subject_id)
            return "Unknown"

    def _update_metric(self, action: str, now: datetime) -> None:
        action = action.lower()
        category = categorize_action(action)
        name = f"{category}_{action}"
        day = now.astimezone(UTC).date()

        with self._lock:
            for metric in self._metrics:
                if metric.name == name and metric.timestamp.astimezone(UTC).date() == day:
                    previous = metric.value
                    metric.value += 1
                    metric.trend = metric_trend(previous, metric.value)
                    metric.status = metric_status(metric.value, metric.threshold)
                    return

            threshold = default_threshold(category, action)
            self._metrics.append(
                SecurityMetric(
                    name=name,
                    category=category,
                    timestamp=now,
                    threshold=threshold,
                    status=metric_status(1, threshold),
                )
            )
            trim_to_recent(self._metrics, self._metrics_cap)

    def _update_assessment(self, trail: AuditTrail) -> tuple[RiskLevel | None, RiskAssessment]:
        with self._locks.hold(trail.subject_id):
            current = self._assessments.get(trail.subject_id)
            previous_level = current.risk_level if current else None
            now = trail.timestamp

            delta = RISK_SCALE.weight(trail.risk_level)
            score, level = RISK_SCALE.apply(
                current.risk_score if current else 0,
                current.last_assessment if current else None,
                now,
                delta,
            )

            factors = list(current.factors) if current else []
            factors.append(
                RiskFactor(
                    factor=f"{trail.action} on {trail.resource}",
                    weight=RISK_FACTOR_WEIGHTS.get(trail.risk_level, 0.5),
                    score=delta,
                    description=f"User performed {trail.action} on {trail.resource}",
                )
            )

            assessment = RiskAssessment(
                id=current.id if current else f"risk_{trail.subject_id}",
                subject_id=trail.subject_id,
                username=trail.username,
                risk_score=score,
                risk_level=level,
                factors=factors[-MAX_FACTORS:],
                recommendations=recommendations_for(level),
                last_assessment=now,
                next_assessment=now + REASSESSMENT_INTERVAL,
            )
            self._assessments.set(trail.subject_id, assessment)
            return previous_level, assessment.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_audit_trails(
        self,
        subject_id: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 100,
    ) -> list[AuditTrail]:
        """Return matching trail entries, newest first."""
        with self._lock:
            trails = list(self._trails)
        if subject_id is not None:
            trails = [t for t in trails if t.subject_id == subject_id]
        start, end = _as_utc(start), _as_utc(end)
        if start is not None:
            trails = [t for t in trails if t.timestamp >= start]
        if end is not None:
            trails = [t for t in trails if t.timestamp <= end]
        trails.sort(key=lambda t: t.timestamp, reverse=True)
        return trails[:limit]

    def get_security_metrics(
        self,
        category: MetricCategory | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[SecurityMetric]:
        """Return matching metric buckets, newest first."""
        with self._lock:
            metrics = [m.model_copy() for m in self._metrics]
        if category is not None:
            metrics = [m for m in metrics if m.category == category]
        start, end = _as_utc(start), _as_utc(end)
        if start is not None:
            metrics = [m for m in metrics if m.timestamp >= start]
        if end is not None:
            metrics = [m for m in metrics if m.timestamp <= end]
        metrics.sort(key=lambda m: m.timestamp, reverse=True)
        return metrics

    def get_user_risk_assessment(self, subject_id: int) -> RiskAssessment | None:
        assessment = self._assessments.get(subject_id)
        return assessment.model_copy(deep=True) if assessment else None

    def get_all_risk_assessments(self) -> list[RiskAssessment]:
        return [a.model_copy(deep=True) for a in self._assessments.values()]

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    async def generate_security_dashboard(
        self, compliance_score: int | None = None
    ) -> SecurityDashboard:
        """Assemble the security dashboard.

        Each store count that fails is reported as 0.  Alerts are rebuilt
        from the current in-memory state on every call.
        """
        now = self._clock()

        overview = DashboardOverview(
            total_users=await self._safe_count("total users", self._store.count_users()),
            active_users=await self._safe_count(
                "active users",
                self._store.count_users(active_since=now - ACTIVE_USER_WINDOW),
            ),
            blocked_users=await self._safe_count(
                "blocked users", self._store.count_users(status="blocked")
            ),
            total_threats=await self._safe_count(
                "threats",
                self._store.count_events(event_type=SecurityEventType.THREAT_DETECTED),
            ),
            critical_threats=await self._safe_count(
                "critical threats",
                self._store.count_events(
                    event_type=SecurityEventType.THREAT_DETECTED, severity="critical"
                ),
            ),
            compliance_score=compliance_score,
        )

        assessments = self.get_all_risk_assessments()
        top_risks = sorted(
            (a for a in assessments if a.risk_level in _ELEVATED),
            key=lambda a: a.risk_score,
            reverse=True,
        )[:TOP_RISKS_LIMIT]

        return SecurityDashboard(
            overview=overview,
            recent_activity=self.get_audit_trails(limit=RECENT_ACTIVITY_LIMIT),
            top_risks=top_risks,
            security_metrics=self.get_security_metrics(start=now - DASHBOARD_METRICS_WINDOW),
            alerts=self._build_alerts(assessments, now),
            generated_at=now,
        )

    async def _safe_count(self, label: str, query: Awaitable[int]) -> int:
        try:
            return int(await query)
        except Exception:
            logger.warning("Dashboard count for %s failed; reporting 0", label, exc_info=True)
            return 0

    def _build_alerts(
        self, assessments: list[RiskAssessment], now: datetime
    ) -> list[SecurityAlert]:
        alerts: list[SecurityAlert] = []
        for assessment in assessments:
            if assessment.risk_level not in _ELEVATED:
                continue
            alerts.append(
                SecurityAlert(
                    id=f"alert_risk_{assessment.subject_id}",
                    type=AlertType.USER,
                    severity=(
                        Severity.CRITICAL
                        if assessment.risk_level == RiskLevel.CRITICAL
                        else Severity.HIGH
                    ),
                    message=f"User {assessment.username} risk level: {assessment.risk_level}",
                    timestamp=now,
                )
            )

        with self._lock:
            critical_metrics = [m for m in self._metrics if m.status == MetricStatus.CRITICAL]
        for metric in critical_metrics:
            alerts.append(
                SecurityAlert(
                    id=f"alert_metric_{metric.id}",
                    type=AlertType.SYSTEM,
                    severity=Severity.HIGH,
                    message=f"Security metric anomaly: {metric.name} = {metric.value} {metric.unit}",
                    timestamp=now,
                )
            )

        return alerts[:MAX_DASHBOARD_ALERTS]

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def cleanup_old_data(self, max_age_days: int | None = None) -> int:
        """Drop trail entries and metrics older than *max_age_days*.

        Defaults to the configured retention period.  Returns the number of
        records removed.
        """
        if max_age_days is None:
            max_age_days = self.retention_days
        cutoff = self._clock() - timedelta(days=max_age_days)
        with self._lock:
            kept_trails = [t for t in self._trails if t.timestamp >= cutoff]
            kept_metrics = [m for m in self._metrics if m.timestamp >= cutoff]
            removed = (len(self._trails) - len(kept_trails)) + (
                len(self._metrics) - len(kept_metrics)
            )
            self._trails = deque(kept_trails, maxlen=self._trails.maxlen)
            self._metrics = kept_metrics

        logger.info("Removed %d audit records older than %d days", removed, max_age_days)
        return removed
