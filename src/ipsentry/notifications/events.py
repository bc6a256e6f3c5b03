# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Notification event models for tier escalations and compliance degradation."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from ipsentry.core.constants import RiskLevel, ThreatLevel
from ipsentry.models.audit import RiskAssessment
from ipsentry.models.compliance import ComplianceReport
from ipsentry.models.threat import ThreatScore

# Ordinal rank of every tier name, shared by threat and risk levels.
_TIER_RANK: dict[str, int] = {
    ThreatLevel.SAFE: 0,
    RiskLevel.LOW: 1,
    ThreatLevel.LOW_RISK: 1,
    RiskLevel.MEDIUM: 2,
    ThreatLevel.MEDIUM_RISK: 2,
    RiskLevel.HIGH: 3,
    ThreatLevel.HIGH_RISK: 3,
    RiskLevel.CRITICAL: 4,
}


def tier_rank(level: str | None) -> int:
    if level is None:
        return 0
    return _TIER_RANK.get(level, 0)


def is_escalation(previous: str | None, current: str) -> bool:
    return tier_rank(current) > tier_rank(previous)


class EventType(StrEnum):
    THREAT_ESCALATED = "threat_escalated"
    RISK_ESCALATED = "risk_escalated"
    COMPLIANCE_DEGRADED = "compliance_degraded"


class NotificationEvent(BaseModel):
    """Event dispatched to notification channels."""

    event_type: EventType
    level: str
    previous_level: str | None = None
    score: int
    summary: str
    subject_id: int | None = None
    factors: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def rank(self) -> int:
        return tier_rank(self.level)

    @classmethod
    def from_threat_score(
        cls, score: ThreatScore, previous_level: str | None
    ) -> NotificationEvent:
        return cls(
            event_type=EventType.THREAT_ESCALATED,
            level=score.level,
            previous_level=previous_level,
            score=score.score,
            summary=f"Subject {score.subject_id} threat level is now {score.level}",
            subject_id=score.subject_id,
            factors=score.factors[-5:],
        )

    @classmethod
    def from_risk_assessment(
        cls, assessment: RiskAssessment, previous_level: str | None
    ) -> NotificationEvent:
        return cls(
            event_type=EventType.RISK_ESCALATED,
            level=assessment.risk_level,
            previous_level=previous_level,
            score=assessment.risk_score,
            summary=(
                f"User {assessment.username} ({assessment.subject_id}) "
                f"risk level is now {assessment.risk_level}"
            ),
            subject_id=assessment.subject_id,
            factors=[f.factor for f in assessment.factors[-5:]],
        )

    @classmethod
    def from_compliance_report(cls, report: ComplianceReport) -> NotificationEvent:
        failing = [r.rule_name for r in report.rule_results if r.status != "pass"]
        return cls(
            event_type=EventType.COMPLIANCE_DEGRADED,
            level=report.compliance_level,
            score=report.overall_score,
            summary=f"Compliance {report.period} report: {report.compliance_level}",
            factors=failing[:5],
        )
