# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Threat indicator, per-subject threat score, and security rule models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from ipsentry.core.constants import IndicatorKind, RuleType, Severity, ThreatLevel


class Origin(BaseModel):
    """Network origin of a request or event."""

    ip_address: str | None = None
    user_agent: str | None = None


class ThreatIndicator(BaseModel):
    """A single signal emitted by a detector for one event."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    kind: IndicatorKind
    severity: Severity
    description: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ThreatScore(BaseModel):
    """Decaying threat score accumulated for one subject."""

    subject_id: int
    score: int = Field(default=0, ge=0, le=100)
    level: ThreatLevel = ThreatLevel.SAFE
    factors: list[str] = Field(default_factory=list)
    last_updated: datetime | None = None


class SecurityRule(BaseModel):
    """A named detection policy held in the scorer's rule registry."""

    id: str
    name: str
    description: str = ""
    type: RuleType
    conditions: dict[str, Any] = Field(default_factory=dict)
    actions: list[str] = Field(default_factory=list)
    enabled: bool = True
    priority: int = 100


class SeveritySummary(BaseModel):
    total_threats: int = 0
    critical_threats: int = 0
    high_threats: int = 0
    medium_threats: int = 0
    low_threats: int = 0


class SubjectRiskProfile(BaseModel):
    subject_id: int
    username: str
    threat_score: int
    risk_level: ThreatLevel
    threat_count: int


class ThreatReport(BaseModel):
    """Threat activity over a time window joined with current scores."""

    start_date: datetime
    end_date: datetime
    summary: SeveritySummary
    top_threats: list[ThreatIndicator] = Field(default_factory=list)
    user_risk_profile: list[SubjectRiskProfile] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
