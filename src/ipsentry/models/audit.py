# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Audit trail, risk assessment, security metric, and dashboard models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from ipsentry.core.constants import (
    AlertType,
    MetricCategory,
    MetricStatus,
    MetricTrend,
    RiskLevel,
    Severity,
)


class AuditTrail(BaseModel):
    """Immutable record of one user action.

    The display name is resolved once when the entry is created and is never
    refreshed afterwards.
    """

    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: f"audit_{uuid.uuid4().hex}")
    subject_id: int
    username: str = "Unknown"
    action: str
    resource: str
    resource_id: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    risk_level: RiskLevel = RiskLevel.LOW


class RiskFactor(BaseModel):
    factor: str
    weight: float
    score: int
    description: str


class RiskAssessment(BaseModel):
    """Decaying per-subject risk derived from the audited actions."""

    id: str = Field(default_factory=lambda: f"risk_{uuid.uuid4().hex}")
    subject_id: int
    username: str = "Unknown"
    risk_score: int = Field(default=0, ge=0, le=100)
    risk_level: RiskLevel = RiskLevel.LOW
    factors: list[RiskFactor] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    last_assessment: datetime
    next_assessment: datetime


class SecurityMetric(BaseModel):
    """Daily counter for one ``{category}_{action}`` bucket."""

    id: str = Field(default_factory=lambda: f"metric_{uuid.uuid4().hex}")
    name: str
    value: int = 1
    unit: str = "count"
    category: MetricCategory
    timestamp: datetime
    trend: MetricTrend = MetricTrend.STABLE
    threshold: int | None = None
    status: MetricStatus = MetricStatus.NORMAL


class SecurityAlert(BaseModel):
    id: str
    type: AlertType
    severity: Severity
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    status: str = "new"


class DashboardOverview(BaseModel):
    total_users: int = 0
    active_users: int = 0
    blocked_users: int = 0
    total_threats: int = 0
    critical_threats: int = 0
    compliance_score: int | None = None


class SecurityDashboard(BaseModel):
    overview: DashboardOverview
    recent_activity: list[AuditTrail] = Field(default_factory=list)
    top_risks: list[RiskAssessment] = Field(default_factory=list)
    security_metrics: list[SecurityMetric] = Field(default_factory=list)
    alerts: list[SecurityAlert] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
