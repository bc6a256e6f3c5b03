# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Compliance rule, check, report, and data retention policy models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, Field

from ipsentry.core.constants import (
    CheckInterval,
    CheckStatus,
    ComplianceCategory,
    ComplianceLevel,
    Regulation,
    ReportPeriod,
)


class ComplianceRule(BaseModel):
    id: str
    name: str
    description: str = ""
    regulation: Regulation
    category: ComplianceCategory
    requirements: list[str] = Field(default_factory=list)
    check_interval: CheckInterval = CheckInterval.DAILY
    enabled: bool = True
    priority: int = 100


class ComplianceCheck(BaseModel):
    """Outcome of evaluating one rule once."""

    id: str = Field(default_factory=lambda: f"check_{uuid.uuid4().hex}")
    rule_id: str
    status: CheckStatus = CheckStatus.PENDING
    details: str = ""
    violations: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    timestamp: datetime
    next_check: datetime

    def mark(
        self,
        status: CheckStatus,
        *,
        details: str = "",
        violations: list[str] | None = None,
        recommendations: list[str] | None = None,
    ) -> None:
        self.status = status
        if details:
            self.details = details
        self.violations.extend(violations or [])
        self.recommendations.extend(recommendations or [])


class ComplianceSummary(BaseModel):
    total_rules: int = 0
    passed_checks: int = 0
    failed_checks: int = 0
    warning_checks: int = 0
    pending_checks: int = 0


class RuleResult(BaseModel):
    rule_id: str
    rule_name: str
    regulation: str
    status: CheckStatus
    violations: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class ComplianceReport(BaseModel):
    id: str = Field(default_factory=lambda: f"report_{uuid.uuid4().hex}")
    period: ReportPeriod
    start_date: datetime
    end_date: datetime
    overall_score: int
    compliance_level: ComplianceLevel
    summary: ComplianceSummary
    rule_results: list[RuleResult] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class DataRetentionPolicy(BaseModel):
    id: str
    data_type: str
    retention_period: int
    retention_unit: str = "days"  # "days", "months" or "years"
    disposal_method: str = "delete"  # "delete", "archive" or "anonymize"
    legal_basis: str = ""
    enabled: bool = True
