# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Domain models for ipsentry."""

from ipsentry.models.audit import (
    AuditTrail,
    RiskAssessment,
    RiskFactor,
    SecurityAlert,
    SecurityDashboard,
    SecurityMetric,
)
from ipsentry.models.compliance import (
    ComplianceCheck,
    ComplianceReport,
    ComplianceRule,
    DataRetentionPolicy,
)
from ipsentry.models.threat import (
    Origin,
    SecurityRule,
    ThreatIndicator,
    ThreatReport,
    ThreatScore,
)

__all__ = [
    "AuditTrail",
    "ComplianceCheck",
    "ComplianceReport",
    "ComplianceRule",
    "DataRetentionPolicy",
    "Origin",
    "RiskAssessment",
    "RiskFactor",
    "SecurityAlert",
    "SecurityDashboard",
    "SecurityMetric",
    "SecurityRule",
    "ThreatIndicator",
    "ThreatReport",
    "ThreatScore",
]
