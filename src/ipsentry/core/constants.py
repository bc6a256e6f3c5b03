# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Enumerations, severity weights, tier breakpoints, and capacity constants."""

from enum import StrEnum


class Severity(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class IndicatorKind(StrEnum):
    AUTHENTICATION = "authentication"
    DATA_ACCESS = "data_access"
    SYSTEM_OPERATION = "system_operation"
    NETWORK = "network"
    FILE_OPERATION = "file_operation"


class ThreatLevel(StrEnum):
    SAFE = "safe"
    LOW_RISK = "low_risk"
    MEDIUM_RISK = "medium_risk"
    HIGH_RISK = "high_risk"
    CRITICAL = "critical"


class RiskLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RuleType(StrEnum):
    THRESHOLD = "threshold"
    PATTERN = "pattern"
    ANOMALY = "anomaly"
    COMPLIANCE = "compliance"


class LogLevel(StrEnum):
    """Severity attached to records forwarded to the event sink."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    CRITICAL = "critical"


class SecurityEventType(StrEnum):
    LOGIN = "login"
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"
    DATA_ACCESS = "data_access"
    DATA_EXPORT = "data_export"
    SYSTEM_OPERATION = "system_operation"
    THREAT_DETECTED = "threat_detected"
    THREAT_SCORE_UPDATED = "threat_score_updated"
    AUDIT_EVENT = "audit_event"
    COMPLIANCE_CHECK = "compliance_check"
    COMPLIANCE_REPORT_GENERATED = "compliance_report_generated"


class MetricCategory(StrEnum):
    AUTHENTICATION = "authentication"
    DATA_ACCESS = "data_access"
    SYSTEM_SECURITY = "system_security"
    COMPLIANCE = "compliance"
    THREATS = "threats"


class MetricTrend(StrEnum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class MetricStatus(StrEnum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


class AlertType(StrEnum):
    THREAT = "threat"
    COMPLIANCE = "compliance"
    SYSTEM = "system"
    USER = "user"


class Regulation(StrEnum):
    GDPR = "GDPR"
    CCPA = "CCPA"
    SOX = "SOX"
    HIPAA = "HIPAA"
    ISO27001 = "ISO27001"
    CUSTOM = "CUSTOM"


class ComplianceCategory(StrEnum):
    DATA_PROTECTION = "data_protection"
    ACCESS_CONTROL = "access_control"
    AUDIT_TRAIL = "audit_trail"
    ENCRYPTION = "encryption"
    RETENTION = "retention"


class CheckInterval(StrEnum):
    REALTIME = "realtime"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class CheckStatus(StrEnum):
    PASS = "pass"
    FAIL = "fail"
    WARNING = "warning"
    PENDING = "pending"


class ReportPeriod(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class ComplianceLevel(StrEnum):
    COMPLIANT = "compliant"
    PARTIALLY_COMPLIANT = "partially_compliant"
    NON_COMPLIANT = "non_compliant"


# ThreatScorer: score delta per indicator severity and tier breakpoints
THREAT_SEVERITY_WEIGHTS: dict[Severity, int] = {
    Severity.CRITICAL: 25,
    Severity.HIGH: 15,
    Severity.MEDIUM: 10,
    Severity.LOW: 5,
}

THREAT_LEVEL_BREAKPOINTS: list[tuple[int, ThreatLevel]] = [
    (80, ThreatLevel.CRITICAL),
    (60, ThreatLevel.HIGH_RISK),
    (40, ThreatLevel.MEDIUM_RISK),
    (20, ThreatLevel.LOW_RISK),
]

# AuditRiskTracker: score delta and factor weight per action tier
RISK_LEVEL_DELTAS: dict[RiskLevel, int] = {
    RiskLevel.CRITICAL: 10,
    RiskLevel.HIGH: 7,
    RiskLevel.MEDIUM: 4,
    RiskLevel.LOW: 1,
}

RISK_FACTOR_WEIGHTS: dict[RiskLevel, float] = {
    RiskLevel.CRITICAL: 1.0,
    RiskLevel.HIGH: 0.8,
    RiskLevel.MEDIUM: 0.6,
    RiskLevel.LOW: 0.3,
}

RISK_LEVEL_BREAKPOINTS: list[tuple[int, RiskLevel]] = [
    (80, RiskLevel.CRITICAL),
    (60, RiskLevel.HIGH),
    (40, RiskLevel.MEDIUM),
]

SCORE_MIN = 0
SCORE_MAX = 100

MAX_FACTORS = 10
AUDIT_TRAIL_CAP = 1000
METRICS_CAP = 1000
MAX_DASHBOARD_ALERTS = 20
MAX_TOP_THREATS = 10
