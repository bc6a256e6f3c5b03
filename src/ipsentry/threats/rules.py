# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Default security rules seeded into the threat scorer's registry.

The registry is a configuration surface for operators and the API.  The
detectors in :mod:`ipsentry.threats.detectors` implement fixed logic and do
not read these conditions.
"""

from __future__ import annotations

from ipsentry.core.constants import RuleType
from ipsentry.models.threat import SecurityRule


def default_security_rules() -> list[SecurityRule]:
    return [
        SecurityRule(
            id="auth_failure_threshold",
            name="Authentication failure threshold",
            description="Detect repeated authentication failures in a short window",
            type=RuleType.THRESHOLD,
            conditions={"max_failures": 5, "time_window_ms": 300_000},
            actions=["block_user", "alert_admin", "log_event"],
            priority=1,
        ),
        SecurityRule(
            id="unusual_access_pattern",
            name="Unusual access pattern",
            description="Detect system access outside normal hours",
            type=RuleType.PATTERN,
            conditions={"normal_hours": {"start": 8, "end": 18}},
            actions=["alert_admin", "log_event"],
            priority=2,
        ),
        SecurityRule(
            id="data_export_anomaly",
            name="Data export anomaly",
            description="Detect unusually large or frequent data exports",
            type=RuleType.ANOMALY,
            conditions={"max_export_bytes": 1_000_000, "max_exports_per_hour": 10},
            actions=["block_operation", "alert_admin", "log_event"],
            priority=3,
        ),
        SecurityRule(
            id="privilege_escalation",
            name="Privilege escalation",
            description="Detect unexpected elevation of user privileges",
            type=RuleType.COMPLIANCE,
            conditions={"require_approval": True, "max_privilege_level": "admin"},
            actions=["require_approval", "alert_admin", "log_event"],
            priority=4,
        ),
    ]
