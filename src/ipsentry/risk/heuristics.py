# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Per-action risk heuristic, metric categorisation, and recommendations.

An action's risk is the sum of three additive parts: a weight for the verb,
a weight for the resource it touches, and a bonus for each risk flag set in
the action details.  The total maps onto a :class:`RiskLevel`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ipsentry.core.constants import LogLevel, MetricCategory, RiskLevel

ACTION_WEIGHTS: dict[str, int] = {
    "login": 1,
    "logout": 0,
    "create": 3,
    "update": 2,
    "delete": 5,
    "export": 4,
    "import": 4,
    "download": 3,
    "upload": 4,
}

RESOURCE_WEIGHTS: dict[str, int] = {
    "user": 2,
    "patent": 1,
    "deadline": 1,
    "contract": 3,
    "backup": 4,
    "security": 5,
    "system": 5,
}

DETAIL_FLAG_WEIGHTS: dict[str, int] = {
    "sensitiveData": 3,
    "bulkOperation": 2,
    "privilegedAccess": 4,
    "externalAccess": 3,
}

DEFAULT_WEIGHT = 1

ACTION_RISK_BREAKPOINTS: list[tuple[int, RiskLevel]] = [
    (8, RiskLevel.CRITICAL),
    (6, RiskLevel.HIGH),
    (4, RiskLevel.MEDIUM),
]

_CATEGORY_ACTIONS: list[tuple[MetricCategory, frozenset[str]]] = [
    (MetricCategory.AUTHENTICATION, frozenset({"login", "logout", "password_change"})),
    (
        MetricCategory.DATA_ACCESS,
        frozenset({"create", "read", "update", "delete", "export", "import"}),
    ),
    (MetricCategory.SYSTEM_SECURITY, frozenset({"backup", "restore", "config_change"})),
    (MetricCategory.COMPLIANCE, frozenset({"compliance_check", "audit"})),
    (MetricCategory.THREATS, frozenset({"threat_detected", "blocked"})),
]

_RECOMMENDATIONS: dict[RiskLevel, list[str]] = {
    RiskLevel.CRITICAL: [
        "Suspend the user account immediately",
        "Open a security investigation",
        "Notify the security team",
    ],
    RiskLevel.HIGH: [
        "Increase monitoring of user activity",
        "Restrict permissions for sensitive operations",
        "Require additional identity verification",
    ],
    RiskLevel.MEDIUM: [
        "Review user activity regularly",
        "Strengthen access controls",
    ],
    RiskLevel.LOW: [
        "Continue monitoring user activity",
    ],
}

_RISK_LOG_LEVELS: dict[RiskLevel, LogLevel] = {
    RiskLevel.CRITICAL: LogLevel.CRITICAL,
    RiskLevel.HIGH: LogLevel.ERROR,
    RiskLevel.MEDIUM: LogLevel.WARN,
    RiskLevel.LOW: LogLevel.INFO,
}


def action_risk_points(action: str, resource: str, details: Mapping[str, Any] | None = None) -> int:
    """Return the additive risk points of one action."""
    points = ACTION_WEIGHTS.get(str(action).lower(), DEFAULT_WEIGHT)
    points += RESOURCE_WEIGHTS.get(str(resource).lower(), DEFAULT_WEIGHT)
    for flag, weight in DETAIL_FLAG_WEIGHTS.items():
        if (details or {}).get(flag):
            points += weight
    return points


def assess_action_risk(
    action: str, resource: str, details: Mapping[str, Any] | None = None
) -> RiskLevel:
    """Classify one audited action.

    >>> assess_action_risk("delete", "security")
    <RiskLevel.CRITICAL: 'critical'>
    """
    points = action_risk_points(action, resource, details)
    for minimum, level in ACTION_RISK_BREAKPOINTS:
        if points >= minimum:
            return level
    return RiskLevel.LOW


def categorize_action(action: str) -> MetricCategory:
    """Map an action verb onto a metric category (``data_access`` by default)."""
    action = action.lower()
    for category, actions in _CATEGORY_ACTIONS:
        if action in actions:
            return category
    return MetricCategory.DATA_ACCESS


def default_threshold(category: MetricCategory, action: str) -> int:
    match category:
        case MetricCategory.AUTHENTICATION:
            return 5 if action == "login_failed" else 100
        case MetricCategory.DATA_ACCESS:
            return 10 if action == "export" else 50
        case MetricCategory.SYSTEM_SECURITY:
            return 20
        case MetricCategory.COMPLIANCE:
            return 5
        case MetricCategory.THREATS:
            return 3
        case _:
            return 50


def recommendations_for(level: RiskLevel) -> list[str]:
    return list(_RECOMMENDATIONS.get(level, _RECOMMENDATIONS[RiskLevel.LOW]))


def risk_to_log_level(level: RiskLevel) -> LogLevel:
    return _RISK_LOG_LEVELS.get(level, LogLevel.INFO)
