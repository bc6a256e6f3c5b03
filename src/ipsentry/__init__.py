# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""ipsentry - Security telemetry core for IP management platforms."""

__version__ = "0.1.0"

from ipsentry.compliance.evaluator import ComplianceEvaluator
from ipsentry.context import SecurityContext, build_context
from ipsentry.risk.tracker import AuditRiskTracker
from ipsentry.threats.scorer import ThreatScorer

__all__ = [
    "AuditRiskTracker",
    "ComplianceEvaluator",
    "SecurityContext",
    "ThreatScorer",
    "__version__",
    "build_context",
]
