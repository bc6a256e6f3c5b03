# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Audit trail and per-user risk tracking."""

from ipsentry.risk.heuristics import assess_action_risk, categorize_action
from ipsentry.risk.tracker import AuditRiskTracker

__all__ = ["AuditRiskTracker", "assess_action_risk", "categorize_action"]
