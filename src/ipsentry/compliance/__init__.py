# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Compliance rules, check procedures, and the compliance evaluator."""

from ipsentry.compliance.evaluator import ComplianceEvaluator
from ipsentry.compliance.rules import default_compliance_rules, default_retention_policies

__all__ = [
    "ComplianceEvaluator",
    "default_compliance_rules",
    "default_retention_policies",
]
