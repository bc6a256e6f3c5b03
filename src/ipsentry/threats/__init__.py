# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Threat detection: detectors, security rules, and the threat scorer."""

from ipsentry.threats.detectors import BaseDetector, DetectionContext, default_detectors
from ipsentry.threats.rules import default_security_rules
from ipsentry.threats.scorer import ThreatScorer

__all__ = [
    "BaseDetector",
    "DetectionContext",
    "ThreatScorer",
    "default_detectors",
    "default_security_rules",
]
