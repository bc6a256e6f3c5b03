# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Tests for the shared decay, clamp, and tier-mapping arithmetic."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from ipsentry.core.constants import RiskLevel, ThreatLevel
from ipsentry.core.scoring import (
    clamp_score,
    decay_score,
    hours_between,
    trim_to_recent,
)
from ipsentry.risk.tracker import RISK_SCALE
from ipsentry.threats.scorer import THREAT_SCALE

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


class TestClampAndDecay:
    @pytest.mark.parametrize(("value", "expected"), [(-5, 0), (0, 0), (55, 55), (100, 100), (140, 100)])
    def test_clamp(self, value, expected):
        assert clamp_score(value) == expected

    def test_hours_are_floored(self):
        assert hours_between(T0, T0 + timedelta(minutes=119)) == 1
        assert hours_between(T0, T0 + timedelta(hours=5)) == 5

    def test_missing_or_future_timestamp_counts_as_zero(self):
        assert hours_between(None, T0) == 0
        assert hours_between(T0 + timedelta(hours=3), T0) == 0

    def test_decay_never_goes_negative(self):
        assert decay_score(10, T0, T0 + timedelta(hours=50)) == 0

    def test_decay_is_monotonic_in_elapsed_time(self):
        scores = [decay_score(60, T0, T0 + timedelta(hours=h)) for h in range(0, 80, 3)]
        assert scores == sorted(scores, reverse=True)


class TestThreatScale:
    @pytest.mark.parametrize(
        ("score", "level"),
        [
            (100, ThreatLevel.CRITICAL),
            (80, ThreatLevel.CRITICAL),
            (79, ThreatLevel.HIGH_RISK),
            (60, ThreatLevel.HIGH_RISK),
            (59, ThreatLevel.MEDIUM_RISK),
            (40, ThreatLevel.MEDIUM_RISK),
            (39, ThreatLevel.LOW_RISK),
            (20, ThreatLevel.LOW_RISK),
            (19, ThreatLevel.SAFE),
            (0, ThreatLevel.SAFE),
        ],
    )
    def test_classify(self, score, level):
        assert THREAT_SCALE.classify(score) == level

    def test_apply_decays_before_adding(self):
        # max(0, 5 - 10) + 15 = 15; adding first would give 10
        score, level = THREAT_SCALE.apply(5, T0, T0 + timedelta(hours=10), 15)
        assert score == 15
        assert level == ThreatLevel.SAFE

    def test_apply_clamps_to_100(self):
        score, level = THREAT_SCALE.apply(95, T0, T0, 25)
        assert score == 100
        assert level == ThreatLevel.CRITICAL


class TestRiskScale:
    @pytest.mark.parametrize(
        ("score", "level"),
        [
            (80, RiskLevel.CRITICAL),
            (79, RiskLevel.HIGH),
            (60, RiskLevel.HIGH),
            (59, RiskLevel.MEDIUM),
            (40, RiskLevel.MEDIUM),
            (39, RiskLevel.LOW),
            (0, RiskLevel.LOW),
        ],
    )
    def test_classify(self, score, level):
        assert RISK_SCALE.classify(score) == level

    def test_weights(self):
        assert RISK_SCALE.weight(RiskLevel.CRITICAL) == 10
        assert RISK_SCALE.weight(RiskLevel.LOW) == 1
        assert RISK_SCALE.weight("unknown") == 0


class TestTrimToRecent:
    def test_drops_oldest(self):
        items = list(range(12))
        trim_to_recent(items, 10)
        assert items == list(range(2, 12))

    def test_noop_under_cap(self):
        items = [1, 2]
        trim_to_recent(items, 10)
        assert items == [1, 2]
