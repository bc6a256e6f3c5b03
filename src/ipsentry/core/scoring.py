# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Shared decay, clamp, and tier-mapping arithmetic for score-bearing entities.

Both the threat scorer and the audit risk tracker keep a per-subject score
that loses one point per elapsed hour, is bumped by a weighted delta, is
clamped to ``[0, 100]`` and is then mapped onto a tier through fixed
breakpoints.  The two engines differ only in their weights and breakpoints,
which is what :class:`ScoreScale` captures.
"""

from __future__ import annotations

import math
from collections.abc import Hashable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Generic, TypeVar

from ipsentry.core.constants import SCORE_MAX, SCORE_MIN

L = TypeVar("L")


def clamp_score(value: int) -> int:
    """Clamp *value* into the closed ``[0, 100]`` interval."""
    return max(SCORE_MIN, min(SCORE_MAX, value))


def hours_between(earlier: datetime | None, later: datetime) -> int:
    """Return the number of whole hours elapsed from *earlier* to *later*.

    A missing or future *earlier* timestamp counts as zero elapsed hours.
    """
    if earlier is None:
        return 0
    elapsed = (later - earlier).total_seconds() / 3600
    return max(0, math.floor(elapsed))


def decay_score(score: int, last_updated: datetime | None, now: datetime) -> int:
    """Subtract one point per whole elapsed hour, bounded below by zero."""
    return max(SCORE_MIN, score - hours_between(last_updated, now))


@dataclass(frozen=True, slots=True)
class ScoreScale(Generic[L]):
    """Weights and breakpoints for one scoring lens.

    ``breakpoints`` are ``(minimum score, level)`` pairs ordered from the
    highest minimum down; scores below every minimum map to ``floor_level``.
    """

    breakpoints: Sequence[tuple[int, L]]
    floor_level: L
    weights: Mapping[Hashable, int]

    def classify(self, score: int) -> L:
        for minimum, level in self.breakpoints:
            if score >= minimum:
                return level
        return self.floor_level

    def weight(self, key: Hashable) -> int:
        return self.weights.get(key, 0)

    def apply(
        self,
        score: int,
        last_updated: datetime | None,
        now: datetime,
        delta: int,
    ) -> tuple[int, L]:
        """Decay *score* once, add *delta*, clamp, and classify the result."""
        updated = clamp_score(decay_score(score, last_updated, now) + delta)
        return updated, self.classify(updated)


def trim_to_recent(items: list, cap: int) -> None:
    """Drop the oldest entries of *items* in place so at most *cap* remain."""
    overflow = len(items) - cap
    if overflow > 0:
        del items[:overflow]
