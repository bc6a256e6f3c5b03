# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Threat scorer: runs detectors over security events and keeps per-subject scores."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, tzinfo
from typing import Any

from pydantic import ValidationError

from ipsentry.audit.logger import EventSink
from ipsentry.core.constants import (
    MAX_FACTORS,
    MAX_TOP_THREATS,
    THREAT_LEVEL_BREAKPOINTS,
    THREAT_SEVERITY_WEIGHTS,
    IndicatorKind,
    LogLevel,
    SecurityEventType,
    Severity,
    ThreatLevel,
)
from ipsentry.core.exceptions import DetectorError
from ipsentry.core.registry import PriorityRegistry
from ipsentry.core.scoring import ScoreScale
from ipsentry.core.state import KeyedLock, SubjectStateMap
from ipsentry.models.threat import (
    Origin,
    SecurityRule,
    SeveritySummary,
    SubjectRiskProfile,
    ThreatIndicator,
    ThreatReport,
    ThreatScore,
)
from ipsentry.notifications.events import NotificationEvent, is_escalation
from ipsentry.notifications.router import NotificationRouter, notify
from ipsentry.storage.records import RecordStore
from ipsentry.threats.detectors import BaseDetector, DetectionContext, default_detectors
from ipsentry.threats.rules import default_security_rules

logger = logging.getLogger("ipsentry.threats.scorer")

THREAT_SCALE: ScoreScale[ThreatLevel] = ScoreScale(
    breakpoints=THREAT_LEVEL_BREAKPOINTS,
    floor_level=ThreatLevel.SAFE,
    weights=THREAT_SEVERITY_WEIGHTS,
)

_FACTOR_LABELS: dict[Severity, str] = {
    Severity.CRITICAL: "Critical threat",
    Severity.HIGH: "High-risk threat",
    Severity.MEDIUM: "Medium-risk threat",
    Severity.LOW: "Low-risk threat",
}

_SEVERITY_LOG_LEVELS: dict[Severity, LogLevel] = {
    Severity.CRITICAL: LogLevel.CRITICAL,
    Severity.HIGH: LogLevel.ERROR,
    Severity.MEDIUM: LogLevel.WARN,
    Severity.LOW: LogLevel.INFO,
}


def severity_to_log_level(severity: Severity) -> LogLevel:
    return _SEVERITY_LOG_LEVELS.get(severity, LogLevel.INFO)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ThreatScorer:
    """Derives threat indicators and a decaying threat score per subject.

    Every public coroutine is fail-open: detector, store, sink and notifier
    failures are logged and treated as "no data".  Only the in-memory score
    map is mutated, one subject at a time under a per-subject lock.
    """

    def __init__(
        self,
        store: RecordStore,
        sink: EventSink,
        *,
        detectors: list[BaseDetector] | None = None,
        rules: Iterable[SecurityRule] | None = None,
        suspicious_ips: Iterable[str] = (),
        local_tz: tzinfo | None = None,
        max_subjects: int = 10_000,
        notifier: NotificationRouter | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._sink = sink
        self._detectors = detectors if detectors is not None else default_detectors(suspicious_ips)
        self._rules: PriorityRegistry[SecurityRule] = PriorityRegistry(
            default_security_rules() if rules is None else rules
        )
        self._local_tz = local_tz
        self._scores: SubjectStateMap[int, ThreatScore] = SubjectStateMap(max_subjects)
        self._locks: KeyedLock[int] = KeyedLock()
        self._notifier = notifier
        self._clock = clock

    @property
    def detectors(self) -> list[BaseDetector]:
        return list(self._detectors)

    # ------------------------------------------------------------------
    # Event analysis
    # ------------------------------------------------------------------

    async def analyze_event(
        self,
        subject_id: int,
        event_type: str,
        metadata: dict[str, Any] | None = None,
        origin: Origin | None = None,
    ) -> list[ThreatIndicator]:
        """Run every applicable detector for one event.

        Returns the indicators produced, possibly none.  Never raises.
        """
        try:
            ctx = DetectionContext(
                subject_id=subject_id,
                event_type=event_type,
                store=self._store,
                now=self._clock(),
                metadata=dict(metadata or {}),
                origin=origin,
                local_tz=self._local_tz,
            )
        except Exception:
            logger.exception("Could not build detection context for subject %s", subject_id)
            return []

        indicators: list[ThreatIndicator] = []
        for detector in self._detectors:
            try:
                if not detector.applies_to(ctx):
                    continue
                indicators.extend(await detector.run(ctx))
            except DetectorError as exc:
                logger.error("%s (subject %s)", exc, subject_id)
            except Exception as exc:
                logger.error("Detector %s failed for subject %s: %s", detector.name, subject_id, exc)

        if not indicators:
            return []

        previous, score = self._apply(subject_id, indicators)

        for indicator in indicators:
            await self._log_indicator(subject_id, indicator, origin)
        await self._log_score(score)

        if is_escalation(previous, score.level):
            await notify(self._notifier, NotificationEvent.from_threat_score(score, previous))

        logger.info(
            "Subject %s: %d indicator(s), score=%d level=%s",
            subject_id,
            len(indicators),
            score.score,
            score.level,
        )
        return indicators

    async def _log_indicator(
        self, subject_id: int, indicator: ThreatIndicator, origin: Origin | None
    ) -> None:
        try:
            await self._sink.log_security_event(
                SecurityEventType.THREAT_DETECTED,
                f"Threat detected: {indicator.description}",
                severity_to_log_level(indicator.severity),
                subject_id=subject_id,
                origin=origin,
                metadata={
                    **indicator.metadata,
                    "indicator_id": indicator.id,
                    "severity": indicator.severity,
                    "type": indicator.kind,
                    "description": indicator.description,
                },
            )
        except Exception:
            logger.exception("Failed to log threat indicator for subject %s", subject_id)

    async def _log_score(self, score: ThreatScore) -> None:
        try:
            await self._sink.log_security_event(
                SecurityEventType.THREAT_SCORE_UPDATED,
                f"Threat score updated: {score.score} ({score.level})",
                LogLevel.INFO,
                subject_id=score.subject_id,
                metadata={
                    "score": score.score,
                    "level": score.level,
                    "factor_count": len(score.factors),
                },
            )
        except Exception:
            logger.exception("Failed to log threat score for subject %s", score.subject_id)

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    def update_score(self, subject_id: int, indicators: list[ThreatIndicator]) -> ThreatScore:
        """Fold *indicators* into the subject's score and return a copy.

        An empty batch leaves the stored score (and its timestamp) untouched.
        """
        if not indicators:
            current = self._scores.get(subject_id)
            return (current or ThreatScore(subject_id=subject_id)).model_copy(deep=True)
        _, score = self._apply(subject_id, indicators)
        return score

    def _apply(
        self, subject_id: int, indicators: list[ThreatIndicator]
    ) -> tuple[ThreatLevel | None, ThreatScore]:
        with self._locks.hold(subject_id):
            current = self._scores.get(subject_id)
            previous_level = current.level if current else None
            now = self._clock()

            delta = sum(THREAT_SCALE.weight(i.severity) for i in indicators)
            updated, level = THREAT_SCALE.apply(
                current.score if current else 0,
                current.last_updated if current else None,
                now,
                delta,
            )

            factors = list(current.factors) if current else []
            factors.extend(
                f"{_FACTOR_LABELS.get(i.severity, 'Threat')}: {i.description}" for i in indicators
            )

            score = ThreatScore(
                subject_id=subject_id,
                score=updated,
                level=level,
                factors=factors[-MAX_FACTORS:],
                last_updated=now,
            )
            self._scores.set(subject_id, score)
            return previous_level, score.model_copy(deep=True)

    def get_threat_score(self, subject_id: int) -> ThreatScore | None:
        score = self._scores.get(subject_id)
        return score.model_copy(deep=True) if score else None

    def get_all_threat_scores(self) -> list[ThreatScore]:
        return [score.model_copy(deep=True) for score in self._scores.values()]

    # ------------------------------------------------------------------
    # Rule registry
    # ------------------------------------------------------------------

    def get_rules(self) -> list[SecurityRule]:
        return self._rules.get_all()

    def get_rule(self, rule_id: str) -> SecurityRule | None:
        return self._rules.get(rule_id)

    def add_rule(self, rule: SecurityRule) -> None:
        self._rules.add(rule)
        logger.info("Security rule added: %s (priority %d)", rule.id, rule.priority)

    def update_rule(self, rule_id: str, /, **changes: Any) -> bool:
        changes.pop("id", None)
        try:
            updated = self._rules.update(rule_id, changes)
        except ValidationError as exc:
            logger.warning("Rejected update of security rule %s: %s", rule_id, exc)
            return False
        return updated is not None

    def delete_rule(self, rule_id: str) -> bool:
        return self._rules.delete(rule_id)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def generate_threat_report(
        self,
        start: datetime,
        end: datetime,
        subject_id: int | None = None,
    ) -> ThreatReport:
        """Summarise ``threat_detected`` events in ``[start, end]``.

        Store failures yield an empty summary; the risk profile is always
        built from the in-memory scores.
        """
        try:
            events = await self._store.list_events(
                event_type=SecurityEventType.THREAT_DETECTED,
                subject_id=subject_id,
                start=start,
                end=end,
            )
        except Exception:
            logger.exception("Failed to load threat events for report")
            events = []

        summary = SeveritySummary(total_threats=len(events))
        indicators: list[ThreatIndicator] = []
        for event in events:
            meta = event.metadata
            try:
                severity = Severity(meta.get("severity", Severity.LOW))
            except ValueError:
                severity = Severity.LOW
            match severity:
                case Severity.CRITICAL:
                    summary.critical_threats += 1
                case Severity.HIGH:
                    summary.high_threats += 1
                case Severity.MEDIUM:
                    summary.medium_threats += 1
                case _:
                    summary.low_threats += 1

            if len(indicators) >= MAX_TOP_THREATS:
                continue
            try:
                kind = IndicatorKind(meta.get("type", IndicatorKind.SYSTEM_OPERATION))
            except ValueError:
                kind = IndicatorKind.SYSTEM_OPERATION
            indicators.append(
                ThreatIndicator(
                    id=str(meta.get("indicator_id") or event.event_id),
                    kind=kind,
                    severity=severity,
                    description=str(meta.get("description") or event.message),
                    metadata=meta,
                    timestamp=event.timestamp,
                )
            )

        profile: list[SubjectRiskProfile] = []
        scores = self.get_all_threat_scores()
        if subject_id is not None:
            scores = [s for s in scores if s.subject_id == subject_id]
        for score in sorted(scores, key=lambda s: s.score, reverse=True):
            profile.append(
                SubjectRiskProfile(
                    subject_id=score.subject_id,
                    username=await self._username(score.subject_id),
                    threat_score=score.score,
                    risk_level=score.level,
                    threat_count=len(score.factors),
                )
            )

        return ThreatReport(
            start_date=start,
            end_date=end,
            summary=summary,
            top_threats=indicators,
            user_risk_profile=profile,
            generated_at=self._clock(),
        )

    async def _username(self, subject_id: int) -> str:
        try:
            return await self._store.resolve_username(subject_id) or "Unknown"
        except Exception:
            logger.warning("Could not resolve username for subject %s", subject_id)
            return "Unknown"
