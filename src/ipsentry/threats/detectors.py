# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Fixed-logic threat detectors.

Each detector looks at one incoming event plus the subject's history (queried
through the :class:`~ipsentry.storage.records.RecordStore`) and returns zero
or more :class:`ThreatIndicator` objects.  Detectors do not touch scores;
the :class:`~ipsentry.threats.scorer.ThreatScorer` decides what to do with
their output and isolates their failures.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from typing import Any

from ipsentry.core.constants import IndicatorKind, SecurityEventType, Severity
from ipsentry.core.exceptions import DetectorError
from ipsentry.models.threat import Origin, ThreatIndicator
from ipsentry.storage.records import RecordStore

FAILED_LOGIN_WINDOW = timedelta(minutes=5)
FAILED_LOGIN_THRESHOLD = 5
EXPORT_WINDOW = timedelta(hours=1)
EXPORT_THRESHOLD = 10
ORIGIN_WINDOW = timedelta(hours=24)
MAX_DISTINCT_ORIGINS = 3

# Local hours considered normal for interactive activity: [06:00, 22:59]
NORMAL_HOURS_START = 6
NORMAL_HOURS_END = 22

AUTHENTICATION_EVENTS = frozenset(
    {
        SecurityEventType.LOGIN,
        SecurityEventType.LOGIN_SUCCESS,
        SecurityEventType.LOGIN_FAILED,
    }
)

PRIVILEGE_OPERATIONS = frozenset({"role_change", "permission_grant"})


@dataclass(frozen=True, slots=True)
class DetectionContext:
    """Everything a detector may look at for one event."""

    subject_id: int
    event_type: str
    store: RecordStore
    now: datetime
    metadata: dict[str, Any] = field(default_factory=dict)
    origin: Origin | None = None
    local_tz: tzinfo | None = None

    @property
    def ip_address(self) -> str | None:
        if self.origin is None or not self.origin.ip_address:
            return None
        if self.origin.ip_address == "unknown":
            return None
        return self.origin.ip_address

    @property
    def local_hour(self) -> int:
        # astimezone(None) converts to the host's local zone
        return self.now.astimezone(self.local_tz).hour


class BaseDetector(ABC):
    """All threat detectors implement this interface."""

    name: str
    kind: IndicatorKind

    @abstractmethod
    def applies_to(self, ctx: DetectionContext) -> bool:
        """Return ``True`` if this detector should run for the event."""

    @abstractmethod
    async def detect(self, ctx: DetectionContext) -> list[ThreatIndicator]:
        """Inspect the event and return indicators (possibly none)."""

    async def run(self, ctx: DetectionContext) -> list[ThreatIndicator]:
        """Run :meth:`detect`, wrapping any failure in :class:`DetectorError`."""
        try:
            return await self.detect(ctx)
        except DetectorError:
            raise
        except Exception as exc:
            msg = f"{self.name} detector failed: {exc}"
            raise DetectorError(msg) from exc

    def indicator(
        self,
        ctx: DetectionContext,
        severity: Severity,
        description: str,
        **metadata: Any,
    ) -> ThreatIndicator:
        return ThreatIndicator(
            kind=self.kind,
            severity=severity,
            description=description,
            metadata={"detector": self.name, **metadata},
            timestamp=ctx.now,
        )


class AuthenticationDetector(BaseDetector):
    """Bursts of failed logins and logins at unusual local hours."""

    name = "authentication"
    kind = IndicatorKind.AUTHENTICATION

    def applies_to(self, ctx: DetectionContext) -> bool:
        return ctx.event_type in AUTHENTICATION_EVENTS

    async def detect(self, ctx: DetectionContext) -> list[ThreatIndicator]:
        indicators: list[ThreatIndicator] = []

        failures = await ctx.store.count_events(
            subject_id=ctx.subject_id,
            event_type=SecurityEventType.LOGIN_FAILED,
            since=ctx.now - FAILED_LOGIN_WINDOW,
        )
        if failures >= FAILED_LOGIN_THRESHOLD:
            indicators.append(
                self.indicator(
                    ctx,
                    Severity.HIGH,
                    f"Repeated authentication failures in a short window ({failures} in 5 minutes)",
                    failure_count=failures,
                    time_window="5m",
                )
            )

        hour = ctx.local_hour
        if hour < NORMAL_HOURS_START or hour > NORMAL_HOURS_END:
            indicators.append(
                self.indicator(
                    ctx,
                    Severity.MEDIUM,
                    f"Login attempt at unusual time ({hour:02d}:00)",
                    login_hour=hour,
                    normal_hours="06:00-22:59",
                )
            )

        return indicators


class DataAccessDetector(BaseDetector):
    """Export bursts and access to data flagged as sensitive."""

    name = "data_access"
    kind = IndicatorKind.DATA_ACCESS

    def applies_to(self, ctx: DetectionContext) -> bool:
        return ctx.event_type == SecurityEventType.DATA_ACCESS

    async def detect(self, ctx: DetectionContext) -> list[ThreatIndicator]:
        indicators: list[ThreatIndicator] = []
        operation = ctx.metadata.get("operation")

        if operation == "export":
            exports = await ctx.store.count_events(
                subject_id=ctx.subject_id,
                event_type=SecurityEventType.DATA_EXPORT,
                since=ctx.now - EXPORT_WINDOW,
            )
            if exports >= EXPORT_THRESHOLD:
                indicators.append(
                    self.indicator(
                        ctx,
                        Severity.MEDIUM,
                        f"Unusually frequent data exports ({exports} in the last hour)",
                        export_count=exports,
                        time_window="1h",
                    )
                )

        data_type = ctx.metadata.get("dataType")
        if ctx.metadata.get("sensitiveData") and data_type:
            indicators.append(
                self.indicator(
                    ctx,
                    Severity.LOW,
                    f"Sensitive data accessed: {data_type}",
                    data_type=data_type,
                    access_method=operation,
                )
            )

        return indicators


class SystemOperationDetector(BaseDetector):
    """Privilege changes and configuration changes."""

    name = "system_operation"
    kind = IndicatorKind.SYSTEM_OPERATION

    def applies_to(self, ctx: DetectionContext) -> bool:
        return ctx.event_type == SecurityEventType.SYSTEM_OPERATION

    async def detect(self, ctx: DetectionContext) -> list[ThreatIndicator]:
        operation = ctx.metadata.get("operation")

        if operation in PRIVILEGE_OPERATIONS:
            return [
                self.indicator(
                    ctx,
                    Severity.HIGH,
                    f"Privilege change operation: {operation}",
                    operation=operation,
                    target_user=ctx.metadata.get("targetUser"),
                    new_role=ctx.metadata.get("newRole"),
                )
            ]

        if operation == "config_change":
            return [
                self.indicator(
                    ctx,
                    Severity.MEDIUM,
                    f"System configuration changed: {ctx.metadata.get('configKey')}",
                    config_key=ctx.metadata.get("configKey"),
                    old_value=ctx.metadata.get("oldValue"),
                    new_value=ctx.metadata.get("newValue"),
                )
            ]

        return []


class NetworkDetector(BaseDetector):
    """Known-suspicious origins and subjects hopping between many IPs."""

    name = "network"
    kind = IndicatorKind.NETWORK

    def __init__(self, suspicious_ips: Iterable[str] = ()) -> None:
        self._suspicious_ips = frozenset(suspicious_ips)

    def applies_to(self, ctx: DetectionContext) -> bool:
        return ctx.ip_address is not None

    async def detect(self, ctx: DetectionContext) -> list[ThreatIndicator]:
        indicators: list[ThreatIndicator] = []
        ip_address = ctx.ip_address

        if ip_address in self._suspicious_ips:
            indicators.append(
                self.indicator(
                    ctx,
                    Severity.MEDIUM,
                    f"Access from suspicious IP address: {ip_address}",
                    ip_address=ip_address,
                )
            )

        distinct = await ctx.store.count_distinct_origins(
            ctx.subject_id, ctx.now - ORIGIN_WINDOW
        )
        if distinct > MAX_DISTINCT_ORIGINS:
            indicators.append(
                self.indicator(
                    ctx,
                    Severity.LOW,
                    f"Frequent IP address changes ({distinct} distinct IPs in 24 hours)",
                    ip_count=distinct,
                    time_window="24h",
                )
            )

        return indicators


def default_detectors(suspicious_ips: Iterable[str] = ()) -> list[BaseDetector]:
    return [
        AuthenticationDetector(),
        DataAccessDetector(),
        SystemOperationDetector(),
        NetworkDetector(suspicious_ips),
    ]
