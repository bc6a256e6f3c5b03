# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Explicit wiring of one instance of each engine and its collaborators."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import aiosqlite

from ipsentry.audit.logger import EventSink, SecurityEventLogger
from ipsentry.audit.store import SecurityEventStore
from ipsentry.compliance.evaluator import ComplianceEvaluator
from ipsentry.core.config import Settings
from ipsentry.core.exceptions import ConfigurationError
from ipsentry.notifications.factory import build_router
from ipsentry.notifications.router import NotificationRouter
from ipsentry.risk.tracker import AuditRiskTracker
from ipsentry.storage.records import RecordStore, SQLRecordStore
from ipsentry.threats.scorer import ThreatScorer

logger = logging.getLogger("ipsentry.context")


@dataclass
class SecurityContext:
    """The engines plus the collaborators they share.

    Route handlers and CLI commands receive this object explicitly; nothing
    in ipsentry keeps a module-level engine instance.
    """

    store: RecordStore
    sink: EventSink
    threats: ThreatScorer
    risk: AuditRiskTracker
    compliance: ComplianceEvaluator
    notifier: NotificationRouter | None = None

    @classmethod
    def create(
        cls,
        store: RecordStore,
        sink: EventSink,
        settings: Settings | None = None,
        *,
        notifier: NotificationRouter | None = None,
    ) -> SecurityContext:
        settings = settings or Settings()
        local_tz = resolve_timezone(settings.local_timezone)
        return cls(
            store=store,
            sink=sink,
            threats=ThreatScorer(
                store,
                sink,
                suspicious_ips=settings.suspicious_ips,
                local_tz=local_tz,
                max_subjects=settings.max_tracked_subjects,
                notifier=notifier,
            ),
            risk=AuditRiskTracker(
                store,
                sink,
                trail_cap=settings.audit_trail_cap,
                metrics_cap=settings.metrics_cap,
                max_subjects=settings.max_tracked_subjects,
                retention_days=settings.audit_retention_days,
                notifier=notifier,
            ),
            compliance=ComplianceEvaluator(store, sink, notifier=notifier),
            notifier=notifier,
        )


def resolve_timezone(name: str) -> tzinfo | None:
    """Return the zone for an IANA *name*; empty means host local time."""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        msg = f"Unknown timezone: {name!r}"
        raise ConfigurationError(msg) from exc


def build_context(settings: Settings, db: aiosqlite.Connection) -> SecurityContext:
    """Wire the SQLite-backed collaborators and engines for *db*."""
    sink = SecurityEventLogger(SecurityEventStore(db), log_dir=settings.event_log_dir)
    notifier = build_router(settings)
    context = SecurityContext.create(
        SQLRecordStore(db),
        sink,
        settings,
        notifier=notifier if notifier.channels else None,
    )
    logger.info(
        "Security context ready (notification channels: %d)", len(notifier.channels)
    )
    return context
