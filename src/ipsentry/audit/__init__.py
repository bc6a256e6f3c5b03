# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Security event log: the sink every engine reports to."""

from ipsentry.audit.events import SecurityEvent
from ipsentry.audit.logger import EventSink, SecurityEventLogger
from ipsentry.audit.store import SecurityEventStore

__all__ = [
    "EventSink",
    "SecurityEvent",
    "SecurityEventLogger",
    "SecurityEventStore",
]
