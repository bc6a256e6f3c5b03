# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Downstream notification of tier escalations."""

from ipsentry.notifications.base import NotificationChannel
from ipsentry.notifications.events import EventType, NotificationEvent
from ipsentry.notifications.generic_webhook import GenericWebhookChannel
from ipsentry.notifications.router import NotificationRouter, notify
from ipsentry.notifications.slack import SlackChannel

__all__ = [
    "EventType",
    "GenericWebhookChannel",
    "NotificationChannel",
    "NotificationEvent",
    "NotificationRouter",
    "SlackChannel",
    "notify",
]
