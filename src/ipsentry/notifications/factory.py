# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Factory to build a NotificationRouter from application settings."""

from __future__ import annotations

import logging

from ipsentry.core.config import Settings
from ipsentry.notifications.generic_webhook import GenericWebhookChannel
from ipsentry.notifications.router import NotificationRouter
from ipsentry.notifications.slack import SlackChannel

logger = logging.getLogger("ipsentry.notifications.factory")


def build_router(settings: Settings) -> NotificationRouter:
    """Create a :class:`NotificationRouter` from :class:`Settings`.

    Channels listed in ``settings.notification_channels`` are registered.
    If the list is empty, channels are auto-detected from the credentials
    that are present.
    """
    router = NotificationRouter()
    channels = set(settings.notification_channels)

    if not channels:
        if settings.slack_webhook_url:
            channels.add("slack")
        if settings.webhook_url:
            channels.add("webhook")

    for ch_name in sorted(channels):
        if ch_name == "slack" and settings.slack_webhook_url:
            router.register(
                SlackChannel(settings.slack_webhook_url),
                min_level=settings.notify_min_level,
            )
        elif ch_name == "webhook" and settings.webhook_url:
            router.register(
                GenericWebhookChannel(settings.webhook_url, secret=settings.webhook_secret),
                min_level=settings.notify_min_level,
            )
        else:
            logger.warning("Notification channel '%s' requested but not configured", ch_name)

    return router
