# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Notification router -- dispatches events to channels whose filters match."""

from __future__ import annotations

import logging

from ipsentry.notifications.base import NotificationChannel
from ipsentry.notifications.events import EventType, NotificationEvent, tier_rank

logger = logging.getLogger("ipsentry.notifications.router")

_ALL_EVENT_TYPES = frozenset(EventType)


class ChannelEntry:
    """A channel registration with optional filters."""

    def __init__(
        self,
        channel: NotificationChannel,
        *,
        event_types: frozenset[EventType] | None = None,
        min_level: str | None = None,
    ) -> None:
        self.channel = channel
        self.event_types = event_types or _ALL_EVENT_TYPES
        self.min_level = min_level

    def matches(self, event: NotificationEvent) -> bool:
        if event.event_type not in self.event_types:
            return False
        # Compliance tiers are not ranked; the level filter only gates subject tiers
        if self.min_level is None or event.event_type == EventType.COMPLIANCE_DEGRADED:
            return True
        return event.rank >= tier_rank(self.min_level)


class NotificationRouter:
    """Dispatch :class:`NotificationEvent` instances to registered channels."""

    def __init__(self) -> None:
        self._entries: list[ChannelEntry] = []

    @property
    def channels(self) -> list[NotificationChannel]:
        return [entry.channel for entry in self._entries]

    def register(
        self,
        channel: NotificationChannel,
        *,
        event_types: frozenset[EventType] | None = None,
        min_level: str | None = None,
    ) -> None:
        self._entries.append(
            ChannelEntry(channel, event_types=event_types, min_level=min_level)
        )
        logger.info("Registered notification channel: %s", channel.name)

    async def dispatch(self, event: NotificationEvent) -> dict[str, bool]:
        """Send the event to all matching channels.

        Returns:
            Mapping of channel name to delivery success (True/False).
        """
        results: dict[str, bool] = {}

        for entry in self._entries:
            if not entry.matches(event):
                logger.debug(
                    "Channel %s filtered out event %s (level=%s)",
                    entry.channel.name,
                    event.event_type,
                    event.level,
                )
                continue

            try:
                results[entry.channel.name] = await entry.channel.send(event)
            except Exception:
                logger.exception(
                    "Unhandled error dispatching to channel %s", entry.channel.name
                )
                results[entry.channel.name] = False

        return results

    def get_channel_status(self) -> list[dict[str, object]]:
        return [
            {
                "name": entry.channel.name,
                "configured": entry.channel.is_configured(),
                "event_types": sorted(entry.event_types),
                "min_level": entry.min_level,
            }
            for entry in self._entries
        ]


async def notify(router: NotificationRouter | None, event: NotificationEvent) -> None:
    """Dispatch *event* if a router is configured, swallowing delivery errors."""
    if router is None:
        return
    try:
        await router.dispatch(event)
    except Exception:
        logger.exception("Notification dispatch failed for %s", event.event_type)
