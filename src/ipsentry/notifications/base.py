# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Abstract base class for notification channels."""

from __future__ import annotations

import abc

from ipsentry.notifications.events import NotificationEvent


class NotificationChannel(abc.ABC):
    """Base class for all notification channels."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Human-readable channel name (e.g. ``'slack'``)."""

    @abc.abstractmethod
    async def send(self, event: NotificationEvent) -> bool:
        """Deliver a notification event.

        Returns:
            ``True`` if the delivery succeeded, ``False`` otherwise.
        """

    def is_configured(self) -> bool:
        return True
