# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Slack notification channel using Block Kit formatting."""

from __future__ import annotations

import logging

import httpx

from ipsentry.notifications.base import NotificationChannel
from ipsentry.notifications.events import EventType, NotificationEvent

logger = logging.getLogger("ipsentry.notifications.slack")

_TIMEOUT_SECONDS = 10.0

_LEVEL_EMOJI = {
    "critical": ":rotating_light:",
    "high": ":warning:",
    "high_risk": ":warning:",
    "medium": ":large_yellow_circle:",
    "medium_risk": ":large_yellow_circle:",
    "non_compliant": ":no_entry:",
    "partially_compliant": ":large_yellow_circle:",
}

_EVENT_LABELS = {
    EventType.THREAT_ESCALATED: "Threat Level Escalated",
    EventType.RISK_ESCALATED: "User Risk Escalated",
    EventType.COMPLIANCE_DEGRADED: "Compliance Degraded",
}


def build_blocks(event: NotificationEvent) -> list[dict]:
    emoji = _LEVEL_EMOJI.get(event.level, ":information_source:")
    label = _EVENT_LABELS.get(event.event_type, "Notification")

    blocks: list[dict] = [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": f"{emoji} ipsentry: {label}", "emoji": True},
        },
        {
            "type": "section",
            "fields": [
                {"type": "mrkdwn", "text": f"*Level:*\n{event.level}"},
                {"type": "mrkdwn", "text": f"*Previous:*\n{event.previous_level or '-'}"},
                {"type": "mrkdwn", "text": f"*Score:*\n{event.score}/100"},
                {"type": "mrkdwn", "text": f"*Subject:*\n{event.subject_id or '-'}"},
            ],
        },
        {"type": "section", "text": {"type": "mrkdwn", "text": event.summary}},
    ]

    if event.factors:
        lines = "\n".join(f"- {factor}" for factor in event.factors)
        blocks.append(
            {"type": "section", "text": {"type": "mrkdwn", "text": f"*Recent factors:*\n{lines}"}}
        )

    blocks.append(
        {
            "type": "context",
            "elements": [{"type": "mrkdwn", "text": f"ipsentry at {event.timestamp.isoformat()}"}],
        }
    )
    return blocks


class SlackChannel(NotificationChannel):
    """Send notifications to Slack via incoming webhook."""

    def __init__(self, webhook_url: str) -> None:
        self._webhook_url = webhook_url

    @property
    def name(self) -> str:
        return "slack"

    def is_configured(self) -> bool:
        return bool(self._webhook_url)

    async def send(self, event: NotificationEvent) -> bool:
        if not self._webhook_url:
            logger.warning("Slack webhook URL not configured")
            return False

        try:
            async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS) as client:
                response = await client.post(self._webhook_url, json={"blocks": build_blocks(event)})
                response.raise_for_status()
            logger.info("Slack notification sent for %s", event.event_type)
            return True
        except Exception:
            logger.exception("Failed to send Slack notification for %s", event.event_type)
            return False
