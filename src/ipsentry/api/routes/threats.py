# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Threat analysis, threat score, rule registry, and threat report endpoints."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ipsentry.api.auth import require_api_key
from ipsentry.api.deps import get_security
from ipsentry.context import SecurityContext
from ipsentry.models.threat import (
    Origin,
    SecurityRule,
    ThreatIndicator,
    ThreatReport,
    ThreatScore,
)

router = APIRouter()


class AnalyzeRequest(BaseModel):
    subject_id: int
    event_type: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None


class AnalyzeResponse(BaseModel):
    indicators: list[ThreatIndicator]
    score: ThreatScore | None = None


@router.post("/threats/analyze", response_model=AnalyzeResponse)
async def analyze_event(
    body: AnalyzeRequest,
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> AnalyzeResponse:
    origin = None
    if body.ip_address or body.user_agent:
        origin = Origin(ip_address=body.ip_address, user_agent=body.user_agent)
    indicators = await security.threats.analyze_event(
        body.subject_id, body.event_type, body.metadata, origin
    )
    return AnalyzeResponse(
        indicators=indicators,
        score=security.threats.get_threat_score(body.subject_id),
    )


@router.get("/threats/scores", response_model=list[ThreatScore])
async def list_threat_scores(
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> list[ThreatScore]:
    return sorted(security.threats.get_all_threat_scores(), key=lambda s: s.score, reverse=True)


@router.get("/threats/scores/{subject_id}", response_model=ThreatScore)
async def get_threat_score(
    subject_id: int,
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> ThreatScore:
    score = security.threats.get_threat_score(subject_id)
    if score is None:
        raise HTTPException(status_code=404, detail=f"No threat score for subject {subject_id}")
    return score


@router.get("/threats/report", response_model=ThreatReport)
async def threat_report(
    start: datetime | None = None,
    end: datetime | None = None,
    subject_id: int | None = None,
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> ThreatReport:
    end = end or datetime.now(UTC)
    start = start or end - timedelta(days=7)
    return await security.threats.generate_threat_report(start, end, subject_id)


# ---------------------------------------------------------------------------
# Security rules
# ---------------------------------------------------------------------------


@router.get("/threats/rules", response_model=list[SecurityRule])
async def list_rules(
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> list[SecurityRule]:
    return security.threats.get_rules()


@router.post("/threats/rules", response_model=SecurityRule, status_code=201)
async def add_rule(
    rule: SecurityRule,
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> SecurityRule:
    security.threats.add_rule(rule)
    return rule


@router.patch("/threats/rules/{rule_id}", response_model=SecurityRule)
async def update_rule(
    rule_id: str,
    changes: dict[str, Any],
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> SecurityRule:
    if security.threats.get_rule(rule_id) is None:
        raise HTTPException(status_code=404, detail=f"Rule {rule_id} not found")
    if not security.threats.update_rule(rule_id, **changes):
        raise HTTPException(status_code=422, detail=f"Invalid changes for rule {rule_id}")
    return security.threats.get_rule(rule_id)


@router.delete("/threats/rules/{rule_id}", status_code=204)
async def delete_rule(
    rule_id: str,
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> None:
    if not security.threats.delete_rule(rule_id):
        raise HTTPException(status_code=404, detail=f"Rule {rule_id} not found")
