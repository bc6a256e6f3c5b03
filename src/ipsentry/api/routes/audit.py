# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Audit trail, security metric, and user risk endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ipsentry.api.auth import require_api_key
from ipsentry.api.deps import get_security
from ipsentry.context import SecurityContext
from ipsentry.core.constants import MetricCategory
from ipsentry.models.audit import AuditTrail, RiskAssessment, SecurityMetric
from ipsentry.models.threat import Origin

router = APIRouter()


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class AuditEventRequest(BaseModel):
    subject_id: int
    action: str
    resource: str
    resource_id: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None


class AuditTrailListResponse(BaseModel):
    total: int
    trails: list[AuditTrail]


class CleanupResponse(BaseModel):
    removed: int
    max_age_days: int


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/audit/events", response_model=AuditTrail, status_code=201)
async def record_audit_event(
    body: AuditEventRequest,
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> AuditTrail:
    origin = None
    if body.ip_address or body.user_agent:
        origin = Origin(ip_address=body.ip_address, user_agent=body.user_agent)
    return await security.risk.record_audit_event(
        body.subject_id,
        body.action,
        body.resource,
        resource_id=body.resource_id,
        details=body.details,
        origin=origin,
    )


@router.get("/audit/trails", response_model=AuditTrailListResponse)
async def list_audit_trails(
    subject_id: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> AuditTrailListResponse:
    trails = security.risk.get_audit_trails(subject_id, start, end, limit)
    return AuditTrailListResponse(total=len(trails), trails=trails)


@router.get("/audit/metrics", response_model=list[SecurityMetric])
async def list_security_metrics(
    category: MetricCategory | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> list[SecurityMetric]:
    return security.risk.get_security_metrics(category, start, end)


@router.get("/audit/risk", response_model=list[RiskAssessment])
async def list_risk_assessments(
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> list[RiskAssessment]:
    return sorted(
        security.risk.get_all_risk_assessments(), key=lambda a: a.risk_score, reverse=True
    )


@router.get("/audit/risk/{subject_id}", response_model=RiskAssessment)
async def get_risk_assessment(
    subject_id: int,
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> RiskAssessment:
    assessment = security.risk.get_user_risk_assessment(subject_id)
    if assessment is None:
        raise HTTPException(
            status_code=404, detail=f"No risk assessment for subject {subject_id}"
        )
    return assessment


@router.post("/audit/cleanup", response_model=CleanupResponse)
async def cleanup_old_data(
    max_age_days: int | None = Query(default=None, ge=1),
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> CleanupResponse:
    days = max_age_days or security.risk.retention_days
    removed = security.risk.cleanup_old_data(days)
    return CleanupResponse(removed=removed, max_age_days=days)
