# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Compliance check, report, rule, and retention policy endpoints."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ipsentry.api.auth import require_api_key
from ipsentry.api.deps import get_security
from ipsentry.context import SecurityContext
from ipsentry.core.constants import ReportPeriod
from ipsentry.models.compliance import (
    ComplianceCheck,
    ComplianceReport,
    ComplianceRule,
    DataRetentionPolicy,
)

router = APIRouter()

_PERIOD_SPANS: dict[ReportPeriod, timedelta] = {
    ReportPeriod.DAILY: timedelta(days=1),
    ReportPeriod.WEEKLY: timedelta(days=7),
    ReportPeriod.MONTHLY: timedelta(days=30),
    ReportPeriod.QUARTERLY: timedelta(days=91),
    ReportPeriod.ANNUAL: timedelta(days=365),
}


class ReportRequest(BaseModel):
    period: ReportPeriod = ReportPeriod.MONTHLY
    start: datetime | None = None
    end: datetime | None = None


@router.post("/compliance/checks", response_model=list[ComplianceCheck])
async def run_compliance_checks(
    rule_id: str | None = None,
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> list[ComplianceCheck]:
    return await security.compliance.perform_compliance_check(rule_id)


@router.post("/compliance/reports", response_model=ComplianceReport)
async def generate_report(
    body: ReportRequest,
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> ComplianceReport:
    end = body.end or datetime.now(UTC)
    start = body.start or end - _PERIOD_SPANS[body.period]
    return await security.compliance.generate_compliance_report(body.period, start, end)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


@router.get("/compliance/rules", response_model=list[ComplianceRule])
async def list_rules(
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> list[ComplianceRule]:
    return security.compliance.get_rules()


@router.post("/compliance/rules", response_model=ComplianceRule, status_code=201)
async def add_rule(
    rule: ComplianceRule,
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> ComplianceRule:
    security.compliance.add_rule(rule)
    return rule


@router.patch("/compliance/rules/{rule_id}", response_model=ComplianceRule)
async def update_rule(
    rule_id: str,
    changes: dict[str, Any],
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> ComplianceRule:
    if security.compliance.get_rule(rule_id) is None:
        raise HTTPException(status_code=404, detail=f"Rule {rule_id} not found")
    if not security.compliance.update_rule(rule_id, **changes):
        raise HTTPException(status_code=422, detail=f"Invalid changes for rule {rule_id}")
    return security.compliance.get_rule(rule_id)


@router.delete("/compliance/rules/{rule_id}", status_code=204)
async def delete_rule(
    rule_id: str,
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> None:
    if not security.compliance.delete_rule(rule_id):
        raise HTTPException(status_code=404, detail=f"Rule {rule_id} not found")


# ---------------------------------------------------------------------------
# Retention policies
# ---------------------------------------------------------------------------


@router.get("/compliance/retention-policies", response_model=list[DataRetentionPolicy])
async def list_retention_policies(
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> list[DataRetentionPolicy]:
    return security.compliance.get_retention_policies()


@router.post(
    "/compliance/retention-policies", response_model=DataRetentionPolicy, status_code=201
)
async def add_retention_policy(
    policy: DataRetentionPolicy,
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> DataRetentionPolicy:
    security.compliance.add_retention_policy(policy)
    return policy


@router.delete("/compliance/retention-policies/{policy_id}", status_code=204)
async def delete_retention_policy(
    policy_id: str,
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> None:
    if not security.compliance.delete_retention_policy(policy_id):
        raise HTTPException(status_code=404, detail=f"Retention policy {policy_id} not found")
