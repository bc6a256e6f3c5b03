# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Security dashboard endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ipsentry.api.auth import require_api_key
from ipsentry.api.deps import get_security
from ipsentry.context import SecurityContext
from ipsentry.models.audit import SecurityDashboard

router = APIRouter()


@router.get("/dashboard", response_model=SecurityDashboard)
async def security_dashboard(
    security: SecurityContext = Depends(get_security),
    _api_key: str = Depends(require_api_key),
) -> SecurityDashboard:
    """Aggregate overview; the compliance score comes from the latest report."""
    return await security.risk.generate_security_dashboard(
        compliance_score=security.compliance.latest_score
    )
