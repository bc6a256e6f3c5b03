# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Request dependencies that expose the application's security context."""

from __future__ import annotations

from fastapi import HTTPException, Request

from ipsentry.context import SecurityContext


def get_security(request: Request) -> SecurityContext:
    context: SecurityContext | None = getattr(request.app.state, "security", None)
    if context is None:
        raise HTTPException(status_code=503, detail="Security engines are not initialised")
    return context
