# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ipsentry import __version__
from ipsentry.api.routes import audit, compliance, dashboard, health, threats
from ipsentry.context import SecurityContext, build_context
from ipsentry.core.config import Settings, get_settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    from ipsentry.storage.database import init_db

    # A context injected by the caller owns its own collaborators
    if app.state.security is not None:
        yield
        return

    settings: Settings = app.state.settings
    db = await init_db(settings.db_path, auto_migrate=settings.auto_migrate)
    app.state.db = db
    app.state.security = build_context(settings, db)

    try:
        yield
    finally:
        app.state.security = None
        await db.close()


def create_app(
    settings: Settings | None = None,
    *,
    context: SecurityContext | None = None,
) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="ipsentry",
        description="Security telemetry core: threat scoring, audit risk, and compliance",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    app.state.settings = settings
    app.state.security = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/api/v1", tags=["health"])
    app.include_router(threats.router, prefix="/api/v1", tags=["threats"])
    app.include_router(audit.router, prefix="/api/v1", tags=["audit"])
    app.include_router(compliance.router, prefix="/api/v1", tags=["compliance"])
    app.include_router(dashboard.router, prefix="/api/v1", tags=["dashboard"])

    return app
