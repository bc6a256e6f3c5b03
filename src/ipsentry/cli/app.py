# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Typer CLI application root."""

from __future__ import annotations

import typer

from ipsentry.cli.commands import compliance as compliance_cmd
from ipsentry.cli.commands import db
from ipsentry.cli.commands import events as events_cmd

app = typer.Typer(
    name="ipsentry",
    help="Security telemetry core: threat scoring, audit risk, and compliance",
    no_args_is_help=True,
)

app.add_typer(db.app, name="db", help="Database management")
app.add_typer(compliance_cmd.app, name="compliance", help="Run compliance checks and reports")
app.add_typer(events_cmd.app, name="events", help="Query the security event log")


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port"),
) -> None:
    """Start the ipsentry API server.

    Always a single worker process: scores, trails and assessments live in
    that process's memory.
    """
    import uvicorn

    from ipsentry.core.config import get_settings
    from ipsentry.core.logging import setup_logging

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)

    uvicorn.run(
        "ipsentry.api.app:create_app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        factory=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from ipsentry import __version__

    typer.echo(f"ipsentry v{__version__}")
