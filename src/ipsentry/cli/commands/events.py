# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""CLI commands for querying the security event log."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Annotated

import typer

app = typer.Typer()


@app.command(name="list")
def events_list(
    event_type: Annotated[
        str | None,
        typer.Option("--type", "-t", help="Filter by event type"),
    ] = None,
    subject_id: Annotated[
        int | None,
        typer.Option("--subject", "-s", help="Filter by subject (user) id"),
    ] = None,
    start: Annotated[
        datetime | None,
        typer.Option("--start", help="Start date (ISO format)"),
    ] = None,
    end: Annotated[
        datetime | None,
        typer.Option("--end", help="End date (ISO format)"),
    ] = None,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Maximum number of events to show"),
    ] = 50,
) -> None:
    """List security events with optional filters."""
    asyncio.run(_async_events_list(event_type, subject_id, start, end, limit))


async def _async_events_list(
    event_type: str | None,
    subject_id: int | None,
    start: datetime | None,
    end: datetime | None,
    limit: int,
) -> None:
    from rich.console import Console
    from rich.table import Table

    from ipsentry.audit.store import SecurityEventStore
    from ipsentry.core.config import get_settings
    from ipsentry.storage.database import init_db

    settings = get_settings()
    db = await init_db(settings.db_path)

    try:
        store = SecurityEventStore(db)
        events = await store.list_events(
            event_type=event_type,
            subject_id=subject_id,
            start=start,
            end=end,
            limit=limit,
        )

        console = Console()

        if not events:
            console.print("[dim]No security events found.[/dim]")
            return

        table = Table(title="Security Events")
        table.add_column("Timestamp", style="dim", no_wrap=True)
        table.add_column("Event Type", style="cyan")
        table.add_column("Severity", style="red")
        table.add_column("Subject", style="yellow")
        table.add_column("Message")

        for event in events:
            table.add_row(
                event.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                event.event_type,
                event.severity,
                str(event.subject_id) if event.subject_id is not None else "-",
                event.message,
            )

        console.print(table)
        console.print(f"\n[dim]Showing {len(events)} event(s)[/dim]")
    finally:
        await db.close()
