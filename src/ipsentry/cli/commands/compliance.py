# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""CLI commands for compliance checks and reports."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Annotated

import typer

from ipsentry.core.constants import CheckStatus, ComplianceLevel, ReportPeriod

app = typer.Typer()

_STATUS_STYLES = {
    CheckStatus.PASS: "green",
    CheckStatus.WARNING: "yellow",
    CheckStatus.FAIL: "bold red",
    CheckStatus.PENDING: "dim",
}

_LEVEL_STYLES = {
    ComplianceLevel.COMPLIANT: "green",
    ComplianceLevel.PARTIALLY_COMPLIANT: "yellow",
    ComplianceLevel.NON_COMPLIANT: "bold red",
}

_PERIOD_DAYS = {
    ReportPeriod.DAILY: 1,
    ReportPeriod.WEEKLY: 7,
    ReportPeriod.MONTHLY: 30,
    ReportPeriod.QUARTERLY: 91,
    ReportPeriod.ANNUAL: 365,
}


@app.command()
def check(
    rule_id: Annotated[
        str | None,
        typer.Option("--rule", "-r", help="Check a single rule by id"),
    ] = None,
) -> None:
    """Run compliance checks against the database."""
    failed = asyncio.run(_async_check(rule_id))
    if failed:
        raise typer.Exit(1)


async def _async_check(rule_id: str | None) -> bool:
    from rich.console import Console
    from rich.table import Table

    from ipsentry.context import build_context
    from ipsentry.core.config import get_settings
    from ipsentry.storage.database import init_db

    settings = get_settings()
    db = await init_db(settings.db_path)

    try:
        context = build_context(settings, db)
        checks = await context.compliance.perform_compliance_check(rule_id)

        console = Console()
        if not checks:
            console.print(f"[dim]No compliance rule matched {rule_id or '(all)'}.[/dim]")
            return False

        table = Table(title="Compliance Checks")
        table.add_column("Rule", style="cyan", no_wrap=True)
        table.add_column("Status")
        table.add_column("Violations")
        table.add_column("Next Check", style="dim")

        for item in checks:
            style = _STATUS_STYLES.get(item.status, "")
            table.add_row(
                item.rule_id,
                f"[{style}]{item.status}[/{style}]",
                "\n".join(item.violations) or "-",
                item.next_check.strftime("%Y-%m-%d %H:%M"),
            )

        console.print(table)
        return any(item.status == CheckStatus.FAIL for item in checks)
    finally:
        await db.close()


@app.command()
def report(
    period: Annotated[
        ReportPeriod,
        typer.Option("--period", "-p", help="Report period"),
    ] = ReportPeriod.MONTHLY,
) -> None:
    """Generate a compliance report."""
    asyncio.run(_async_report(period))


async def _async_report(period: ReportPeriod) -> None:
    from rich.console import Console
    from rich.panel import Panel
    from rich.table import Table

    from ipsentry.context import build_context
    from ipsentry.core.config import get_settings
    from ipsentry.storage.database import init_db

    settings = get_settings()
    db = await init_db(settings.db_path)

    try:
        context = build_context(settings, db)
        end = datetime.now(UTC)
        start = end - timedelta(days=_PERIOD_DAYS[period])
        result = await context.compliance.generate_compliance_report(period, start, end)

        console = Console()
        style = _LEVEL_STYLES.get(result.compliance_level, "")
        console.print(
            Panel(
                f"Score: [bold]{result.overall_score}[/bold]/100\n"
                f"Level: [{style}]{result.compliance_level}[/{style}]\n"
                f"Window: {start:%Y-%m-%d} to {end:%Y-%m-%d}",
                title=f"Compliance Report ({period})",
            )
        )

        table = Table()
        table.add_column("Rule", style="bold")
        table.add_column("Regulation", style="cyan")
        table.add_column("Status")
        table.add_column("Recommendations")

        for rule in result.rule_results:
            status_style = _STATUS_STYLES.get(rule.status, "")
            table.add_row(
                rule.rule_name,
                rule.regulation,
                f"[{status_style}]{rule.status}[/{status_style}]",
                "\n".join(rule.recommendations) or "-",
            )

        console.print(table)
    finally:
        await db.close()
