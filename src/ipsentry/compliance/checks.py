# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Check procedures for the built-in compliance rules.

Each procedure inspects the record store and marks the given
:class:`ComplianceCheck` as pass, warning or fail.  Procedures are looked up
by rule id; a store failure is re-raised as :class:`ComplianceCheckError`
and turned into a ``fail`` verdict by the evaluator.
"""

from __future__ import annotations

import calendar
from collections.abc import Callable, Coroutine
from datetime import datetime, timedelta
from typing import Any

from ipsentry.core.constants import CheckInterval, CheckStatus
from ipsentry.core.exceptions import ComplianceCheckError
from ipsentry.models.compliance import ComplianceCheck
from ipsentry.storage.records import RecordStore

CheckProcedure = Callable[[RecordStore, ComplianceCheck, datetime], Coroutine[Any, Any, None]]

# Columns that indicate test or placeholder data in the users table.
UNNECESSARY_USER_FIELDS = ("fakeName", "testField")

BACKUP_EXPIRY = timedelta(days=365)

_PROCEDURES: dict[str, CheckProcedure] = {}


def _procedure(rule_id: str, label: str) -> Callable[[CheckProcedure], CheckProcedure]:
    def decorator(fn: CheckProcedure) -> CheckProcedure:
        async def wrapper(store: RecordStore, check: ComplianceCheck, now: datetime) -> None:
            try:
                await fn(store, check, now)
            except ComplianceCheckError:
                raise
            except Exception as exc:
                msg = f"{label} check failed: {exc}"
                raise ComplianceCheckError(msg) from exc

        _PROCEDURES[rule_id] = wrapper
        return wrapper

    return decorator


def get_procedure(rule_id: str) -> CheckProcedure | None:
    return _PROCEDURES.get(rule_id)


def registered_rule_ids() -> list[str]:
    return sorted(_PROCEDURES)


def next_check_time(interval: str, now: datetime) -> datetime:
    """Return when a rule with *interval* is next due after *now*."""
    match interval:
        case CheckInterval.REALTIME:
            return now + timedelta(minutes=5)
        case CheckInterval.HOURLY:
            return now + timedelta(hours=1)
        case CheckInterval.WEEKLY:
            return now + timedelta(days=7)
        case CheckInterval.MONTHLY:
            return add_months(now, 1)
        case _:
            return now + timedelta(days=1)


def add_months(moment: datetime, months: int) -> datetime:
    """Shift *moment* by calendar months, clamping the day to the month's end."""
    index = moment.month - 1 + months
    year = moment.year + index // 12
    month = index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


@_procedure("gdpr_data_minimization", "Data minimization")
async def check_data_minimization(
    store: RecordStore, check: ComplianceCheck, now: datetime
) -> None:
    columns = await store.table_columns("users")
    unnecessary = [name for name in columns if name in UNNECESSARY_USER_FIELDS]
    if unnecessary:
        check.mark(
            CheckStatus.FAIL,
            violations=[f"Unnecessary user fields found: {', '.join(unnecessary)}"],
            recommendations=[
                "Remove unnecessary user fields",
                "Review why each collected field is needed",
            ],
        )
    else:
        check.mark(CheckStatus.PASS, details="User fields follow data minimization")


@_procedure("gdpr_consent_management", "Consent management")
async def check_consent_management(
    store: RecordStore, check: ComplianceCheck, now: datetime
) -> None:
    if not await store.table_exists("user_consents"):
        check.mark(
            CheckStatus.FAIL,
            violations=["User consent table is missing"],
            recommendations=[
                "Create a user consent table",
                "Record consent grants and withdrawals",
            ],
        )
    elif await store.count_rows("user_consents") == 0:
        check.mark(
            CheckStatus.WARNING,
            violations=["User consent table is empty"],
            recommendations=["Start recording user consent"],
        )
    else:
        check.mark(CheckStatus.PASS, details="Consent management is in place")


@_procedure("gdpr_right_to_access", "Right of access")
async def check_right_to_access(
    store: RecordStore, check: ComplianceCheck, now: datetime
) -> None:
    if not await store.table_exists("data_exports"):
        check.mark(
            CheckStatus.FAIL,
            violations=["Data export capability is missing"],
            recommendations=["Implement a data export API", "Create a data export table"],
        )
    else:
        check.mark(CheckStatus.PASS, details="Data export is available")


@_procedure("encryption_requirement", "Encryption")
async def check_encryption(store: RecordStore, check: ComplianceCheck, now: datetime) -> None:
    if not await store.table_exists("security_settings"):
        check.mark(
            CheckStatus.FAIL,
            violations=["Security settings table is missing"],
            recommendations=["Create a security settings table", "Enable data encryption"],
        )
    elif await store.count_rows("security_settings", equals={"category": "encryption"}) == 0:
        check.mark(
            CheckStatus.WARNING,
            violations=["Encryption settings are missing"],
            recommendations=["Configure data encryption settings"],
        )
    else:
        check.mark(CheckStatus.PASS, details="Encryption settings are configured")


@_procedure("access_logging", "Access logging")
async def check_access_logging(
    store: RecordStore, check: ComplianceCheck, now: datetime
) -> None:
    if not await store.table_exists("security_event_logs"):
        check.mark(
            CheckStatus.FAIL,
            violations=["Security event log table is missing"],
            recommendations=["Create a security event log table", "Log data access"],
        )
        return

    count = await store.count_rows("security_event_logs")
    if count == 0:
        check.mark(
            CheckStatus.WARNING,
            violations=["Security event log is empty"],
            recommendations=["Start logging security events"],
        )
    else:
        check.mark(CheckStatus.PASS, details=f"Security event log has {count} records")


@_procedure("data_retention", "Data retention")
async def check_data_retention(
    store: RecordStore, check: ComplianceCheck, now: datetime
) -> None:
    if not await store.table_exists("backup_records"):
        check.mark(
            CheckStatus.FAIL,
            violations=["Backup record table is missing"],
            recommendations=["Create a backup record table", "Implement a retention policy"],
        )
        return

    total = await store.count_rows("backup_records")
    if total == 0:
        check.mark(
            CheckStatus.WARNING,
            violations=["No backup records found"],
            recommendations=["Start running data backups"],
        )
        return

    expired = await store.count_rows(
        "backup_records", before=("started_at", now - BACKUP_EXPIRY)
    )
    if expired:
        check.mark(
            CheckStatus.WARNING,
            violations=[f"{expired} expired backups need cleanup"],
            recommendations=["Remove expired backups", "Review the retention policy"],
        )
    else:
        check.mark(CheckStatus.PASS, details=f"Retention policy applied to {total} backups")
