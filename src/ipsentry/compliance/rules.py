# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Default compliance rules and data retention policies."""

from __future__ import annotations

from ipsentry.core.constants import CheckInterval, ComplianceCategory, Regulation
from ipsentry.models.compliance import ComplianceRule, DataRetentionPolicy


def default_compliance_rules() -> list[ComplianceRule]:
    return [
        ComplianceRule(
            id="gdpr_data_minimization",
            name="Data minimization",
            description="Only collect and process the data that is needed",
            regulation=Regulation.GDPR,
            category=ComplianceCategory.DATA_PROTECTION,
            requirements=[
                "Clear purpose for collected data",
                "Minimal data volume",
                "Reasonable retention period",
            ],
            check_interval=CheckInterval.DAILY,
            priority=1,
        ),
        ComplianceRule(
            id="gdpr_consent_management",
            name="Consent management",
            description="User consent records are complete and valid",
            regulation=Regulation.GDPR,
            category=ComplianceCategory.DATA_PROTECTION,
            requirements=[
                "Explicit consent records",
                "Consent timestamps",
                "Consent withdrawal mechanism",
            ],
            check_interval=CheckInterval.REALTIME,
            priority=2,
        ),
        ComplianceRule(
            id="gdpr_right_to_access",
            name="Right of access",
            description="Users can access and export their own data",
            regulation=Regulation.GDPR,
            category=ComplianceCategory.ACCESS_CONTROL,
            requirements=["Data access interface", "Data export", "Access logging"],
            check_interval=CheckInterval.WEEKLY,
            priority=3,
        ),
        ComplianceRule(
            id="encryption_requirement",
            name="Data encryption",
            description="Sensitive data is encrypted at rest and in transit",
            regulation=Regulation.ISO27001,
            category=ComplianceCategory.ENCRYPTION,
            requirements=["Encryption at rest", "Encryption in transit", "Key management"],
            check_interval=CheckInterval.DAILY,
            priority=4,
        ),
        ComplianceRule(
            id="access_logging",
            name="Access logging",
            description="Every data access is logged",
            regulation=Regulation.SOX,
            category=ComplianceCategory.AUDIT_TRAIL,
            requirements=[
                "Access time recorded",
                "User identity recorded",
                "Operation type recorded",
                "Data scope recorded",
            ],
            check_interval=CheckInterval.REALTIME,
            priority=5,
        ),
        ComplianceRule(
            id="data_retention",
            name="Data retention",
            description="Data retention follows regulatory requirements",
            regulation=Regulation.CUSTOM,
            category=ComplianceCategory.RETENTION,
            requirements=[
                "Compliant retention periods",
                "Expired data cleanup",
                "Documented retention policy",
            ],
            check_interval=CheckInterval.WEEKLY,
            priority=6,
        ),
    ]


def default_retention_policies() -> list[DataRetentionPolicy]:
    return [
        DataRetentionPolicy(
            id="user_data_retention",
            data_type="user_profile",
            retention_period=7,
            retention_unit="years",
            disposal_method="anonymize",
            legal_basis="GDPR Article 5(1)(e)",
        ),
        DataRetentionPolicy(
            id="audit_log_retention",
            data_type="audit_logs",
            retention_period=2,
            retention_unit="years",
            disposal_method="archive",
            legal_basis="SOX Section 103",
        ),
        DataRetentionPolicy(
            id="backup_data_retention",
            data_type="backup_files",
            retention_period=1,
            retention_unit="years",
            disposal_method="delete",
            legal_basis="Business Continuity",
        ),
    ]
