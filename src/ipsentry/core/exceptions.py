# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Custom exception hierarchy for ipsentry."""


class IpsentryError(Exception):
    """Base exception for all ipsentry errors."""


class ConfigurationError(IpsentryError):
    """Invalid or missing configuration."""


class DetectorError(IpsentryError):
    """Error within a threat detector."""


class ComplianceCheckError(IpsentryError):
    """A compliance check procedure could not complete."""


class StorageError(IpsentryError):
    """Database or storage operation failed."""
