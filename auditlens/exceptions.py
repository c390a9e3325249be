#!python3
"""
Exception hierarchy for AuditLens.

The parsing engine never raises for data-quality problems: malformed rows
degrade to default field values. Exceptions are reserved for contract
violations (non-text input), invalid configuration, and failures of the
optional remote parsing collaborator.
"""

from typing import Optional


class AuditLensError(Exception):
    """Base exception for AuditLens."""

    pass


class InvalidContentError(AuditLensError, TypeError):
    """Raised when audit content cannot be treated as text at all."""

    pass


class ConfigError(AuditLensError):
    """Raised when a configuration or mapping file cannot be loaded."""

    pass


class RemoteParseError(AuditLensError):
    """Raised when the remote parsing service fails or returns unusable data.

    The underlying exception (transport error, HTTP error, JSON decode error)
    is kept in ``cause`` and is also chained as ``__cause__`` by callers using
    ``raise ... from``.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

    def __str__(self) -> str:
        base = super().__str__()
        if self.cause is not None:
            return f"{base}: {self.cause}"
        return base
