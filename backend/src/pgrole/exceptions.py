"""Custom exception classes for role provisioning.

This module provides domain-specific exception classes that carry
structured error information for logs and custom resource responses.
"""

from __future__ import annotations

from typing import Any
from typing import Optional


class AppError(Exception):
    """Base exception for provisioning errors.

    All pgrole-specific exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message.
        detail: Optional additional context.
    """

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a serializable error body."""
        result: dict[str, Any] = {"error": self.message}
        if self.detail:
            result["detail"] = self.detail
        return result


class ConfigurationError(AppError):
    """Raised when a role spec or a setting is invalid.

    Raised before any secret is created, so a failing configuration
    never leaves partial artifacts behind.
    """

    def __init__(self, message: str, config_name: Optional[str] = None):
        detail = f"Field: {config_name}" if config_name else None
        super().__init__(message, detail=detail)
        self.config_name = config_name


class TopologyResolutionError(AppError):
    """Raised when a topology exposes neither a cluster nor an instance endpoint."""

    def __init__(self, topology: Any):
        super().__init__(
            "Cannot resolve database endpoint",
            detail=f"Unsupported topology: {type(topology).__name__}",
        )
        self.topology = topology


class SecretStoreError(AppError):
    """Raised when the secret storage backend rejects an operation."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message, detail=detail)


class ReconciliationError(AppError):
    """Raised by the role reconciler when a request cannot be applied.

    Use for malformed custom resource properties or database state
    that prevents the role from being managed.
    """

    def __init__(self, message: str, role_name: Optional[str] = None):
        detail = f"Role: {role_name}" if role_name else None
        super().__init__(message, detail=detail)
        self.role_name = role_name
