"""
Infrastructure exceptions for the LevelUp engine.

Purpose
-------
Define the exception hierarchy for infrastructure-level concerns: storage
failures, configuration errors and lifecycle misuse. Gameplay rule violations
live in `levelup.modules.shared.exceptions`.

Design Notes
------------
- All infrastructure exceptions inherit from `LevelUpInfrastructureException`.
- Each exception carries a message, a details dict, an `ErrorSeverity`,
  an `is_retryable` hint and a stable `error_code`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for logging and alerting."""

    DEBUG = "debug"  # Expected, not concerning
    INFO = "info"  # Normal operation (e.g., rule violations)
    WARNING = "warning"  # Concerning but handled
    ERROR = "error"  # Unexpected errors requiring attention
    CRITICAL = "critical"  # System-level failures


class LevelUpInfrastructureException(Exception):
    """
    Base exception for all infrastructure-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.is_retryable: bool = (
            is_retryable if is_retryable is not None else self.DEFAULT_RETRYABLE
        )
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"


class ConfigurationError(LevelUpInfrastructureException):
    """
    Raised when a configuration key is invalid or missing.

    Args:
        config_key: The configuration key that has issues
        message: Description of the configuration problem
    """

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, config_key: str, message: str) -> None:
        self.config_key = config_key
        super().__init__(
            f"Configuration error for {config_key}: {message}",
            details={"config_key": config_key, "message": message},
            error_code="CONFIGURATION_ERROR",
        )


class DatabaseInitializationError(LevelUpInfrastructureException):
    """Raised when the storage engine cannot be created or the schema bootstrapped."""

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message,
            details=details,
            error_code="DATABASE_INITIALIZATION_FAILED",
        )


class DatabaseNotInitializedError(LevelUpInfrastructureException):
    """Raised when a session is requested before `initialize()` or after `shutdown()`."""

    DEFAULT_SEVERITY = ErrorSeverity.ERROR

    def __init__(self) -> None:
        super().__init__(
            "DatabaseService must be initialized before use. "
            "Call DatabaseService.initialize() during startup.",
            error_code="DATABASE_NOT_INITIALIZED",
        )


class SeedingError(LevelUpInfrastructureException):
    """
    Raised when first-run seeding fails.

    Partial state is never committed (seeding runs in one transaction), but
    if storage is left unusable the operator recovery path is a full reset.
    """

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(
            f"First-run initialization failed: {reason}",
            details={
                "reason": reason,
                "recovery": "call ApplicationContext.reset_storage() and restart",
            },
            error_code="SEEDING_FAILED",
        )
