"""
Domain exceptions for the LevelUp engine.

Purpose
-------
Structured exceptions for gameplay rule violations. Services raise them
synchronously from mutating operations; the enclosing transaction is rolled
back, so a failed operation never leaves partial state. The presentation
layer decides how to show them.

Design Notes
------------
- All domain exceptions inherit from `LevelUpDomainException`.
- Each carries `message`, `details`, `severity`, `is_retryable` and a
  stable `error_code`.
- Rule violations are expected player-facing outcomes, so most default to
  `ErrorSeverity.INFO`.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from levelup.core.exceptions import ErrorSeverity, LevelUpInfrastructureException


class LevelUpDomainException(Exception):
    """
    Base exception for all domain-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.INFO
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

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}"
            ")"
        )


class NotFoundError(LevelUpDomainException):
    """
    Raised when a user, class, quest instance or template does not exist.

    Args:
        resource_type: Type of resource (e.g., "CharacterClass", "QuestInstance")
        identifier: Optional identifier for the missing resource
    """

    def __init__(self, resource_type: str, identifier: Optional[Any] = None) -> None:
        self.resource_type = resource_type
        self.identifier = identifier
        message = (
            f"{resource_type} not found: {identifier}"
            if identifier is not None
            else f"{resource_type} not found"
        )
        super().__init__(
            message,
            details={"resource_type": resource_type, "identifier": identifier},
            error_code=f"{resource_type.upper()}_NOT_FOUND",
        )


class InvalidStateError(LevelUpDomainException):
    """
    Raised when an operation is not valid for a quest's current status,
    e.g. completing or rerolling a quest that is no longer active.
    """

    def __init__(self, action: str, current_status: str, quest_id: Optional[int] = None) -> None:
        self.action = action
        self.current_status = current_status
        self.quest_id = quest_id
        super().__init__(
            f"Cannot {action} quest in status '{current_status}'",
            details={"action": action, "status": current_status, "quest_id": quest_id},
            error_code="INVALID_STATE",
        )


class IncompleteProgressError(LevelUpDomainException):
    """Raised when completing a quest whose progress is below its goal."""

    def __init__(self, quest_id: int, progress: int, progress_goal: int) -> None:
        self.quest_id = quest_id
        self.progress = progress
        self.progress_goal = progress_goal
        super().__init__(
            f"Quest {quest_id} is not finished: {progress}/{progress_goal}",
            details={
                "quest_id": quest_id,
                "progress": progress,
                "progress_goal": progress_goal,
            },
            error_code="INCOMPLETE_PROGRESS",
        )


class InsufficientFundsError(LevelUpDomainException):
    """
    Raised when the player's gold is below the price of an action.

    Args:
        required: Gold required for the action
        current: Gold the player currently has
        action: What the gold was for (reroll, class unlock, slot unlock)
    """

    def __init__(self, required: int, current: int, action: str) -> None:
        self.required = required
        self.current = current
        self.action = action
        super().__init__(
            f"Insufficient gold for {action}: need {required:,}, have {current:,}",
            details={
                "action": action,
                "required": required,
                "current": current,
                "deficit": required - current,
            },
            error_code="INSUFFICIENT_GOLD",
        )


class AlreadyUnlockedError(LevelUpDomainException):
    """Raised when unlocking a class or slot that is already unlocked."""

    def __init__(self, target: str, class_id: str) -> None:
        self.target = target
        self.class_id = class_id
        super().__init__(
            f"{target} is already unlocked for {class_id}",
            details={"target": target, "class_id": class_id},
            error_code="ALREADY_UNLOCKED",
        )


class PreconditionUnmetError(LevelUpDomainException):
    """
    Raised when an unlock gate is not met (class locked, level too low).

    Args:
        action: The attempted action
        reason: Explanation of the unmet gate
    """

    def __init__(self, action: str, reason: str, **context: Any) -> None:
        self.action = action
        self.reason = reason
        super().__init__(
            f"Cannot {action}: {reason}",
            details={"action": action, "reason": reason, **context},
            error_code="PRECONDITION_UNMET",
        )


class NoAlternativesError(LevelUpDomainException):
    """Raised when a reroll has no eligible replacement template."""

    def __init__(self, quest_id: int, quest_type: str, class_id: str) -> None:
        self.quest_id = quest_id
        super().__init__(
            f"No alternative {quest_type} quests available for {class_id}",
            details={"quest_id": quest_id, "type": quest_type, "class_id": class_id},
            error_code="NO_ALTERNATIVES",
        )


class IncompleteBundleError(LevelUpDomainException):
    """Raised when collecting a weekly bundle that is empty or not fully completed."""

    def __init__(self, completed: int, total: int) -> None:
        self.completed = completed
        self.total = total
        reason = (
            "No weekly quests to collect"
            if total == 0
            else f"Weekly bundle incomplete: {completed}/{total} completed"
        )
        super().__init__(
            reason,
            details={"completed": completed, "total": total},
            error_code="INCOMPLETE_BUNDLE",
        )


class ValidationError(LevelUpDomainException):
    """
    Raised when caller input fails validation.

    Args:
        field: Name of the field that failed validation
        message: Explanation of why validation failed
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.validation_message = message
        super().__init__(
            f"Validation error for {field}: {message}",
            details={"field": field, "validation_message": message},
            error_code=f"VALIDATION_{field.upper()}",
        )


# Utility functions for exception handling patterns


def is_transient_error(exc: Exception) -> bool:
    """True if the exception says the operation may succeed on retry."""
    if isinstance(exc, (LevelUpDomainException, LevelUpInfrastructureException)):
        return exc.is_retryable
    return False


def get_error_severity(exc: Exception) -> ErrorSeverity:
    """Severity for logging; unknown exceptions are ERROR."""
    if isinstance(exc, (LevelUpDomainException, LevelUpInfrastructureException)):
        return exc.severity
    return ErrorSeverity.ERROR


def should_alert(exc: Exception) -> bool:
    """True if severity is ERROR or CRITICAL."""
    return get_error_severity(exc) in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
