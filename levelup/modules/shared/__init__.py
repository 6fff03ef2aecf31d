"""
Shared domain foundations.

- BaseService / BaseRepository
- Domain exceptions
- Scaling formulas and domain constants
"""

from levelup.modules.shared.base_repository import BaseRepository
from levelup.modules.shared.base_service import BaseService
from levelup.modules.shared.exceptions import (
    AlreadyUnlockedError,
    IncompleteBundleError,
    IncompleteProgressError,
    InsufficientFundsError,
    InvalidStateError,
    LevelUpDomainException,
    NoAlternativesError,
    NotFoundError,
    PreconditionUnmetError,
    ValidationError,
    get_error_severity,
    is_transient_error,
    should_alert,
)

__all__ = [
    "AlreadyUnlockedError",
    "BaseRepository",
    "BaseService",
    "IncompleteBundleError",
    "IncompleteProgressError",
    "InsufficientFundsError",
    "InvalidStateError",
    "LevelUpDomainException",
    "NoAlternativesError",
    "NotFoundError",
    "PreconditionUnmetError",
    "ValidationError",
    "get_error_severity",
    "is_transient_error",
    "should_alert",
]
