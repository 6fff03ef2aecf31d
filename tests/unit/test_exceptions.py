"""
Unit Tests for Exception Contracts
==================================

Test Coverage
-------------
- Structured fields and stable error codes
- Serialization for logging
- Severity and retry helpers
"""

import pytest

from levelup.core.exceptions import ErrorSeverity, SeedingError
from levelup.modules.shared.exceptions import (
    InsufficientFundsError,
    NotFoundError,
    ValidationError,
    get_error_severity,
    is_transient_error,
    should_alert,
)


@pytest.mark.unit
class TestDomainExceptions:
    def test_insufficient_funds_details(self):
        exc = InsufficientFundsError(50, 40, "reroll")

        assert exc.error_code == "INSUFFICIENT_GOLD"
        assert exc.details["deficit"] == 10
        assert "need 50, have 40" in str(exc)

    def test_not_found_code_uses_resource(self):
        exc = NotFoundError("QuestInstance", 9)

        assert exc.error_code == "QUESTINSTANCE_NOT_FOUND"
        assert exc.message == "QuestInstance not found: 9"

    def test_to_dict(self):
        exc = ValidationError("slot", "unknown slot 'slot9'")

        assert exc.to_dict() == {
            "error_type": "ValidationError",
            "error_code": "VALIDATION_SLOT",
            "message": "Validation error for slot: unknown slot 'slot9'",
            "details": {"field": "slot", "validation_message": "unknown slot 'slot9'"},
            "severity": "info",
            "is_retryable": False,
        }


@pytest.mark.unit
class TestErrorHelpers:
    def test_rule_violations_do_not_alert(self):
        exc = InsufficientFundsError(200, 0, "class unlock")

        assert get_error_severity(exc) is ErrorSeverity.INFO
        assert should_alert(exc) is False
        assert is_transient_error(exc) is False

    def test_seeding_failure_alerts(self):
        exc = SeedingError("catalog file locked")

        assert get_error_severity(exc) is ErrorSeverity.CRITICAL
        assert should_alert(exc) is True
        assert exc.details["recovery"].startswith("call ApplicationContext.reset_storage()")

    def test_unknown_exception_defaults_to_error(self):
        assert get_error_severity(KeyError("x")) is ErrorSeverity.ERROR
        assert is_transient_error(KeyError("x")) is False
