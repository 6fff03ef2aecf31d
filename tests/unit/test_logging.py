"""
Unit Tests for the Logging Subsystem
====================================

Test Coverage
-------------
- LogContext scoping (sync and async)
- ContextFilter enrichment
- JSONFormatter output shape
"""

import json
import logging

import pytest

from levelup.core.logging.logger import (
    ContextFilter,
    JSONFormatter,
    LogContext,
    clear_log_context,
    get_log_context,
    get_logging_health,
    set_log_context,
)


def _record(name="levelup.modules.quests.service", msg="Quest completed", **extra):
    record = logging.LogRecord(name, logging.INFO, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestLogContext:
    def test_context_scoped_to_block(self):
        with LogContext(operation="complete_quest", quest_id=7):
            context = get_log_context()
            assert context["operation"] == "complete_quest"
            assert context["quest_id"] == 7
            assert len(context["correlation_id"]) == 8

        assert "operation" not in get_log_context()

    async def test_async_context(self):
        async with LogContext(operation="maintenance_tick", correlation_id="tick-1"):
            assert get_log_context()["correlation_id"] == "tick-1"

    def test_nested_context_inherits(self):
        with LogContext(component="maintenance"):
            with LogContext(operation="tick"):
                context = get_log_context()
        assert (context["component"], context["operation"]) == ("maintenance", "tick")

    def test_set_and_clear(self):
        clear_log_context()
        set_log_context(class_id="Mage", quest_id=None)
        try:
            assert get_log_context() == {"class_id": "Mage"}
        finally:
            clear_log_context()
        assert get_log_context() == {}


@pytest.mark.unit
class TestFormatting:
    def test_filter_defaults_component_to_logger_leaf(self):
        record = _record()

        ContextFilter().filter(record)

        assert record.component == "service"
        assert record.correlation_id == "N/A"

    def test_json_formatter_collects_extra(self):
        record = _record(gold_awarded=5, xp_awarded=10)
        with LogContext(operation="complete_quest", correlation_id="abc12345"):
            ContextFilter().filter(record)

        payload = json.loads(JSONFormatter().format(record))

        assert payload["message"] == "Quest completed"
        assert payload["operation"] == "complete_quest"
        assert payload["correlation_id"] == "abc12345"
        assert payload["extra"] == {"gold_awarded": 5, "xp_awarded": 10}
        assert "class_id" not in payload

    def test_health_before_setup(self):
        health = get_logging_health()

        assert health.records_dropped == 0
