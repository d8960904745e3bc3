"""
Tests for trace spans.
"""

import logging

import pytest

from leave_form.errors import NetworkError
from leave_form.observability import trace_span

TRACE_LOGGER = "leave_form.trace"


class TestTraceSpan:
    """Test span logging."""

    def test_success_logs_outcome_and_enriched_fields(self, caplog):
        with caplog.at_level(logging.INFO, logger=TRACE_LOGGER):
            with trace_span("create_leave_request", employee="Ana") as span:
                span["id"] = 42

        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert "create_leave_request outcome=ok" in record.getMessage()
        assert "employee=Ana id=42" in record.getMessage()

    def test_failure_is_reraised_and_logged_as_warning(self, caplog):
        with caplog.at_level(logging.INFO, logger=TRACE_LOGGER):
            with pytest.raises(NetworkError):
                with trace_span("list_employees"):
                    raise NetworkError("sin conexión")

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert "outcome=NetworkError" in record.getMessage()

    def test_empty_fields_are_omitted(self, caplog):
        with caplog.at_level(logging.INFO, logger=TRACE_LOGGER):
            with trace_span("create_leave_request", employee="Ana") as span:
                span["id"] = None

        assert "id=" not in caplog.records[-1].getMessage()
