"""Tests for structured logging and request context propagation."""

import io
import json
import logging

import pytest

from pact_broker_mcp.core.context import (
    get_correlation_id,
    get_tool_name,
    request_context,
)
from pact_broker_mcp.core.logging_config import ROOT_LOGGER_NAME, configure_logging


@pytest.fixture
def log_stream():
    stream = io.StringIO()
    yield stream
    logging.getLogger(ROOT_LOGGER_NAME).handlers.clear()


class TestRequestContext:
    def test_context_is_set_and_reset(self):
        assert get_correlation_id() == ""
        with request_context(tool="get_pact") as ctx:
            assert ctx.correlation_id.startswith("req_")
            assert get_correlation_id() == ctx.correlation_id
            assert get_tool_name() == "get_pact"
        assert get_correlation_id() == ""
        assert get_tool_name() == ""

    def test_explicit_correlation_id(self):
        with request_context(correlation_id="req_fixed") as ctx:
            assert ctx.to_dict()["correlation_id"] == "req_fixed"


class TestConfigureLogging:
    def test_structured_output_includes_context(self, log_stream):
        configure_logging(level="DEBUG", format="structured", stream=log_stream)
        logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.tests")

        with request_context(tool="list_environments", correlation_id="req_abc"):
            logger.info("hello", extra={"count": 3})

        entry = json.loads(log_stream.getvalue().strip())
        assert entry["message"] == "hello"
        assert entry["level"] == "INFO"
        assert entry["correlation_id"] == "req_abc"
        assert entry["tool"] == "list_environments"
        assert entry["extra"] == {"count": 3}

    def test_human_output(self, log_stream):
        configure_logging(level="INFO", format="human", stream=log_stream)
        logging.getLogger(f"{ROOT_LOGGER_NAME}.client").warning("careful")

        line = log_stream.getvalue().strip()
        assert "[WARNING]" in line
        assert line.endswith("client: careful")

    def test_level_filters_records(self, log_stream):
        configure_logging(level="WARNING", stream=log_stream)
        logging.getLogger(f"{ROOT_LOGGER_NAME}.x").info("quiet")
        assert log_stream.getvalue() == ""

    def test_unknown_level_falls_back_to_info(self, log_stream):
        logger = configure_logging(level="chatty", stream=log_stream)
        assert logger.level == logging.INFO
