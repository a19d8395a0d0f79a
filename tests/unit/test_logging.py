"""
Tests for logging utilities module.

Uses pytest for unit tests and Hypothesis for property-based testing.
"""

import asyncio
import logging
from unittest.mock import MagicMock

import pytest
from hypothesis import given, settings as hypothesis_settings
from hypothesis import strategies as st

from chunkwise.utils.logging import (
    LoggerMixin,
    add_app_context,
    add_correlation_id,
    clear_correlation_id,
    get_correlation_id,
    get_logger,
    log_function_call,
    set_correlation_id,
    setup_logging,
)
from tests.strategies import correlation_id


class TestCorrelationId:
    """Tests for correlation ID management."""

    def test_set_and_get_correlation_id(self) -> None:
        """Test setting, getting and clearing the correlation ID."""
        assert get_correlation_id() is None

        set_correlation_id("run-123")
        assert get_correlation_id() == "run-123"

        clear_correlation_id()
        assert get_correlation_id() is None

    def test_set_correlation_id_generates_uuid(self) -> None:
        """Test that set_correlation_id generates a UUID when not provided."""
        cid = set_correlation_id()

        assert len(cid) == 36
        assert get_correlation_id() == cid

    @given(correlation_id())
    def test_correlation_id_roundtrip(self, cid: str) -> None:
        """Property: Any id set as correlation ID is retrievable."""
        set_correlation_id(cid)
        assert get_correlation_id() == cid
        clear_correlation_id()


class TestProcessors:
    """Tests for the structlog processors."""

    def test_adds_correlation_id_when_set(self) -> None:
        """Processor adds the correlation ID to the event dict."""
        set_correlation_id("test-cid")

        result = add_correlation_id(MagicMock(spec=logging.Logger), "info", {"event": "test"})

        assert result["correlation_id"] == "test-cid"

    def test_no_correlation_id_when_not_set(self) -> None:
        """Processor leaves the event dict alone without a correlation ID."""
        result = add_correlation_id(MagicMock(spec=logging.Logger), "info", {"event": "test"})

        assert "correlation_id" not in result

    def test_adds_app_name(self) -> None:
        """Processor adds the configured app name."""
        setup_logging(log_format="console")

        result = add_app_context(MagicMock(spec=logging.Logger), "info", {"event": "test"})

        assert result["app"] == "chunkwise"

    def test_custom_app_name(self) -> None:
        """setup_logging controls the app name in every entry."""
        setup_logging(log_format="json", app_name="batch-ingest")
        try:
            result = add_app_context(MagicMock(spec=logging.Logger), "info", {"event": "test"})
            assert result["app"] == "batch-ingest"
        finally:
            setup_logging(log_format="console")


class TestSetupLogging:
    """Tests for setup_logging function."""

    @pytest.mark.parametrize("log_format", ["json", "console"])
    def test_setup_formats(self, log_format: str) -> None:
        """Both formats configure without error."""
        setup_logging(log_level="INFO", log_format=log_format)

    def test_quiets_http_client_loggers(self) -> None:
        """LLM client libraries are limited to warnings."""
        setup_logging(log_level="DEBUG", log_format="console")

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("openai").level == logging.WARNING

    @given(
        st.sampled_from(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
        st.sampled_from(["json", "console"]),
    )
    @hypothesis_settings(max_examples=10)
    def test_setup_logging_combinations(self, level: str, format_: str) -> None:
        """Property: All valid level/format combinations work."""
        setup_logging(log_level=level, log_format=format_)


class TestLoggerMixin:
    """Tests for LoggerMixin class."""

    def test_logger_can_log(self) -> None:
        """Loggers accept structured events."""
        setup_logging(log_format="console", log_level="DEBUG")
        logger = get_logger("test")

        logger.debug("text_split", num_chunks=3)
        logger.info("cache_hit", fingerprint="abc")
        logger.warning("oversized_atomic_unit", unit_size=10)

    def test_mixin_logger_caching(self) -> None:
        """Logger is created once per instance."""
        setup_logging(log_format="console")

        class Splitter(LoggerMixin):
            pass

        obj = Splitter()
        assert obj.logger is obj.logger


class TestLogFunctionCall:
    """Tests for log_function_call decorator."""

    def test_decorator_logs_function_call(self) -> None:
        """Decorated sync functions return their result."""
        setup_logging(log_format="console", log_level="DEBUG")

        @log_function_call(level="info")
        def add(x: int, y: int) -> int:
            return x + y

        assert add(1, 2) == 3

    def test_decorator_logs_function_error(self) -> None:
        """Errors are logged and re-raised."""
        logger = MagicMock()

        @log_function_call(logger=logger, level="info")
        def failing_func() -> None:
            raise ValueError("test error")

        with pytest.raises(ValueError, match="test error"):
            failing_func()

        logger.info.assert_called_once()
        assert logger.error.call_args.args[0] == "function_failed"

    def test_decorator_with_async_function(self) -> None:
        """Decorated coroutines stay coroutines and log completion."""
        logger = MagicMock()

        @log_function_call(logger=logger, level="debug", include_result=True)
        async def double(x: int) -> int:
            return x * 2

        assert asyncio.iscoroutinefunction(double)
        assert asyncio.run(double(5)) == 10
        events = [call.args[0] for call in logger.debug.call_args_list]
        assert events == ["function_called", "function_completed"]
        assert logger.debug.call_args.kwargs["result_type"] == "int"

    def test_decorator_without_args(self) -> None:
        """Argument details can be left out of the entry event."""
        logger = MagicMock()

        @log_function_call(logger=logger, include_args=False)
        def noop(x: int) -> None:
            return None

        noop(1)

        assert "args_count" not in logger.debug.call_args_list[0].kwargs

    def test_decorator_preserves_function_metadata(self) -> None:
        """Decorator preserves function name and docstring."""

        @log_function_call()
        def documented_func() -> None:
            """This is a docstring."""

        assert documented_func.__name__ == "documented_func"
        assert documented_func.__doc__ == "This is a docstring."
