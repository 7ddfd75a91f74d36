"""Tests for settings, logging and tracing."""

import logging

import pytest
import structlog
from pydantic import ValidationError
from structlog.testing import capture_logs

from form_adapter.core import LogContext, Settings, configure_logging, get_logger, get_settings, trace_operation, traced


@pytest.mark.unit
class TestSettings:
    """Test environment-driven settings."""

    def test_defaults(self, monkeypatch):
        for name in ("FORM_ADAPTER_ENABLE_BATCH", "FORM_ADAPTER_BATCH_DELAY_MS", "FORM_ADAPTER_LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.enable_batch is False
        assert settings.batch_delay_ms == 16.0
        assert settings.batch_delay == pytest.approx(0.016)
        assert settings.enable_metrics is True
        assert settings.warn_on_missing_component is True

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("FORM_ADAPTER_ENABLE_BATCH", "true")
        monkeypatch.setenv("FORM_ADAPTER_BATCH_DELAY_MS", "32")

        settings = Settings(_env_file=None)

        assert settings.enable_batch is True
        assert settings.batch_delay == pytest.approx(0.032)

    def test_delay_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("FORM_ADAPTER_BATCH_DELAY_MS", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_cached(self):
        assert get_settings() is get_settings()


@pytest.mark.unit
class TestLogging:
    """Test structured logging helpers."""

    def test_configure_logging_scoped_to_package(self):
        package_logger = logging.getLogger("form_adapter")
        saved = (package_logger.handlers[:], package_logger.level, package_logger.propagate)
        root_handlers = logging.getLogger().handlers[:]
        try:
            configure_logging("DEBUG", json_logs=True)

            assert structlog.is_configured()
            assert package_logger.level == logging.DEBUG
            assert package_logger.propagate is False
            assert len(package_logger.handlers) == 1
            assert logging.getLogger().handlers == root_handlers
        finally:
            structlog.reset_defaults()
            package_logger.handlers, package_logger.level, package_logger.propagate = saved

    def test_log_context_binds_and_unbinds(self):
        with LogContext(bridge="bridge-1"):
            assert structlog.contextvars.get_contextvars()["bridge"] == "bridge-1"
        assert "bridge" not in structlog.contextvars.get_contextvars()

    def test_nested_log_context_restores_outer(self):
        with LogContext(bridge="bridge-1", source="schema"):
            with LogContext(bridge="bridge-2"):
                assert structlog.contextvars.get_contextvars() == {"bridge": "bridge-2", "source": "schema"}
            assert structlog.contextvars.get_contextvars() == {"bridge": "bridge-1", "source": "schema"}

    def test_get_logger(self):
        logger = get_logger("form_adapter.test")
        with capture_logs() as logs:
            logger.info("something_happened", key="value")
        assert logs == [{"event": "something_happened", "key": "value", "log_level": "info"}]


@pytest.mark.unit
class TestTracing:
    """Test operation tracing."""

    def test_trace_operation(self):
        with capture_logs() as logs:
            with trace_operation("reset", bridge="bridge-1"):
                pass

        assert [log["event"] for log in logs] == ["operation_start", "operation_end"]
        assert logs[1]["bridge"] == "bridge-1"
        assert "duration_ms" in logs[1]

    def test_trace_operation_error(self):
        with capture_logs() as logs:
            with pytest.raises(RuntimeError):
                with trace_operation("reset"):
                    raise RuntimeError("boom")

        assert logs[-1]["event"] == "operation_error"
        assert logs[-1]["error"] == "boom"

    def test_traced_decorator(self):
        @traced("compute")
        def compute(x):
            return x * 2

        with capture_logs() as logs:
            assert compute(2) == 4

        assert logs[0]["operation"] == "compute"
        assert compute.__name__ == "compute"
