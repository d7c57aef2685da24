"""
Logging setup and context propagation.
"""

import logging

import pytest

from bedflow.config.logging import build_logging_config
from bedflow.config.settings import LoggingSettings, Settings
from bedflow.core.logging import ContextFilter, SensitiveDataProcessor, get_logger, setup_logging, tenant_context


def make_settings(environment="development", **logging_fields):
    return Settings(
        _env_file=None,
        ENVIRONMENT=environment,
        logging=LoggingSettings(_env_file=None, **logging_fields),
    )


@pytest.fixture
def restore_root_logger():
    root, package = logging.getLogger(), logging.getLogger("bedflow")
    handlers, level, package_level = root.handlers[:], root.level, package.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    package.setLevel(package_level)


class TestLoggingConfig:
    @pytest.mark.parametrize(
        "environment, log_format, formatter",
        [
            ("development", "text", "colored"),
            ("production", "text", "standard"),
            ("production", "json", "json"),
        ],
    )
    def test_console_formatter(self, environment, log_format, formatter):
        config = build_logging_config(make_settings(environment, LOG_FORMAT=log_format))

        assert config["handlers"]["console"]["formatter"] == formatter
        assert "file" not in config["handlers"]

    def test_file_handler(self, tmp_path):
        path = str(tmp_path / "bedflow.log")
        config = build_logging_config(make_settings("production", LOG_FILE=path, LOG_ROTATION="daily"))

        handler = config["handlers"]["file"]
        assert handler["class"] == "logging.handlers.TimedRotatingFileHandler"
        assert handler["filename"] == path
        assert config["loggers"][""]["handlers"] == ["console", "file"]

    def test_sql_logging_toggle(self):
        config = build_logging_config(make_settings(LOG_SQL_QUERIES=True))

        assert config["loggers"]["sqlalchemy.engine"]["level"] == "INFO"

    def test_setup_installs_context_filter(self, restore_root_logger):
        setup_logging(make_settings("production", LOG_LEVEL="WARNING", ENABLE_STRUCTURED_LOGGING=False))

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert any(isinstance(f, ContextFilter) for h in root.handlers for f in h.filters)


class TestContext:
    def test_tenant_context_reaches_records(self):
        record = logging.LogRecord("bedflow", logging.INFO, __file__, 1, "msg", None, None)

        with tenant_context("general-hospital", request="req-1"):
            ContextFilter().filter(record)

        assert record.tenant_id == "general-hospital"
        assert record.request_id == "req-1"

    def test_context_is_reset_after_block(self):
        with tenant_context("general-hospital"):
            pass
        record = logging.LogRecord("bedflow", logging.INFO, __file__, 1, "msg", None, None)

        ContextFilter().filter(record)

        assert not hasattr(record, "tenant_id")

    def test_sensitive_fields_are_redacted(self):
        event = {"event": "admitted", "patient_mrn": "MRN00001", "details": {"api_token": "abc", "unit": "ICU"}}

        SensitiveDataProcessor()(None, "info", event)

        assert event["patient_mrn"] == "[REDACTED]"
        assert event["details"] == {"api_token": "[REDACTED]", "unit": "ICU"}
        assert event["event"] == "admitted"

    def test_engine_records_are_redacted(self):
        record = logging.LogRecord("bedflow.BedService", logging.INFO, __file__, 1, "Bed assigned", None, None)
        record.patient_mrn = "MRN00001"
        record.unit = "ICU"

        ContextFilter().filter(record)

        assert record.patient_mrn == "[REDACTED]"
        assert record.unit == "ICU"
        assert record.getMessage() == "Bed assigned"


class TestLoggerAdapter:
    def test_names_are_nested_under_package(self):
        assert get_logger("TransferService").logger.name == "bedflow.TransferService"
        assert get_logger().logger.name == "bedflow"

    def test_bound_context_is_merged_into_extra(self, caplog):
        logger = get_logger("tests").add_context(unit="ICU")

        with caplog.at_level(logging.INFO, logger="bedflow.tests"):
            logger.info("Bed assigned", extra={"tenant_id": "general-hospital"})

        record = caplog.records[-1]
        assert record.getMessage() == "Bed assigned"
        assert record.unit == "ICU"
        assert record.tenant_id == "general-hospital"
