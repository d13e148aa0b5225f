"""
Tests for logging utilities.
"""

import json
import logging
from unittest.mock import Mock, patch

import pytest

from hk_deal_alert.utils import logging as logging_utils
from hk_deal_alert.utils.logging import (
    ROOT_LOGGER_NAME,
    ComponentLogger,
    LoggingManager,
    get_logger,
    setup_logging,
)


@pytest.fixture
def reset_logging():
    """Restore the package logger after a test configures it."""
    yield
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for name in [ROOT_LOGGER_NAME] + [f"{ROOT_LOGGER_NAME}.{c}" for c in logging_utils.COMPONENTS]:
        target = logging.getLogger(name)
        for handler in list(target.handlers):
            handler.close()
            target.removeHandler(handler)
    root_logger.setLevel(logging.NOTSET)
    logging_utils._logging_manager = None


class TestComponentLogger:
    """Test cases for ComponentLogger."""

    def test_component_logger_initialization(self):
        logger = ComponentLogger("catalog.client", {"key": "value"})

        assert logger.component_name == "catalog.client"
        assert logger.extra_context == {"key": "value"}
        assert logger.logger.name == "hk_deal_alert.catalog.client"

    def test_format_message(self):
        """Context and extra fields are merged into the message."""
        logger = ComponentLogger("alert.service", {"request_id": "req-1"})

        formatted = logger._format_message("Run started", {"category": "SCT-snt-pt-wp"})

        assert formatted["component"] == "alert.service"
        assert formatted["message"] == "Run started"
        assert formatted["request_id"] == "req-1"
        assert formatted["category"] == "SCT-snt-pt-wp"
        assert "timestamp" in formatted

    def test_messages_are_json(self):
        with patch("logging.getLogger") as mock_get_logger:
            mock_logger = Mock()
            mock_get_logger.return_value = mock_logger

            logger = ComponentLogger("telegram.notifier", {"chat_id": "1"})
            logger.info("Sent", {"attempts": 2})

            level, payload = mock_logger.log.call_args.args
            data = json.loads(payload)

        assert level == logging.INFO
        assert data["message"] == "Sent"
        assert data["chat_id"] == "1"
        assert data["attempts"] == 2

    def test_error_with_exc_info(self):
        with patch("logging.getLogger") as mock_get_logger:
            mock_logger = Mock()
            mock_get_logger.return_value = mock_logger

            ComponentLogger("scheduler").error("Cycle failed", exc_info=True)

        assert mock_logger.log.call_args.kwargs["exc_info"] is True
        assert json.loads(mock_logger.log.call_args.args[1])["exception"] is True

    def test_non_serializable_extra(self):
        """Values json cannot encode are stringified."""
        with patch("logging.getLogger") as mock_get_logger:
            mock_logger = Mock()
            mock_get_logger.return_value = mock_logger

            ComponentLogger("scheduler").info("Done", {"when": object()})

        assert "object object" in json.loads(mock_logger.log.call_args.args[1])["when"]


class TestLoggingManager:
    """Test cases for LoggingManager."""

    def test_file_logging_creates_log_files(self, tmp_path, reset_logging):
        manager = LoggingManager(log_dir=str(tmp_path), log_level="DEBUG")

        manager.get_component_logger("catalog.client").error("boom")
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.flush()
        for handler in logging.getLogger(f"{ROOT_LOGGER_NAME}.catalog.client").handlers:
            handler.flush()

        assert (tmp_path / "hk_deal_alert.log").exists()
        assert "boom" in (tmp_path / "errors.log").read_text()
        assert "boom" in (tmp_path / "catalog_client.log").read_text()

    def test_console_only(self, tmp_path, reset_logging):
        LoggingManager(log_dir=str(tmp_path / "unused"), log_to_file=False)

        handlers = logging.getLogger(ROOT_LOGGER_NAME).handlers
        assert len(handlers) == 1
        assert not (tmp_path / "unused").exists()

    def test_component_loggers_are_cached(self, tmp_path, reset_logging):
        manager = LoggingManager(log_dir=str(tmp_path), log_to_file=False)

        assert manager.get_component_logger("http.api") is manager.get_component_logger("http.api")

    def test_set_log_level_keeps_error_log(self, tmp_path, reset_logging):
        manager = LoggingManager(log_dir=str(tmp_path), log_level="INFO")

        manager.set_log_level("DEBUG")

        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        assert root_logger.level == logging.DEBUG
        for handler in root_logger.handlers:
            if "errors.log" in str(getattr(handler, "baseFilename", "")):
                assert handler.level == logging.ERROR
            else:
                assert handler.level == logging.DEBUG


class TestModuleFunctions:
    """Test cases for setup_logging and get_logger."""

    def test_get_logger_before_setup(self, reset_logging):
        logging_utils._logging_manager = None

        logger = get_logger("scheduler")

        assert isinstance(logger, ComponentLogger)

    def test_get_logger_after_setup(self, tmp_path, reset_logging):
        manager = setup_logging(log_dir=str(tmp_path), log_to_file=False)

        logger = get_logger("scheduler")

        assert logger is manager.get_component_logger("scheduler")

    def test_filter_engine_writes_its_component_file(self, tmp_path, reset_logging):
        from hk_deal_alert.components.filter_engine import filter_raw_items
        from hk_deal_alert.models.filter import FilterCriteria

        LoggingManager(log_dir=str(tmp_path), log_level="INFO")

        filter_raw_items([], FilterCriteria())
        for handler in logging.getLogger(f"{ROOT_LOGGER_NAME}.filter.engine").handlers:
            handler.flush()

        assert "Raw item filter kept 0 of 0 items" in (tmp_path / "filter_engine.log").read_text()

    def test_component_modules_log_under_listed_names(self):
        from hk_deal_alert.components import alert_formatter, catalog_client, filter_engine

        for module, component in (
            (alert_formatter, "alert.formatter"),
            (catalog_client, "catalog.client"),
            (filter_engine, "filter.engine"),
        ):
            assert component in logging_utils.COMPONENTS
            assert module.logger.logger.name == f"{ROOT_LOGGER_NAME}.{component}"
