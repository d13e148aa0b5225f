"""
Structured logging for the HealthKart Deal Alert system.

Every component logs through a ``ComponentLogger`` which serializes the
message and its context as JSON. ``LoggingManager`` attaches a console
handler to the ``hk_deal_alert`` logger and, optionally, rotating files:
one combined log, one error-only log and one file per component.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

ROOT_LOGGER_NAME = "hk_deal_alert"

COMPONENTS = [
    "catalog.client",
    "transform.service",
    "filter.engine",
    "alert.formatter",
    "telegram.notifier",
    "alert.service",
    "http.api",
    "scheduler",
]

LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
COMPONENT_LINE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

MB = 1024 * 1024


def _rotating_handler(
    path: Path, max_bytes: int, backup_count: int, level: int, fmt: str
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


class ComponentLogger:
    """
    JSON-structured logger bound to one component.

    ``extra_context`` is merged into every record, so a logger created
    with ``{"request_id": ...}`` tags all of its lines with that id.
    """

    def __init__(self, component_name: str, extra_context: Optional[Dict[str, Any]] = None):
        """
        Create a logger for ``component_name`` (e.g. 'catalog.client').

        Args:
            component_name: Dotted component name under the package logger
            extra_context: Fields added to every message
        """
        self.component_name = component_name
        self.extra_context = extra_context or {}
        self.logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{component_name}")

    def _format_message(self, message: str, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload = {
            "timestamp": datetime.now().isoformat(),
            "component": self.component_name,
            "message": message,
        }
        payload.update(self.extra_context)
        if extra:
            payload.update(extra)
        return payload

    def _emit(self, level: int, message: str, extra: Optional[Dict[str, Any]], exc_info: bool = False):
        payload = self._format_message(message, extra)
        if exc_info:
            payload["exception"] = True
        self.logger.log(level, json.dumps(payload, default=str), exc_info=exc_info)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._emit(logging.DEBUG, message, extra)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._emit(logging.INFO, message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._emit(logging.WARNING, message, extra)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None, exc_info: bool = False):
        self._emit(logging.ERROR, message, extra, exc_info)

    def critical(self, message: str, extra: Optional[Dict[str, Any]] = None, exc_info: bool = False):
        self._emit(logging.CRITICAL, message, extra, exc_info)


class LoggingManager:
    """Configures handlers for the package logger and hands out component loggers."""

    def __init__(self, log_dir: str = "logs", log_level: str = "INFO", log_to_file: bool = True):
        """
        Configure logging.

        Args:
            log_dir: Directory receiving the rotating log files
            log_level: Level name applied to the package logger
            log_to_file: Write log files in addition to stdout
        """
        self.log_dir = Path(log_dir)
        self.log_level = getattr(logging, log_level.upper(), logging.INFO)
        self.log_to_file = log_to_file
        self._loggers: Dict[str, ComponentLogger] = {}

        if self.log_to_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self._configure()

    def _configure(self):
        package_logger = logging.getLogger(ROOT_LOGGER_NAME)
        package_logger.setLevel(self.log_level)
        package_logger.handlers.clear()

        console = logging.StreamHandler(sys.stdout)
        console.setLevel(self.log_level)
        console.setFormatter(logging.Formatter(LINE_FORMAT))
        package_logger.addHandler(console)

        if not self.log_to_file:
            return

        package_logger.addHandler(
            _rotating_handler(self.log_dir / f"{ROOT_LOGGER_NAME}.log", 10 * MB, 5, self.log_level, LINE_FORMAT)
        )
        package_logger.addHandler(
            _rotating_handler(self.log_dir / "errors.log", 5 * MB, 3, logging.ERROR, LINE_FORMAT)
        )

        for component in COMPONENTS:
            component_logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")
            component_logger.handlers.clear()
            component_logger.addHandler(
                _rotating_handler(
                    self.log_dir / f"{component.replace('.', '_')}.log",
                    5 * MB,
                    2,
                    self.log_level,
                    COMPONENT_LINE_FORMAT,
                )
            )

    def get_component_logger(self, component_name: str, extra_context: Optional[Dict[str, Any]] = None) -> ComponentLogger:
        """Return a cached logger for the component and context pair."""
        key = f"{component_name}:{json.dumps(extra_context or {}, sort_keys=True, default=str)}"
        if key not in self._loggers:
            self._loggers[key] = ComponentLogger(component_name, extra_context)
        return self._loggers[key]

    def set_log_level(self, level: str):
        """Change the level of the package logger and every handler but the error log."""
        self.log_level = getattr(logging, level.upper())

        package_logger = logging.getLogger(ROOT_LOGGER_NAME)
        package_logger.setLevel(self.log_level)

        for handler in package_logger.handlers:
            if str(getattr(handler, "baseFilename", "")).endswith("errors.log"):
                continue
            handler.setLevel(self.log_level)


_logging_manager: Optional[LoggingManager] = None


def setup_logging(log_dir: str = "logs", log_level: str = "INFO", log_to_file: bool = True) -> LoggingManager:
    """Configure process-wide logging and return the manager."""
    global _logging_manager
    _logging_manager = LoggingManager(log_dir, log_level, log_to_file)
    return _logging_manager


def get_logger(component_name: str, extra_context: Optional[Dict[str, Any]] = None) -> ComponentLogger:
    """
    Get a component logger.

    Loggers obtained before ``setup_logging`` runs still work; they pick up
    handlers once logging is configured since handlers live on the
    package logger.
    """
    if _logging_manager is None:
        return ComponentLogger(component_name, extra_context)
    return _logging_manager.get_component_logger(component_name, extra_context)
