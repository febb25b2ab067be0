"""
Structured logging utilities for the Naver News Keyword Monitor.

Component loggers emit one JSON object per message under the
``naver_monitor.<component>`` logger hierarchy. The logging manager wires a
stdout handler and rotating log files onto the package root logger.
"""

import json
import logging
import logging.handlers
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

ROOT_LOGGER_NAME = "naver_monitor"

MEGABYTE = 1024 * 1024

# Module loggers that get their own rotating file
COMPONENT_LOG_FILES = {
    "components.page_fetcher": "page_fetcher.log",
    "components.condition_evaluator": "condition_evaluator.log",
    "components.condition_loader": "condition_loader.log",
    "components.match_pipeline": "match_pipeline.log",
    "components.scheduler": "scheduler.log",
    "components.notifier": "notifier.log",
    "orchestrator": "orchestrator.log",
}


@dataclass(frozen=True)
class LogFile:
    """A rotating log file attached to the package root logger."""

    name: str
    max_megabytes: int
    backups: int
    errors_only: bool = False


ROOT_LOG_FILES = [
    LogFile("naver_monitor.log", max_megabytes=10, backups=5),
    LogFile("errors.log", max_megabytes=5, backups=3, errors_only=True),
]


class ComponentLogger:
    """
    JSON logger bound to one monitor component.

    Every record carries a timestamp, the component name, the message, any
    fields bound at construction and the per-call ``extra`` fields.
    """

    def __init__(self, component_name: str, extra_context: Optional[Dict[str, Any]] = None):
        self.component_name = component_name
        self.extra_context = dict(extra_context or {})
        self.logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{component_name}")

    def log(
        self,
        level: int,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = False,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return

        record = {"timestamp": datetime.now().isoformat()}
        record["component"] = self.component_name
        record["message"] = message
        record.update(self.extra_context)
        record.update(extra or {})
        if exc_info:
            record["exception"] = True

        # ensure_ascii off so Korean titles stay readable in the log files
        self.logger.log(
            level, json.dumps(record, ensure_ascii=False, default=str), exc_info=exc_info
        )

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self.log(logging.DEBUG, message, extra)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self.log(logging.INFO, message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self.log(logging.WARNING, message, extra)

    def error(
        self, message: str, extra: Optional[Dict[str, Any]] = None, exc_info: bool = False
    ):
        self.log(logging.ERROR, message, extra, exc_info)

    def critical(
        self, message: str, extra: Optional[Dict[str, Any]] = None, exc_info: bool = False
    ):
        self.log(logging.CRITICAL, message, extra, exc_info)


class LoggingManager:
    """Owns the handlers on the package loggers and caches component loggers."""

    def __init__(self, log_dir: str = "logs", log_level: str = "INFO"):
        self.log_dir = Path(log_dir)
        self.log_level = logging.getLevelName(log_level.upper())
        self._loggers: Dict[tuple, ComponentLogger] = {}
        self._pinned: List[logging.Handler] = []

        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._install_handlers()

    def _rotating(self, file_name: str, max_megabytes: int, backups: int) -> logging.Handler:
        return logging.handlers.RotatingFileHandler(
            self.log_dir / file_name,
            maxBytes=max_megabytes * MEGABYTE,
            backupCount=backups,
            encoding="utf-8",
        )

    def _install_handlers(self) -> None:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

        package_logger = logging.getLogger(ROOT_LOGGER_NAME)
        package_logger.setLevel(self.log_level)
        package_logger.handlers.clear()

        handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
        for log_file in ROOT_LOG_FILES:
            handler = self._rotating(log_file.name, log_file.max_megabytes, log_file.backups)
            if log_file.errors_only:
                handler.setLevel(logging.ERROR)
                self._pinned.append(handler)
            handlers.append(handler)

        for handler in handlers:
            if handler.level == logging.NOTSET:
                handler.setLevel(self.log_level)
            handler.setFormatter(formatter)
            package_logger.addHandler(handler)

        # Component files repeat what reaches the main log, without the logger name
        component_formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
        for component, file_name in COMPONENT_LOG_FILES.items():
            component_logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")
            component_logger.handlers.clear()

            handler = self._rotating(file_name, max_megabytes=5, backups=2)
            handler.setLevel(self.log_level)
            handler.setFormatter(component_formatter)
            component_logger.addHandler(handler)

    def get_component_logger(
        self, component_name: str, extra_context: Optional[Dict[str, Any]] = None
    ) -> ComponentLogger:
        key = (component_name, repr(sorted((extra_context or {}).items())))
        if key not in self._loggers:
            self._loggers[key] = ComponentLogger(component_name, extra_context)
        return self._loggers[key]

    def set_log_level(self, level: str) -> None:
        """Change the level everywhere except the errors file."""
        self.log_level = logging.getLevelName(level.upper())
        logging.getLogger(ROOT_LOGGER_NAME).setLevel(self.log_level)

        for name in [ROOT_LOGGER_NAME] + [
            f"{ROOT_LOGGER_NAME}.{component}" for component in COMPONENT_LOG_FILES
        ]:
            for handler in logging.getLogger(name).handlers:
                if handler not in self._pinned:
                    handler.setLevel(self.log_level)

    def get_log_stats(self) -> Dict[str, Any]:
        files = []
        for path in sorted(self.log_dir.glob("*.log")):
            info = path.stat()
            files.append(
                {
                    "name": path.name,
                    "size_bytes": info.st_size,
                    "modified": datetime.fromtimestamp(info.st_mtime).isoformat(),
                }
            )

        return {
            "log_directory": str(self.log_dir),
            "log_level": logging.getLevelName(self.log_level),
            "component_loggers": len(self._loggers),
            "log_files": files,
        }


_logging_manager: Optional[LoggingManager] = None


def setup_logging(log_dir: str = "logs", log_level: str = "INFO") -> LoggingManager:
    """Install the package log handlers and make component loggers managed."""
    global _logging_manager
    _logging_manager = LoggingManager(log_dir, log_level)
    return _logging_manager


def get_logger(component_name: str, extra_context: Optional[Dict[str, Any]] = None) -> ComponentLogger:
    """
    Get a component logger.

    Falls back to an unmanaged ComponentLogger when logging has not been set
    up, so library use and tests do not create log directories.
    """
    if _logging_manager is not None:
        return _logging_manager.get_component_logger(component_name, extra_context)
    return ComponentLogger(component_name, extra_context)


def get_logging_stats() -> Dict[str, Any]:
    if _logging_manager is None:
        return {"error": "Logging not initialized"}
    return _logging_manager.get_log_stats()
