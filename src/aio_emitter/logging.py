"""Logging utilities for the emitter."""

import logging
import sys
from pathlib import Path
from typing import Optional

from coloredlogs import ColoredFormatter

from .settings import EmitterSettings

LOGGER_NAMESPACE = "aio_emitter"

DEFAULT_FORMAT = "[%(asctime)s] [%(levelname)-8s] [%(name)s] %(message)s"
DEBUG_FORMAT = "[%(asctime)s] [%(levelname)-8s] [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class LoggerManager:
    """
    Attaches colored console and file handlers to the `aio_emitter` logger namespace.

    The host application's root logger is left alone. Records stop at the
    namespace logger while the manager has handlers installed, so they are not
    printed twice by a host that also logs to the console.
    """

    def __init__(
        self,
        log_level: str = "INFO",
        debug_mode: bool = False,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        propagate: bool = False,
    ):
        """
        Args:
            log_level: The base log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            debug_mode: Log everything, with function names and line numbers
            log_file: Optional path to a log file
            console_output: Whether to output logs to stdout
            propagate: Also pass records on to the host's handlers
        """
        self.log_level = self._parse_log_level(log_level)
        self.debug_mode = debug_mode
        self.log_file = log_file
        self.console_output = console_output
        self.logger = logging.getLogger(LOGGER_NAMESPACE)
        self.handlers: list[logging.Handler] = []

        self.logger.setLevel(logging.DEBUG if debug_mode else self.log_level)
        self.logger.propagate = propagate
        self._install_handlers()

    @classmethod
    def from_settings(cls, settings: EmitterSettings) -> "LoggerManager":
        """Create a manager from the logging fields of resolved settings."""
        return cls(
            log_level=settings.log_level,
            debug_mode=settings.debug_mode,
            log_file=Path(settings.log_file) if settings.log_file else None,
            console_output=settings.log_to_console,
        )

    def _parse_log_level(self, level: str) -> int:
        """Parse log level string to logging constant."""
        parsed = getattr(logging, str(level).upper(), None)
        if not isinstance(parsed, int):
            return logging.INFO
        return parsed

    def _install_handlers(self):
        formatter = ColoredFormatter(
            fmt=DEBUG_FORMAT if self.debug_mode else DEFAULT_FORMAT,
            datefmt=DATE_FORMAT,
        )

        if self.console_output:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(self.log_level)
            console_handler.setFormatter(formatter)
            self._add_handler(console_handler)

        if self.log_file:
            try:
                self.log_file.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(self.log_file, mode="a", encoding="utf-8")
            except OSError as e:
                self.logger.error(f"Failed to set up file logging: {e}")
                return
            file_handler.setLevel(logging.DEBUG)  # Log everything to file
            file_handler.setFormatter(formatter)
            self._add_handler(file_handler)

    def _add_handler(self, handler: logging.Handler):
        self.logger.addHandler(handler)
        self.handlers.append(handler)

    def set_level(self, level: str):
        """Change the namespace and console log level. The file handler keeps its DEBUG threshold."""
        self.log_level = self._parse_log_level(level)
        if not self.debug_mode:
            self.logger.setLevel(self.log_level)
        for handler in self.handlers:
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(self.log_level)

    def close(self):
        """Detach and close the handlers this manager installed, restoring propagation."""
        for handler in self.handlers:
            self.logger.removeHandler(handler)
            handler.close()
        self.handlers.clear()
        self.logger.setLevel(logging.NOTSET)
        self.logger.propagate = True


def get_emitter_logger(component: str = "emitter") -> logging.Logger:
    """
    Get a logger for an emitter component.

    Args:
        component: The component name

    Returns:
        A logger instance named `aio_emitter.<component>`
    """
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{component}")
