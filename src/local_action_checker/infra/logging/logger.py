from __future__ import annotations

import logging
from pathlib import Path

from dependency_injector.resources import Resource

from .handlers import build_json_file_handler, build_human_console_handler

DECISION_LOG_FILENAME = "decisions.jsonl"


class CheckerLogger(Resource):
    """Structured logger for protection rule decisions.

    Provides convenience methods for logging decision events with extra fields.
    Writes JSON Lines to the logs directory and/or human-readable console output.
    """

    def init(
        self,
        *,
        logs_dir: Path | None = None,
        logger_name: str = "local_action_checker",
        console_output: bool = False,
        file_output: bool = False,
        level: str = "INFO",
    ) -> "CheckerLogger":
        """Initialize logger handlers.

        Args:
            logs_dir: Directory to store the decision log (required for file output)
            logger_name: Logger name
            console_output: Whether to enable console output
            file_output: Whether to append events to ``decisions.jsonl``
            level: Logging level (DEBUG, INFO, WARNING, ERROR)

        Returns:
            Self for dependency_injector Resource pattern
        """
        log_level = getattr(logging, level.upper())
        self._logger = logging.getLogger(logger_name)
        self._logger.setLevel(log_level)
        self._logger.propagate = False  # Don't propagate to root logger

        # Clear existing handlers
        self._logger.handlers.clear()
        self._handlers = []

        if file_output and logs_dir is not None:
            file_handler = build_json_file_handler(logs_dir / DECISION_LOG_FILENAME, level=log_level)
            self._logger.addHandler(file_handler)
            self._handlers.append(file_handler)

        if console_output:
            console_handler = build_human_console_handler(level=log_level)
            self._logger.addHandler(console_handler)
            self._handlers.append(console_handler)

        return self

    def shutdown(self, resource: "CheckerLogger") -> None:
        """Flush and close all handlers so the log file is released."""
        for handler in self._handlers:
            handler.flush()
            handler.close()

        self._logger.handlers.clear()

    def _log(self, level: int, message: str, fields: dict, exc_info: bool = False) -> None:
        self._logger.log(level, message, extra=fields or None, exc_info=exc_info)

    def debug(self, message: str, **kwargs) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs) -> None:
        self._log(logging.ERROR, message, kwargs, exc_info=exc_info)

    def exception(self, message: str, **kwargs) -> None:
        """Log at ERROR with the active exception's traceback."""
        self._log(logging.ERROR, message, kwargs, exc_info=True)
