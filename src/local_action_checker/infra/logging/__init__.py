from __future__ import annotations

from .logger import CheckerLogger, DECISION_LOG_FILENAME
from .handlers import build_json_file_handler, build_human_console_handler
from .formatters import JSONFormatter, HumanReadableFormatter

__all__ = [
    "CheckerLogger",
    "DECISION_LOG_FILENAME",
    "build_json_file_handler",
    "build_human_console_handler",
    "JSONFormatter",
    "HumanReadableFormatter",
]
