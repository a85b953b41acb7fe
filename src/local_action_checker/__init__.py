from .app.main import analyze_workflow, handle_protection_rule

__all__ = [
    "analyze_workflow",
    "handle_protection_rule",
]

# stdlib logging defaults: attach NullHandler to prevent 'No handler' warnings
import logging
_logger = logging.getLogger(__name__)
_logger.addHandler(logging.NullHandler())
