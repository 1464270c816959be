"""
Application logging setup
"""
import logging
import sys

from app.core.config import settings

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_HANDLER_MARKER = "_is_app_log_handler"


def configure_logging(level: str = None) -> None:
    """Attach a single stdout handler to the root logger (idempotent under --reload)."""
    root = logging.getLogger()
    resolved = logging.getLevelName((level or settings.LOG_LEVEL).upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    root.setLevel(resolved)

    if any(getattr(h, _HANDLER_MARKER, False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))
    setattr(handler, _HANDLER_MARKER, True)
    root.addHandler(handler)
