import logging
from typing import Callable, Optional

from rich.logging import RichHandler

from floresya.config import settings

LOGGER_NAME = "floresya"

Notifier = Callable[[str, str], None]

_NOTIFY_LEVELS = {"error": logging.ERROR, "warning": logging.WARNING}

notify_logger = logging.getLogger(f"{LOGGER_NAME}.notify")


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a rich handler to the ``floresya`` logger (only once)."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel((level or settings.log_level).upper())
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(rich_tracebacks=True, show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
    return logger


def log_notifier(message: str, level: str = "info") -> None:
    """Default user notifier when no UI is attached: error and warning keep their level, the rest log at INFO."""
    notify_logger.log(_NOTIFY_LEVELS.get(level, logging.INFO), "notification: %s", message)
