import logging
import sys
from typing import Optional

from quota_activator.config.settings import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: Optional[str] = None):
    """Configure application-wide logging. Safe to call more than once."""
    settings = get_settings()
    if level is not None:
        log_level = logging.getLevelName(level.upper())
    elif settings.debug:
        log_level = logging.DEBUG
    else:
        log_level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    console_handler = next(
        (h for h in root_logger.handlers if getattr(h, "_quota_activator", False)),
        None,
    )
    if console_handler is None:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler._quota_activator = True
        root_logger.addHandler(console_handler)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    # Quiet down noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return root_logger
