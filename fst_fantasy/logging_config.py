"""Python logging configuration for the FST Fantasy backend.

``FST_LOG_LEVEL`` (``DEBUG``, ``WARNING``, ...) sets the console level;
the default is INFO.
"""

import logging
import os
import sys

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# HTTP client and dev-server chatter
_QUIET_LOGGERS = ("urllib3", "requests", "werkzeug")


def log_level_from_env(default: int = logging.INFO) -> int:
    """Level named by ``FST_LOG_LEVEL``, or *default* when unset or unknown."""
    name = os.getenv("FST_LOG_LEVEL", "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def setup_logging(level: int | None = None) -> None:
    """Configure root logger with console handler."""
    root = logging.getLogger()
    if root.handlers:
        return  # Already configured

    level = level if level is not None else log_level_from_env()
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%H:%M:%S"))
    root.addHandler(handler)

    quiet_http_loggers(level)


def quiet_http_loggers(level: int = logging.INFO) -> None:
    """Hold third-party loggers at WARNING or at *level*, whichever is higher."""
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Get a named logger, ensuring logging is configured."""
    setup_logging()
    return logging.getLogger(name)
