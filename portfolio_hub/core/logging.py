"""Stdout logging for processes that drive a portfolio book."""

import logging
import sys

from ..config import AppSettings, get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
QUIET_LOGGERS = ("opentelemetry", "grpc")

_HANDLER_NAME = "portfolio_hub.stdout"


def setup_logging(settings: AppSettings | None = None) -> logging.Handler:
    """Route records to stdout at ``settings.log_level``.

    Calling it again replaces the handler installed by the previous call
    instead of stacking a second one.
    """
    settings = settings or get_settings()
    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.log_level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger(__name__).debug("Logging configured for %s", settings.app_name)
    return handler
