"""Logging configuration for the store backend."""

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_HANDLER_NAME = "store_core"


def configure_logging(level: str | None = None) -> logging.Logger:
    """
    Attach a single stream handler to the ``store_core`` logger.

    Safe to call more than once (the app factory runs per test client);
    later calls only update the level.
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logger = logging.getLogger("store_core")
    logger.setLevel(level)

    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
