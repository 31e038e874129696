"""
Logging helpers.

Modules log through ``logging.getLogger(__name__)``; the library itself never
touches the root logger. Applications that want to see stensor's messages
can call ``setup_logging``.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Attach a stdout handler to the ``stensor`` logger.

    Calling it again only updates the level; no duplicate handler is added.

    Returns:
        logging.Logger: The configured ``stensor`` logger.
    """
    logger = logging.getLogger("stensor")
    logger.setLevel(level)
    if not any(getattr(h, "_stensor_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._stensor_handler = True
        logger.addHandler(handler)
    return logger


__all__ = ["LOG_FORMAT", "setup_logging"]
