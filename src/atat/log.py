"""Logging configuration for the atat CLI."""

import logging
import os
import sys

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(verbose: bool = False) -> None:
    """Configure the ``atat`` logger to write to stderr.

    Args:
        verbose: If True, log at DEBUG regardless of LOG_LEVEL.

    Environment variables:
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR).
                   Default: WARNING.
    """
    if verbose:
        level = logging.DEBUG
    else:
        env_level = os.getenv("LOG_LEVEL", "WARNING").upper()
        level = getattr(logging, env_level, logging.WARNING)
        if not isinstance(level, int):
            level = logging.WARNING

    logger = logging.getLogger("atat")
    logger.setLevel(level)

    # Repeated calls must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
