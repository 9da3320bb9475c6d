"""Logging setup for the performkit command line."""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "performkit"


def configure_logging(verbose: bool = False) -> logging.Logger:
    """
    Attach a single stderr handler to the package logger.

    Library modules only create loggers; this is called once by the CLI.
    Calling it again replaces the handler instead of stacking a second one.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
