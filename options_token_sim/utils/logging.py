"""Logging setup for command-line runs"""

import logging
import sys

PACKAGE_LOGGER = "options_token_sim"
LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Route the package's module loggers to stderr at the given level.

    Summaries go to stdout through print, so log lines stay off it. Calling
    again replaces the handler instead of stacking a second one.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(package_logger.handlers):
        if getattr(handler, "_options_token_sim", False):
            package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._options_token_sim = True
    package_logger.addHandler(handler)

    # matplotlib's font manager is chatty at DEBUG
    logging.getLogger("matplotlib").setLevel(logging.WARNING)
    return package_logger
