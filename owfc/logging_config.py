"""
Logging configuration for the command line.

Library modules only create loggers; the host decides where records go.
Call setup_logging once at startup to send everything under the `owfc`
logger to stderr.
"""

import logging
import sys

CONSOLE_FORMAT = "%(levelname)-8s | %(name)-20s | %(message)s"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    root_logger = logging.getLogger("owfc")
    root_logger.setLevel(level)

    # Clear any existing handlers (for re-initialization)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT))
    root_logger.addHandler(console_handler)

    return root_logger
