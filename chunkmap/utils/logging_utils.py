"""Logging utilities for the chunkmap evaluator."""

import logging
import sys
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", fmt: Optional[str] = None) -> None:
    """Configure logging for the evaluator.

    Logs go to stderr so stdout only carries the reduced result.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        fmt: Optional log record format

    """
    numeric_level = logging.getLevelName(str(level).upper())
    known = isinstance(numeric_level, int)
    if not known:
        numeric_level = logging.INFO

    logging.basicConfig(
        level=numeric_level,
        format=fmt or DEFAULT_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    if not known:
        logging.getLogger(__name__).warning(f"Unknown logging level '{level}'; using INFO")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the specified module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance

    """
    return logging.getLogger(name)
