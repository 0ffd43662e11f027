"""
Logging setup.

Every module logs through ``logging.getLogger(__name__)``; applications call
``setup_logging`` once to route records to stdout.
"""

import logging
import sys
from typing import Optional, Union

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: Union[str, int] = "INFO",
    format_string: Optional[str] = None,
) -> None:
    """
    Route log records to stdout.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR) or number
        format_string: Custom format string (uses default if None)

    Raises:
        ValueError: If the level name is unknown
    """
    if isinstance(level, str):
        numeric = logging.getLevelName(level.upper())
        if not isinstance(numeric, int):
            raise ValueError(f"Unknown log level: {level}")
        level = numeric

    logging.basicConfig(
        level=level,
        format=format_string or DEFAULT_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get logger for a module.

    Args:
        name: Logger name (typically __name__)
    """
    return logging.getLogger(name)
