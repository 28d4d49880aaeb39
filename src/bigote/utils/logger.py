"""Minimal logging utilities for Bigote.

Provides a simple get_logger function that wraps the standard library logging.
The library never installs handlers; configure ``logging`` in the application.

Example:
    >>> from bigote.utils.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.debug("Loading partial %r", "header")
"""

from __future__ import annotations

import logging


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given name.

    Returns a standard library logger with the "bigote." prefix.

    Args:
        name: Logger name (typically __name__)

    Returns:
        logging.Logger instance

    Example:
        >>> logger = get_logger("mymodule")
        >>> logger.name
        'bigote.mymodule'
    """
    if not (name == "bigote" or name.startswith("bigote.")):
        name = f"bigote.{name}"
    return logging.getLogger(name)
