"""
_context.py
===========
Context managers for taxotree logging.

Provides clean, Pythonic context managers for temporarily changing logger
levels.  All context managers restore state on exit, even if exceptions
occur.
"""

import logging
from contextlib import contextmanager


PACKAGE_LOGGER = "taxotree"


@contextmanager
def suppress_logger(logger_name: str, level: int = logging.CRITICAL):
    """
    Temporarily change a logger's level.

    Parameters
    ----------
    logger_name : str
        Name of the logger to change (e.g. 'taxotree._logging').
    level : int, default logging.CRITICAL
        Temporary logging level.

    Examples
    --------
    >>> with suppress_logger('taxotree._logging', logging.WARNING):
    ...     tree = load_tree(newick)

    Notes
    -----
    - Exception-safe: Logger level restored even if exception raised
    - Nesting-safe: Can nest multiple suppress_logger contexts
    """
    logger = logging.getLogger(logger_name)
    original_level = logger.level

    try:
        logger.setLevel(level)
        yield
    finally:
        logger.setLevel(original_level)


@contextmanager
def quiet(level: int = logging.CRITICAL):
    """
    Temporarily suppress all taxotree logging.

    Convenience wrapper around suppress_logger() for the package logger,
    which every taxotree module logs beneath.

    Examples
    --------
    >>> # Silent bulk loading
    >>> with quiet():
    ...     trees = [cache.get_tree(c) for c in categories]

    >>> # Keep cache failures visible
    >>> with quiet(logging.ERROR):
    ...     tree = cache.get_tree('primates')
    """
    with suppress_logger(PACKAGE_LOGGER, level):
        yield
