"""
_logging.py
===========
Logging functions for taxotree.

All functions in this module have NO side effects except logging. They take
computed data as parameters and format/emit log messages.

This separation ensures:
- Logging can be easily disabled/mocked in tests
- Computation is separate from presentation
- Clear boundaries between parsing and reporting

Every message goes through ``logging.getLogger('taxotree._logging')``, a
child of the package logger, so ``logging.getLogger('taxotree')`` controls
all output.
"""

import logging


logger = logging.getLogger(__name__)


# ============================================================================ #
# Parsing and Flattening
# ============================================================================ #


def log_parse_summary(n_nodes: int, n_chars: int, n_anomalies: int) -> None:
    """
    Log the outcome of one NEWICK parse at DEBUG level.

    Parameters
    ----------
    n_nodes : int
        Number of ParsedNode objects created.
    n_chars : int
        Length of the cleaned NEWICK body.
    n_anomalies : int
        Structural anomalies recovered from in lenient mode (unclosed
        parentheses, missing separators, trailing text).
    """
    logger.debug("Parsed NEWICK: %d nodes from %d characters", n_nodes, n_chars)
    if n_anomalies:
        logger.debug(
            "Recovered from %d structural anomal%s in NEWICK input",
            n_anomalies,
            "y" if n_anomalies == 1 else "ies",
        )


def log_flatten_summary(
    n_nodes: int,
    n_leaves: int,
    n_collapsed: int,
    n_accessions: int,
    max_depth: int,
) -> None:
    """
    Log flattened-tree statistics at INFO level.

    Parameters
    ----------
    n_nodes : int
        Nodes in the flattened tree.
    n_leaves : int
        Leaves in the flattened tree (collapsed nodes included).
    n_collapsed : int
        Single-child wrappers merged with their accession-bearing leaf.
    n_accessions : int
        Nodes carrying an accession.
    max_depth : int
        Greatest node depth (root = 0).
    """
    logger.info(
        "Flattened tree: %d nodes, %d leaves, %d accessions, max depth %d",
        n_nodes,
        n_leaves,
        n_accessions,
        max_depth,
    )
    if n_collapsed:
        logger.info("  Collapsed %d redundant species node(s)", n_collapsed)


# ============================================================================ #
# Cache
# ============================================================================ #


def log_cache_hit(category: str) -> None:
    """Log a cache hit at DEBUG level."""
    logger.debug("Tree cache hit for category '%s'", category)


def log_cache_load(category: str, n_nodes: int, elapsed: float) -> None:
    """
    Log a successful load-parse-flatten cycle at INFO level.

    Parameters
    ----------
    category : str
        Cache key.
    n_nodes : int
        Nodes in the newly cached tree.
    elapsed : float
        Wall-clock seconds spent loading, parsing and flattening.
    """
    logger.info(
        "Cached tree for category '%s': %d nodes in %.3f s",
        category,
        n_nodes,
        elapsed,
    )


def log_cache_failure(category: str, stage: str, error: BaseException) -> None:
    """
    Log a failed cache fill at ERROR level.

    Parameters
    ----------
    category : str
        Cache key.
    stage : str
        ``'read'`` when the loader failed, ``'parse'`` when the text was
        unusable.
    error : BaseException
        The exception raised by that stage.
    """
    if stage == "read":
        logger.error(
            "Failed to read taxonomy tree for category '%s': %s", category, error
        )
    else:
        logger.error(
            "Failed to parse NEWICK data for category '%s': %s", category, error
        )
