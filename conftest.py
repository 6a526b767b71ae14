"""
conftest.py
===========
Session-level pytest configuration for the test suite.

Custom marks
------------
deep
    Applied to tests that parse, flatten or query trees tens of thousands
    of levels deep to exercise the explicit-stack traversals.  They run by
    default; deselect with ``-m "not deep"``.

    Registration here suppresses PytestUnknownMarkWarning and makes the mark
    visible in ``pytest --markers``.
"""

import logging


def pytest_configure(config):
    """
    Configure pytest before test collection begins.
    """
    config.addinivalue_line(
        "markers",
        "deep: trees deeper than the interpreter recursion limit "
        "(deselect with -m 'not deep')",
    )

    # Tests opt in to log capture with caplog; keep the package quiet otherwise.
    logging.getLogger("taxotree").setLevel(logging.WARNING)
