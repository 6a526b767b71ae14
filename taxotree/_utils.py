"""
_utils.py
=========
General-purpose text helpers for taxotree.

These are standalone functions that don't depend on the main classes
and could be useful in multiple contexts.
"""

import re


# Leading decimal number, optionally signed, optionally with an exponent.
# Mirrors the prefix accepted by JavaScript's parseFloat, which is how the
# upstream tree exports were read.
_NUMBER_PREFIX = re.compile(
    r"\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))"
)


def clean_newick(newick: str) -> str:
    """
    Strip surrounding whitespace, a leading byte-order mark and a single
    trailing ';' from *newick*.

    Parameters
    ----------
    newick : str
        Raw NEWICK text, as read from a file.

    Returns
    -------
    str
        The tree body, possibly empty.

    Examples
    --------
    >>> clean_newick('  ((A,B),C);\\n')
    '((A,B),C)'

    >>> clean_newick('(A,B);;')
    '(A,B);'

    >>> clean_newick('\\ufeff(A,B);')
    '(A,B)'

    >>> clean_newick(';')
    ''
    """
    newick = newick.strip().lstrip("\ufeff").strip()
    if newick.endswith(";"):
        newick = newick[:-1]
    return newick


def parse_number_prefix(text: str, default: float = 0.0) -> float:
    """
    Parse the longest leading decimal number in *text*.

    Trailing garbage is ignored. Text without a numeric prefix, and a
    prefix that evaluates to zero or NaN, yield *default*.

    Examples
    --------
    >>> parse_number_prefix('0.25')
    0.25

    >>> parse_number_prefix('1.5e-3xyz')
    0.0015

    >>> parse_number_prefix('notanumber')
    0.0
    """
    m = _NUMBER_PREFIX.match(text)
    if m is None:
        return default
    token = m.group(1).replace("Infinity", "inf")
    value = float(token)
    if value != value or value == 0.0:
        return default
    return value
