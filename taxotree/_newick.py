"""
_newick.py
==========
Lenient NEWICK parser with the taxonomy annotation extensions used by the
assembly-hub tree exports.

Public API
----------
  parse_newick(text, strict=False) -> ParsedNode
      Parse one tree.  Raises EmptyNewickError for empty input.

  ParsedNode
      Transient node of the parsed tree (name, accession, taxon_id,
      branch_length, children, parent).

Grammar
-------
Standard NEWICK nesting, commas and ``:length`` suffixes, plus three inline
annotations on the node label:

  Name[accession]            leaf carrying an assembly accession
  Name[accession|taxonId]    leaf carrying an accession and a taxon id
  Name{taxonId}              internal node carrying a taxon id

Any other bracket form is kept verbatim as part of the name.  Labels are
not unquoted and whitespace inside labels is preserved.

Leniency
--------
Real-world exports are imperfect.  By default the parser never raises on
structural anomalies: an unclosed ``(`` is closed at end of input, a stray
``)`` ends the current child list, and text after the root node is
ignored.  Pass ``strict=True`` to turn those anomalies into
MalformedNewickError.

Notes
-----
The grammar is recursive but the implementation is a single loop over an
explicit stack of open nodes, so tree depth is limited by memory rather
than by the interpreter's recursion limit.
"""

import re
import weakref

from taxotree._logging import log_parse_summary
from taxotree._utils import clean_newick, parse_number_prefix


# Characters that end a branch-length token; labels also stop at ':'.
_DELIMITERS = ",()"

_LEAF_LABEL = re.compile(r"(.+?)\[([^\]]+)\]")
_INTERNAL_LABEL = re.compile(r"(.+?)\{([^}]+)\}")


# ============================================================================ #
# Errors
# ============================================================================ #


class NewickError(ValueError):
    """Base class for NEWICK parsing errors."""


class EmptyNewickError(NewickError):
    """The NEWICK text is empty once whitespace and ';' are removed."""


class MalformedNewickError(NewickError):
    """Structural anomaly in the NEWICK text (strict mode only)."""

    def __init__(self, message: str, position: int) -> None:
        super().__init__(f"{message} at position {position}")
        self.position = position


# ============================================================================ #
# Parsed tree
# ============================================================================ #


class ParsedNode:
    """
    One node of a parsed NEWICK tree.

    Attributes
    ----------
    name          : str | None    Label text before any annotation.
    accession     : str | None    From ``[accession]`` or ``[accession|...]``.
    taxon_id      : str | None    From ``[...|taxonId]`` or ``{taxonId}``.
    branch_length : float | None  None when no ``:`` follows the label.
    children      : list[ParsedNode]

    The parent link is a weak reference: the parent owns its children, the
    back-pointer is for navigation only.
    """

    __slots__ = (
        "name",
        "accession",
        "taxon_id",
        "branch_length",
        "children",
        "_parent",
        "__weakref__",
    )

    def __init__(
        self,
        name=None,
        accession=None,
        taxon_id=None,
        branch_length=None,
        children=None,
    ) -> None:
        self.name = name
        self.accession = accession
        self.taxon_id = taxon_id
        self.branch_length = branch_length
        self.children = []
        self._parent = None
        for child in children or ():
            self.add_child(child)

    @property
    def parent(self):
        """Parent node, or None for the root."""
        return self._parent() if self._parent is not None else None

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def add_child(self, child: "ParsedNode") -> None:
        child._parent = weakref.ref(self)
        self.children.append(child)

    def __repr__(self) -> str:
        fields = [f"name={self.name!r}"]
        if self.accession is not None:
            fields.append(f"accession={self.accession!r}")
        if self.taxon_id is not None:
            fields.append(f"taxon_id={self.taxon_id!r}")
        if self.branch_length is not None:
            fields.append(f"branch_length={self.branch_length!r}")
        if self.children:
            fields.append(f"children={len(self.children)}")
        return f"ParsedNode({', '.join(fields)})"


# ============================================================================ #
# Parser
# ============================================================================ #


def split_label(label: str):
    """
    Split a raw node label into ``(name, accession, taxon_id)``.

    The leaf form ``Name[payload]`` is tried first; *payload* is split once
    on the first ``|``.  Otherwise the internal form ``Name{payload}`` is
    tried.  Labels matching neither are returned unchanged.  An empty label
    yields ``(None, None, None)``.

    Examples
    --------
    >>> split_label('Homo sapiens[GCF_000001405.40|9606]')
    ('Homo sapiens', 'GCF_000001405.40', '9606')

    >>> split_label('Primates{9443}')
    ('Primates', None, '9443')

    >>> split_label('[orphan]')
    ('[orphan]', None, None)
    """
    if not label:
        return None, None, None

    m = _LEAF_LABEL.fullmatch(label)
    if m is not None:
        accession, sep, taxon_id = m.group(2).partition("|")
        return m.group(1), accession, (taxon_id if sep else None)

    m = _INTERNAL_LABEL.fullmatch(label)
    if m is not None:
        return m.group(1), None, m.group(2)

    return label, None, None


def parse_newick(text: str, strict: bool = False) -> ParsedNode:
    """
    Parse a single NEWICK tree.

    Parameters
    ----------
    text : str
        NEWICK text.  Surrounding whitespace and one trailing ';' are
        removed first.
    strict : bool, default False
        Raise MalformedNewickError on unbalanced parentheses or trailing
        text instead of recovering silently.

    Returns
    -------
    ParsedNode
        The root node.

    Raises
    ------
    EmptyNewickError
        If nothing is left after trimming.
    MalformedNewickError
        Only when *strict* is True.

    Examples
    --------
    >>> root = parse_newick('(A,B)Root{1234};')
    >>> root.name, root.taxon_id, [c.name for c in root.children]
    ('Root', '1234', ['A', 'B'])
    """
    s = clean_newick(text)
    n = len(s)
    if n == 0:
        raise EmptyNewickError("NEWICK text is empty")

    i = 0
    n_nodes = 0
    anomalies = 0

    # Stack of nodes whose child list is open (their '(' has been consumed).
    open_nodes = []
    node = None
    starting = True

    while True:
        if starting:
            # ---- Begin a node: descend through every '(' ---------------- #
            node = ParsedNode()
            n_nodes += 1
            if i < n and s[i] == "(":
                i += 1
                open_nodes.append(node)
                continue
            starting = False

        # ---- Finish `node`: label and branch length ------------------- #
        j = i
        while j < n and s[j] not in _DELIMITERS and s[j] != ":":
            j += 1
        node.name, node.accession, node.taxon_id = split_label(s[i:j])
        i = j

        if i < n and s[i] == ":":
            i += 1
            j = i
            while j < n and s[j] not in _DELIMITERS:
                j += 1
            node.branch_length = parse_number_prefix(s[i:j])
            i = j

        # ---- Attach `node` to its parent, or stop at the root --------- #
        if not open_nodes:
            break

        parent = open_nodes[-1]
        parent.add_child(node)
        if i < n and s[i] == ",":
            i += 1
        elif i < n and s[i] != ")":
            anomalies += 1
            if strict:
                raise MalformedNewickError("expected ',' or ')'", i)
        if i < n and s[i] != ")":
            starting = True
            continue

        # Child list closed by ')' or by end of input.
        if i < n:
            i += 1
        else:
            anomalies += 1
            if strict:
                raise MalformedNewickError("unclosed '('", i)
        node = open_nodes.pop()

    if i < n:
        anomalies += 1
        if strict:
            raise MalformedNewickError(f"unexpected {s[i]!r} after root node", i)

    log_parse_summary(n_nodes, n, anomalies)
    return node
