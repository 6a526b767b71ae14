"""
_queries.py
===========
Taxon-id lookups over nested FlatNode structures.

These functions work from any FlatNode (a whole tree's root or a subtree
obtained earlier) and need no FlatTree.  FlatTree.find_taxon(),
FlatTree.lineage() and FlatTree.count_accessions() give the same answers
for whole trees using precomputed arrays.

Search order is pre-order with children in stored order; the first match
wins, so trees with duplicated taxon ids still give a well-defined result.
All traversals use an explicit stack.
"""

from typing import List, Optional

from taxotree._flatten import FlatNode


def extract_subtree_by_taxon_id(
    node: Optional[FlatNode], taxon_id: str
) -> Optional[FlatNode]:
    """
    Return the first node (pre-order) under *node*, inclusive, whose
    taxon_id equals *taxon_id*; None if there is none or *node* is None.

    Examples
    --------
    >>> from taxotree import load_tree
    >>> tree = load_tree('((A[a1|11],B[b1|12])AB{10},C[c1|20])Root{1};')
    >>> extract_subtree_by_taxon_id(tree.root, '10').name
    'AB'
    """
    if node is None:
        return None
    stack = [node]
    while stack:
        current = stack.pop()
        if current.taxon_id == taxon_id:
            return current
        stack.extend(reversed(current.children))
    return None


def extract_lineage_by_taxon_id(
    node: Optional[FlatNode], taxon_id: str
) -> List[FlatNode]:
    """
    Return the path from *node* down to the first node (pre-order) whose
    taxon_id equals *taxon_id*, both ends included.  Empty if not found.

    Each element of the result is a direct child of the one before it.

    Examples
    --------
    >>> from taxotree import load_tree
    >>> tree = load_tree('((A[a1|11],B[b1|12])AB{10},C[c1|20])Root{1};')
    >>> [n.name for n in extract_lineage_by_taxon_id(tree.root, '12')]
    ['Root', 'AB', 'B']
    """
    if node is None:
        return []
    path = []
    stack = [(node, 0)]
    while stack:
        current, level = stack.pop()
        del path[level:]
        path.append(current)
        if current.taxon_id == taxon_id:
            return path
        stack.extend((child, level + 1) for child in reversed(current.children))
    return []


def count_accessions(node: Optional[FlatNode]) -> int:
    """
    Count nodes carrying an accession in the subtree of *node*, inclusive.

    Collapsed species nodes count once.  Returns 0 for None.
    """
    if node is None:
        return 0
    count = 0
    stack = [node]
    while stack:
        current = stack.pop()
        if current.accession:
            count += 1
        stack.extend(current.children)
    return count
