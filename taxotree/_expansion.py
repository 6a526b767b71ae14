"""
_expansion.py
=============
Expand/collapse state for browsing a FlatTree one level at a time.

A tree viewer shows the root, and the children of a node only once that
node has been expanded.  Expansion holds the set of expanded node ids and
answers the two questions such a viewer asks:

  children_of(node_id)  -> child FlatNodes, or None while collapsed
  visible_rows()        -> every currently reachable node, in display order

Rendering, row heights and windowing are left to the caller.
"""

from typing import Iterable, List, Optional

from taxotree._flatten import FlatNode, FlatTree


class Expansion:
    """
    Set of expanded node ids over one FlatTree.

    Parameters
    ----------
    tree : FlatTree
    expanded : iterable of str, optional
        Node ids expanded initially.

    Raises
    ------
    KeyError
        If an id in *expanded* is not part of *tree*.
    """

    def __init__(self, tree: FlatTree, expanded: Iterable[str] = ()) -> None:
        self.tree = tree
        self._expanded = set()
        for node_id in expanded:
            self.expand(node_id)

    @property
    def expanded(self) -> frozenset:
        return frozenset(self._expanded)

    def is_expanded(self, node_id: str) -> bool:
        self._node(node_id)
        return node_id in self._expanded

    def expand(self, node_id: str) -> None:
        """Expand *node_id*.  Leaves cannot be expanded and are ignored."""
        if not self._node(node_id).is_leaf:
            self._expanded.add(node_id)

    def collapse(self, node_id: str) -> None:
        self._node(node_id)
        self._expanded.discard(node_id)

    def toggle(self, node_id: str) -> bool:
        """Flip *node_id* and return its new state (always False for leaves)."""
        if node_id in self._expanded:
            self.collapse(node_id)
            return False
        self.expand(node_id)
        return node_id in self._expanded

    def expand_all(self) -> None:
        self._expanded = {node.id for node in self.tree if not node.is_leaf}

    def collapse_all(self) -> None:
        self._expanded = set()

    def expand_to(self, taxon_id: str) -> Optional[FlatNode]:
        """
        Expand every ancestor of the first node carrying *taxon_id* so that
        it becomes visible.  The target itself is left as it was.

        Returns the target node, or None if the taxon is not in the tree.
        """
        lineage = self.tree.lineage(taxon_id)
        for node in lineage[:-1]:
            self._expanded.add(node.id)
        return lineage[-1] if lineage else None

    def children_of(self, node_id: str) -> Optional[List[FlatNode]]:
        """
        Return the children of *node_id* if it is expanded, else None.

        Leaves always return None.
        """
        node = self._node(node_id)
        if node_id not in self._expanded or node.is_leaf:
            return None
        return list(node.children)

    def visible_rows(self) -> List[FlatNode]:
        """
        Return the root followed by every node whose ancestors are all
        expanded, in pre-order.
        """
        rows = []
        stack = [self.tree.root]
        while stack:
            node = stack.pop()
            rows.append(node)
            if node.id in self._expanded:
                stack.extend(reversed(node.children))
        return rows

    def _node(self, node_id: str) -> FlatNode:
        return self.tree[node_id]

    def __repr__(self) -> str:
        return (
            f"Expansion({len(self._expanded)} of {self.tree.n_nodes} nodes expanded)"
        )
