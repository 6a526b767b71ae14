"""
_flatten.py
===========
Flattened, addressable form of a parsed taxonomy tree.

Public API
----------
  flatten(root) -> FlatTree
      Walk a ParsedNode tree in pre-order, assign ids ``node_0, node_1, ...``
      and merge redundant species wrappers (see Collapsing below).

  load_tree(newick_string, strict=False) -> FlatTree
      parse_newick + flatten.

  FlatTree
      .root, .root_id, .nodes (id -> FlatNode, pre-order)
      .child_ids(node), .find_taxon(taxon_id), .lineage(taxon_id),
      .count_accessions(node=None), .to_node_map()

  FlatNode
      Read-only node: id, index, name, accession, taxon_id, branch_length,
      children (nested tuple), depth, is_leaf.

Collapsing
----------
The source trees repeat a species name at an internal "species" node and
again at its single accession-bearing leaf:

    (Homo sapiens[GCF_000001405.40|9606])Homo sapiens

A ParsedNode P with exactly one child C is emitted as ONE FlatNode when C
is a leaf, ``P.name == C.name`` and C has an accession.  The FlatNode keeps
P's id, name and depth and takes C's accession, taxon_id and branch_length.
Only one level is merged; a chain of identical wrappers is not collapsed
transitively.

Arrays
------
Node ids are assigned in pre-order, so ``FlatNode.index`` doubles as the
row of the per-node numpy arrays and every subtree occupies the contiguous
index range ``[index, subtree_end[index])``:

  parent        : int32  [n_nodes]   Parent index; -1 for root.
  depth         : int32  [n_nodes]   Edge depth from root.
  subtree_end   : int32  [n_nodes]   Exclusive end of the node's subtree.
  branch_length : float64[n_nodes]   NaN where no length was given.
  has_accession : bool   [n_nodes]

Lookups by taxon id use an index built lazily on first use.
"""

import numpy as np

from taxotree._logging import log_flatten_summary
from taxotree._newick import parse_newick


class FlatNode:
    """
    One node of a flattened tree.

    Attributes (read-only once the owning FlatTree is built)
    ---------------------------------------------------------
    id            : str          ``node_<index>``
    index         : int          Pre-order position in the owning FlatTree.
    name          : str | None
    accession     : str | None
    taxon_id      : str | None
    branch_length : float | None
    children      : tuple[FlatNode, ...]   Empty for leaves.
    depth         : int          Root = 0.
    """

    __slots__ = (
        "id",
        "index",
        "name",
        "accession",
        "taxon_id",
        "branch_length",
        "children",
        "depth",
        "_frozen",
    )

    def __init__(
        self,
        index: int,
        name,
        accession,
        taxon_id,
        branch_length,
        depth: int,
    ) -> None:
        self.id = f"node_{index}"
        self.index = index
        self.name = name
        self.accession = accession
        self.taxon_id = taxon_id
        self.branch_length = branch_length
        self.children = []
        self.depth = depth

    def __setattr__(self, name, value):
        if getattr(self, "_frozen", False):
            raise AttributeError(f"FlatNode is read-only; cannot set {name!r}")
        object.__setattr__(self, name, value)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def to_dict(self) -> dict:
        """
        Plain-dict form used by FlatTree.to_node_map().

        Absent fields are omitted; ``children`` lists child ids and is
        omitted for leaves.
        """
        d = {}
        if self.name is not None:
            d["name"] = self.name
        if self.accession is not None:
            d["accession"] = self.accession
        if self.taxon_id is not None:
            d["taxonId"] = self.taxon_id
        if self.branch_length is not None:
            d["branchLength"] = self.branch_length
        if self.children:
            d["children"] = [child.id for child in self.children]
        d["depth"] = self.depth
        d["isLeaf"] = self.is_leaf
        return d

    def __repr__(self) -> str:
        fields = [f"id={self.id!r}", f"name={self.name!r}"]
        if self.accession is not None:
            fields.append(f"accession={self.accession!r}")
        if self.taxon_id is not None:
            fields.append(f"taxon_id={self.taxon_id!r}")
        fields.append(f"depth={self.depth}")
        if self.children:
            fields.append(f"children={len(self.children)}")
        return f"FlatNode({', '.join(fields)})"


def _is_collapsible(node) -> bool:
    """True when *node* wraps a single same-named, accession-bearing leaf."""
    if len(node.children) != 1:
        return False
    child = node.children[0]
    return (
        not child.children
        and node.name == child.name
        and bool(child.accession)
    )


class FlatTree:
    """
    A flattened taxonomy tree with O(1) id lookup and array-backed queries.

    Attributes (all read-only after construction)
    ----------------------------------------------
    root        : FlatNode
    root_id     : str
    nodes       : dict[str, FlatNode]   Pre-order.
    n_nodes     : int
    n_leaves    : int
    n_collapsed : int    Wrappers merged by the collapsing rule.
    max_depth   : int

    Arrays are described in the module docstring.
    """

    # ================================================================== #
    # Construction                                                         #
    # ================================================================== #

    def __init__(self, root) -> None:
        """
        Flatten the ParsedNode tree rooted at *root*.

        Parameters
        ----------
        root : ParsedNode
            Root returned by parse_newick().
        """
        self._flatten(root)
        self._build_arrays()

        self.root: FlatNode = self._by_index[0]
        self.root_id: str = self.root.id
        self.n_nodes: int = len(self._by_index)
        self.n_leaves: int = sum(1 for node in self._by_index if node.is_leaf)
        self.max_depth: int = int(np.max(self.depth))

        # Taxon index: built lazily on first taxon-based query.
        self._taxon_index: dict = None  # type: ignore[assignment]

        log_flatten_summary(
            self.n_nodes,
            self.n_leaves,
            self.n_collapsed,
            int(self._accession_prefix[-1]),
            self.max_depth,
        )

    # ================================================================== #
    # Public methods                                                       #
    # ================================================================== #

    def __len__(self) -> int:
        return self.n_nodes

    def __iter__(self):
        return iter(self._by_index)

    def __contains__(self, node_id) -> bool:
        return node_id in self.nodes

    def __getitem__(self, node_id: str) -> FlatNode:
        return self.nodes[node_id]

    def child_ids(self, node) -> list:
        """
        Return the ids of *node*'s children (empty for leaves).

        Parameters
        ----------
        node : FlatNode | str | int   Node, node id or pre-order index.

        Raises
        ------
        KeyError   if *node* is not part of this tree.
        """
        idx = self._resolve_node(node)
        return [child.id for child in self._by_index[idx].children]

    def find_taxon(self, taxon_id: str):
        """
        Return the first node in pre-order whose taxon_id equals *taxon_id*,
        or None.

        Same result as ``extract_subtree_by_taxon_id(tree.root, taxon_id)``;
        O(1) after the taxon index has been built.
        """
        if self._taxon_index is None:
            self._build_taxon_index()
        idx = self._taxon_index.get(taxon_id)
        return None if idx is None else self._by_index[idx]

    def lineage(self, taxon_id: str) -> list:
        """
        Return the root-to-target path for *taxon_id*, or [] if absent.

        Same result as ``extract_lineage_by_taxon_id(tree.root, taxon_id)``;
        walks the parent array, O(depth).
        """
        target = self.find_taxon(taxon_id)
        if target is None:
            return []
        path = []
        idx = target.index
        while idx != -1:
            path.append(self._by_index[idx])
            idx = int(self.parent[idx])
        path.reverse()
        return path

    def count_accessions(self, node=None) -> int:
        """
        Count nodes carrying an accession in the subtree of *node*
        (inclusive); the whole tree when *node* is None.

        O(1) via prefix sums over ``has_accession``.
        """
        idx = 0 if node is None else self._resolve_node(node)
        end = int(self.subtree_end[idx])
        return int(self._accession_prefix[end] - self._accession_prefix[idx])

    def to_node_map(self) -> dict:
        """
        Return ``{id: FlatNode.to_dict()}`` for every node, in pre-order.

        This is the flat node-map shape consumed by tree viewers that fetch
        children by id.
        """
        return {node.id: node.to_dict() for node in self._by_index}

    # ================================================================== #
    # Private helpers                                                      #
    # ================================================================== #

    def _flatten(self, root) -> None:
        """
        **Private.**  Pre-order walk with an explicit stack.

        Children are pushed in reverse so they are popped, numbered and
        appended to their parent in their original order.

        Populates
        ---------
        self._by_index, self.nodes, self.n_collapsed, self._parent_list
        """
        by_index = []
        parent_list = []
        n_collapsed = 0

        stack = [(root, 0, -1)]
        while stack:
            pnode, depth, parent_idx = stack.pop()
            index = len(by_index)

            if _is_collapsible(pnode):
                leaf = pnode.children[0]
                flat = FlatNode(
                    index,
                    pnode.name,
                    leaf.accession,
                    leaf.taxon_id,
                    leaf.branch_length,
                    depth,
                )
                n_collapsed += 1
                children = ()
            else:
                flat = FlatNode(
                    index,
                    pnode.name,
                    pnode.accession,
                    pnode.taxon_id,
                    pnode.branch_length,
                    depth,
                )
                children = pnode.children

            by_index.append(flat)
            parent_list.append(parent_idx)
            if parent_idx != -1:
                by_index[parent_idx].children.append(flat)

            for child in reversed(children):
                stack.append((child, depth + 1, index))

        for flat in by_index:
            flat.children = tuple(flat.children)
            flat._frozen = True

        self._by_index = by_index
        self._parent_list = parent_list
        self.nodes = {flat.id: flat for flat in by_index}
        self.n_collapsed = n_collapsed

    def _build_arrays(self) -> None:
        """
        **Private.**  Build the per-node numpy arrays.

        Populates
        ---------
        self.parent, self.depth, self.subtree_end, self.branch_length,
        self.has_accession, self._accession_prefix
        """
        n = len(self._by_index)
        parent = np.asarray(self._parent_list, dtype=np.int32)
        del self._parent_list

        depth = np.fromiter(
            (node.depth for node in self._by_index), dtype=np.int32, count=n
        )
        branch_length = np.fromiter(
            (
                np.nan if node.branch_length is None else node.branch_length
                for node in self._by_index
            ),
            dtype=np.float64,
            count=n,
        )
        has_accession = np.fromiter(
            (bool(node.accession) for node in self._by_index), dtype=bool, count=n
        )

        # Pre-order: a parent's subtree ends where its last descendant's does.
        # Visiting indices high-to-low settles every child before its parent.
        subtree_end = np.arange(1, n + 1, dtype=np.int32)
        for idx in range(n - 1, 0, -1):
            p = parent[idx]
            if subtree_end[idx] > subtree_end[p]:
                subtree_end[p] = subtree_end[idx]

        accession_prefix = np.zeros(n + 1, dtype=np.int64)
        accession_prefix[1:] = np.cumsum(has_accession, dtype=np.int64)

        self.parent = parent
        self.depth = depth
        self.subtree_end = subtree_end
        self.branch_length = branch_length
        self.has_accession = has_accession
        self._accession_prefix = accession_prefix

    def _resolve_node(self, node) -> int:
        """
        **Private.**  Return the pre-order index for *node*.

        Accepts a FlatNode of this tree, a node id string, or an integer
        index.

        Raises
        ------
        KeyError   if *node* does not belong to this tree.
        """
        if isinstance(node, FlatNode):
            idx = node.index
            if idx < len(self._by_index) and self._by_index[idx] is node:
                return idx
            raise KeyError(f"Node {node.id!r} does not belong to this tree.")
        if isinstance(node, (int, np.integer)):
            idx = int(node)
            if 0 <= idx < len(self._by_index):
                return idx
            raise KeyError(f"No node with index {idx} in tree.")
        if node not in self.nodes:
            raise KeyError(f"No node with id '{node}' found in tree.")
        return self.nodes[node].index

    def _build_taxon_index(self) -> None:
        """
        **Private.**  Build ``self._taxon_index``: taxon id -> index of its
        first node in pre-order.  Later duplicates are ignored, matching the
        first-match rule of the generic query functions.
        """
        idx = {}
        for node in self._by_index:
            if node.taxon_id is not None and node.taxon_id not in idx:
                idx[node.taxon_id] = node.index
        self._taxon_index = idx


def flatten(root) -> FlatTree:
    """
    Flatten a parsed tree.

    Parameters
    ----------
    root : ParsedNode

    Returns
    -------
    FlatTree
        ``flatten(root).root_id`` is the id of the root node.
    """
    return FlatTree(root)


def load_tree(newick_string: str, strict: bool = False) -> FlatTree:
    """
    Parse and flatten *newick_string*.

    Raises
    ------
    EmptyNewickError
        If the text is empty.
    MalformedNewickError
        Only when *strict* is True.
    """
    return FlatTree(parse_newick(newick_string, strict=strict))
