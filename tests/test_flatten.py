"""
tests/test_flatten.py
=====================
Pytest test suite for flatten() / FlatTree.

Tree fixtures
-------------
  primates.newick  (flattened; ids are pre-order)

      node_0  Catarrhini{9526}            depth 0
      node_1    Hominidae{9604}           depth 1
      node_2      Homininae{207598}:0.15  depth 2
      node_3        Homo sapiens *        depth 3   GCF_000001405.40|9606 :0.07
      node_4        Pan{9596}:0.2         depth 3
      node_5          Pan troglodytes     depth 4   GCF_028858775.2|9598 :0.05
      node_6          Pan paniscus        depth 4   GCF_029289425.2|9597 :0.06
      node_7      Gorilla gorilla         depth 2   GCF_029281585.2|9595 :0.3
      node_8    Macaca mulatta *          depth 1   GCF_003339765.1|9544 :0.4

  * collapsed species wrapper: the wrapper's ':0.1' / ':0.5' is replaced by
    the leaf's length.
"""

import logging
import os
import sys

import numpy as np
import pytest

_TREES_DIR = os.path.join(os.path.dirname(__file__), "trees")

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from taxotree._context import quiet, suppress_logger
from taxotree._flatten import FlatNode, FlatTree, flatten, load_tree
from taxotree._newick import EmptyNewickError, MalformedNewickError, parse_newick


# ======================================================================== #
# Helper                                                                    #
# ======================================================================== #


def read_tree(filename: str) -> str:
    with open(os.path.join(_TREES_DIR, filename), encoding="utf-8") as fh:
        return fh.read()


def names(nodes) -> list:
    return [node.name for node in nodes]


# ======================================================================== #
# Fixtures                                                                  #
# ======================================================================== #


@pytest.fixture(scope="module")
def primates():
    return load_tree(read_tree("primates.newick"))


# ======================================================================== #
# 1. Collapsing rule                                                        #
# ======================================================================== #


class TestCollapse:
    def test_same_name_wrapper_collapses(self):
        tree = load_tree("(Homo[HS1])Homo;")
        assert tree.n_nodes == 1
        node = tree.root
        assert node.id == "node_0"
        assert node.name == "Homo"
        assert node.accession == "HS1"
        assert node.depth == 0
        assert node.is_leaf
        assert node.children == ()
        assert tree.n_collapsed == 1

    def test_different_names_not_collapsed(self):
        tree = load_tree("(Child[ACC])Parent;")
        assert tree.n_nodes == 2
        parent, child = tree.root, tree.root.children[0]
        assert parent.name == "Parent"
        assert not parent.is_leaf
        assert len(parent.children) == 1
        assert parent.accession is None
        assert child.name == "Child"
        assert child.accession == "ACC"
        assert child.is_leaf
        assert tree.n_collapsed == 0

    def test_leaf_without_accession_not_collapsed(self):
        tree = load_tree("(Homo)Homo;")
        assert tree.n_nodes == 2

    def test_two_children_not_collapsed(self):
        tree = load_tree("(Homo[HS1],Homo[HS2])Homo;")
        assert tree.n_nodes == 3

    def test_grandchild_not_collapsed(self):
        tree = load_tree("((Homo[HS1],X)Homo)Homo;")
        assert tree.n_nodes == 4
        assert tree.n_collapsed == 0

    def test_takes_leaf_fields(self):
        tree = load_tree("(Homo[HS1|9606]:0.25)Homo{207598}:9;")
        node = tree.root
        assert node.accession == "HS1"
        assert node.taxon_id == "9606"
        assert node.branch_length == 0.25

    def test_leaf_without_length_clears_wrapper_length(self):
        tree = load_tree("((Homo[HS1])Homo:0.5,X);")
        assert tree.root.children[0].branch_length is None

    def test_single_level_only(self):
        tree = load_tree("((Homo[HS1])Homo)Homo;")
        assert tree.n_nodes == 2
        outer = tree.root
        (inner,) = outer.children
        assert not outer.is_leaf
        assert outer.accession is None
        assert inner.id == "node_1"
        assert inner.depth == 1
        assert inner.is_leaf
        assert inner.accession == "HS1"

    def test_primates_collapsed_nodes(self, primates):
        homo = primates["node_3"]
        macaca = primates["node_8"]
        assert (homo.name, homo.accession, homo.taxon_id) == (
            "Homo sapiens",
            "GCF_000001405.40",
            "9606",
        )
        assert homo.branch_length == 0.07
        assert macaca.branch_length == 0.4
        assert homo.is_leaf and macaca.is_leaf
        assert primates.n_collapsed == 2


# ======================================================================== #
# 2. Ids and structure                                                      #
# ======================================================================== #


class TestStructure:
    def test_ids_are_preorder(self, primates):
        assert list(primates.nodes) == [f"node_{k}" for k in range(9)]
        assert names(primates) == [
            "Catarrhini",
            "Hominidae",
            "Homininae",
            "Homo sapiens",
            "Pan",
            "Pan troglodytes",
            "Pan paniscus",
            "Gorilla gorilla",
            "Macaca mulatta",
        ]

    def test_index_matches_id(self, primates):
        for k, node in enumerate(primates):
            assert node.index == k
            assert node.id == f"node_{k}"

    def test_root(self, primates):
        assert primates.root_id == "node_0"
        assert primates.root is primates["node_0"]
        assert flatten(parse_newick("(A,B)R;")).root_id == "node_0"

    def test_scalar_properties(self, primates):
        assert len(primates) == primates.n_nodes == 9
        assert primates.n_leaves == 5
        assert primates.max_depth == 4

    def test_depths(self, primates):
        assert [node.depth for node in primates] == [0, 1, 2, 3, 3, 4, 4, 2, 1]

    def test_is_leaf(self, primates):
        leaves = [node.id for node in primates if node.is_leaf]
        assert leaves == ["node_3", "node_5", "node_6", "node_7", "node_8"]

    def test_no_dangling_children(self, primates):
        seen = set()
        for node in primates:
            for child_id in primates.child_ids(node):
                assert child_id in primates
                assert primates[child_id].depth == node.depth + 1
                seen.add(child_id)
        assert seen == set(primates.nodes) - {primates.root_id}

    def test_nested_and_flat_forms_agree(self, primates):
        for node in primates:
            assert [c.id for c in node.children] == primates.child_ids(node.id)

    def test_children_are_tuples(self, primates):
        assert all(isinstance(node.children, tuple) for node in primates)

    @pytest.mark.parametrize(
        "attr, value",
        [("name", "Pongo"), ("children", ()), ("taxon_id", "0"), ("depth", 7)],
    )
    def test_nodes_are_read_only(self, attr, value):
        tree = load_tree(read_tree("primates.newick"))
        node = tree["node_4"]
        before = getattr(node, attr)
        with pytest.raises(AttributeError):
            setattr(node, attr, value)
        assert getattr(node, attr) == before
        assert tree.child_ids("node_4") == ["node_5", "node_6"]

    def test_child_ids_accepts_node_id_and_index(self, primates):
        expected = ["node_5", "node_6"]
        assert primates.child_ids("node_4") == expected
        assert primates.child_ids(4) == expected
        assert primates.child_ids(primates["node_4"]) == expected
        assert primates.child_ids("node_7") == []

    def test_child_ids_rejects_foreign_nodes(self, primates):
        other = load_tree("(A,B)R;")
        with pytest.raises(KeyError):
            primates.child_ids(other.root.children[0])
        with pytest.raises(KeyError):
            primates.child_ids("node_99")
        with pytest.raises(KeyError):
            primates.child_ids(99)

    def test_fresh_objects_per_flatten(self):
        text = read_tree("primates.newick")
        a, b = load_tree(text), load_tree(text)
        assert a.root is not b.root
        assert list(a.nodes) == list(b.nodes)

    def test_multifurcation_order(self):
        tree = load_tree("(A,B,C,D)R;")
        assert names(tree.root.children) == ["A", "B", "C", "D"]

    def test_load_tree_errors(self):
        with pytest.raises(EmptyNewickError):
            load_tree(" ; ")
        with pytest.raises(MalformedNewickError):
            load_tree("((A,B)", strict=True)
        assert load_tree("((A,B)").n_nodes == 4


# ======================================================================== #
# 3. Arrays                                                                 #
# ======================================================================== #


class TestArrays:
    def test_parent(self, primates):
        np.testing.assert_array_equal(
            primates.parent, [-1, 0, 1, 2, 2, 4, 4, 1, 0]
        )
        assert primates.parent.dtype == np.int32

    def test_depth(self, primates):
        np.testing.assert_array_equal(primates.depth, [0, 1, 2, 3, 3, 4, 4, 2, 1])

    def test_subtree_end(self, primates):
        np.testing.assert_array_equal(
            primates.subtree_end, [9, 8, 7, 4, 7, 6, 7, 8, 9]
        )

    def test_branch_length(self, primates):
        np.testing.assert_allclose(
            primates.branch_length,
            [np.nan, np.nan, 0.15, 0.07, 0.2, 0.05, 0.06, 0.3, 0.4],
        )

    def test_has_accession(self, primates):
        np.testing.assert_array_equal(
            primates.has_accession,
            [False, False, False, True, False, True, True, True, True],
        )


# ======================================================================== #
# 4. Node map export                                                        #
# ======================================================================== #


class TestNodeMap:
    def test_small_tree(self):
        tree = load_tree("(Child[ACC]:1.5)Parent;")
        assert tree.to_node_map() == {
            "node_0": {
                "name": "Parent",
                "children": ["node_1"],
                "depth": 0,
                "isLeaf": False,
            },
            "node_1": {
                "name": "Child",
                "accession": "ACC",
                "branchLength": 1.5,
                "depth": 1,
                "isLeaf": True,
            },
        }

    def test_primates_order_and_taxon_ids(self, primates):
        node_map = primates.to_node_map()
        assert list(node_map) == list(primates.nodes)
        assert node_map["node_4"]["taxonId"] == "9596"
        assert node_map["node_4"]["children"] == ["node_5", "node_6"]
        assert "children" not in node_map["node_3"]

    def test_unnamed_node_has_no_name_key(self):
        node_map = load_tree("(A,B);").to_node_map()
        assert "name" not in node_map["node_0"]

    def test_repr(self, primates):
        assert repr(primates["node_4"]) == (
            "FlatNode(id='node_4', name='Pan', taxon_id='9596', depth=3, children=2)"
        )
        assert isinstance(primates.root, FlatNode)


# ======================================================================== #
# 5. Logging                                                                #
# ======================================================================== #


class TestLogging:
    def test_flatten_summary(self, caplog):
        with caplog.at_level(logging.INFO, logger="taxotree"):
            load_tree(read_tree("primates.newick"))
        messages = [r.getMessage() for r in caplog.records]
        assert (
            "Flattened tree: 9 nodes, 5 leaves, 5 accessions, max depth 4" in messages
        )
        assert any("Collapsed 2" in m for m in messages)

    def test_no_collapse_line_without_collapses(self, caplog):
        with caplog.at_level(logging.INFO, logger="taxotree"):
            load_tree("(A,B);")
        assert not any("Collapsed" in r.getMessage() for r in caplog.records)

    def test_quiet_silences_package(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="taxotree"):
            with quiet():
                load_tree(read_tree("primates.newick"))
            assert caplog.records == []
            assert logging.getLogger("taxotree").level == logging.DEBUG

    def test_suppress_logger_restores_level(self):
        logger = logging.getLogger("taxotree._logging")
        before = logger.level
        with pytest.raises(RuntimeError):
            with suppress_logger("taxotree._logging", logging.ERROR):
                assert logger.level == logging.ERROR
                raise RuntimeError("boom")
        assert logger.level == before


# ======================================================================== #
# 6. Deep trees                                                             #
# ======================================================================== #


@pytest.mark.deep
def test_deep_chain_flattens():
    depth = 20_000
    tree = load_tree("(" * depth + "A[acc|1]" + ")" * depth + ";")
    assert tree.n_nodes == depth + 1
    assert tree.max_depth == depth
    assert tree.n_leaves == 1
    assert tree.subtree_end[0] == depth + 1
    assert tree[f"node_{depth}"].accession == "acc"
