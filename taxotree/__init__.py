"""
taxotree
========

NEWICK taxonomy trees for genome-assembly browsers: a lenient parser for
accession- and taxon-annotated NEWICK, a flattener that turns the parsed
tree into an addressable, lazily expandable node structure, and taxon-id
lookups over the result.

Main Classes
------------
FlatTree : Flattened tree with id lookup and array-backed queries
FlatNode : One read-only node of a FlatTree
ParsedNode : Transient node produced by the parser
TreeCache : Per-category memoization of flattened trees
DirectoryLoader : Loader reading one NEWICK file per category
Expansion : Expand/collapse state for browsing a FlatTree

Functions
---------
parse_newick : Parse NEWICK text into a ParsedNode tree
flatten : Flatten a ParsedNode tree into a FlatTree
load_tree : parse_newick + flatten
extract_subtree_by_taxon_id : First node carrying a taxon id
extract_lineage_by_taxon_id : Root-to-node path for a taxon id
count_accessions : Number of accession-bearing nodes in a subtree

Context Managers
----------------
quiet : Suppress taxotree logging
suppress_logger : Suppress a specific logger

Examples
--------
Parsing and querying:

>>> from taxotree import load_tree, extract_lineage_by_taxon_id
>>> tree = load_tree('((Homo sapiens[GCF_000001405.40|9606])Homo sapiens,'
...                  'Pan troglodytes[GCF_028858775.2|9598])Hominidae{9604};')
>>> tree.root.name, tree.root.taxon_id
('Hominidae', '9604')
>>> [n.name for n in extract_lineage_by_taxon_id(tree.root, '9606')]
['Hominidae', 'Homo sapiens']

Caching per category:

>>> from taxotree import TreeCache, DirectoryLoader
>>> cache = TreeCache(DirectoryLoader('public/taxonomy'))
>>> root = cache.get_cached_tree('primates')   # None if unreadable
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Main classes
from ._newick import (
    ParsedNode,
    NewickError,
    EmptyNewickError,
    MalformedNewickError,
    parse_newick,
    split_label,
)
from ._flatten import FlatNode, FlatTree, flatten, load_tree
from ._queries import (
    extract_subtree_by_taxon_id,
    extract_lineage_by_taxon_id,
    count_accessions,
)
from ._cache import TreeCache, DirectoryLoader
from ._expansion import Expansion

# Context managers (user-facing utilities)
from ._context import suppress_logger, quiet

# Utilities
from ._utils import clean_newick, parse_number_prefix

# Public API
__all__ = [
    # Parsing
    "ParsedNode",
    "NewickError",
    "EmptyNewickError",
    "MalformedNewickError",
    "parse_newick",
    "split_label",
    # Flattening
    "FlatNode",
    "FlatTree",
    "flatten",
    "load_tree",
    # Queries
    "extract_subtree_by_taxon_id",
    "extract_lineage_by_taxon_id",
    "count_accessions",
    # Cache
    "TreeCache",
    "DirectoryLoader",
    # Expansion
    "Expansion",
    # Context managers
    "suppress_logger",
    "quiet",
    # Utilities
    "clean_newick",
    "parse_number_prefix",
    # Version info
    "__version__",
]
