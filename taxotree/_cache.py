"""
_cache.py
=========
Per-category memoization of flattened taxonomy trees.

Public API
----------
  TreeCache(loader, strict=False)
      .get_tree(category)        -> FlatTree | None
      .get_cached_tree(category) -> FlatNode | None   (root of get_tree)
      .invalidate(category), .clear()
      .n_loads                   -> int   (loader calls so far)

  DirectoryLoader(root, suffix='.newick', encoding='utf-8-sig')
      Loader reading ``<root>/<category><suffix>``.

Lifetime
--------
There is no module-level cache.  Construct one TreeCache at application
start-up and pass it to the code that needs trees; entries live as long as
the cache object unless invalidated.  There is no eviction.

Failures
--------
A loader signals an unreadable source by raising OSError (or
UnicodeDecodeError).  Read and parse failures are logged at ERROR level
and reported as None.  Nothing is stored for a failed category, so the next
call retries the load.  The per-category lock of a failed load is
dropped with it, as it is by invalidate() and clear().

Thread safety
-------------
Hits are lock-free dict reads.  Misses take a per-category lock and
re-check before loading, so concurrent callers asking for the same category
trigger a single load while different categories load in parallel.
"""

import threading
import time
from pathlib import Path
from typing import Callable, Optional

from taxotree._flatten import FlatNode, FlatTree, load_tree
from taxotree._logging import log_cache_failure, log_cache_hit, log_cache_load
from taxotree._newick import NewickError


class DirectoryLoader:
    """
    Read NEWICK text for a category from a directory of files.

    Parameters
    ----------
    root : str | Path
        Directory holding one file per category.
    suffix : str, default '.newick'
    encoding : str, default 'utf-8-sig'
        The default also accepts UTF-8 files that start with a byte-order
        mark.

    Examples
    --------
    >>> loader = DirectoryLoader('public/taxonomy')
    >>> loader.path_for('primates')
    PosixPath('public/taxonomy/primates.newick')
    """

    def __init__(self, root, suffix: str = ".newick", encoding: str = "utf-8-sig"):
        self.root = Path(root)
        self.suffix = suffix
        self.encoding = encoding

    def path_for(self, category: str) -> Path:
        return self.root / f"{category}{self.suffix}"

    def __call__(self, category: str) -> str:
        """
        Return the file contents for *category*.

        Raises
        ------
        FileNotFoundError
            If the file is missing or *category* is not a plain file stem
            (path separators and '..' are refused).
        OSError
            For any other read failure.
        """
        if not category or Path(category).name != category or category == "..":
            raise FileNotFoundError(f"Invalid category name: {category!r}")
        return self.path_for(category).read_text(encoding=self.encoding)

    def __repr__(self) -> str:
        return f"DirectoryLoader({str(self.root)!r}, suffix={self.suffix!r})"


class TreeCache:
    """
    Memoize load + parse + flatten per category.

    Parameters
    ----------
    loader : callable(str) -> str
        Returns NEWICK text for a category; raises OSError on failure.
    strict : bool, default False
        Passed to parse_newick().
    """

    def __init__(self, loader: Callable[[str], str], strict: bool = False) -> None:
        self._loader = loader
        self._strict = strict
        self._trees = {}
        self._locks = {}
        self._locks_guard = threading.Lock()
        self.n_loads = 0

    # ================================================================== #
    # Public methods                                                       #
    # ================================================================== #

    def get_tree(self, category: str) -> Optional[FlatTree]:
        """
        Return the flattened tree for *category*, loading it on first use.

        Returns None when the source cannot be read or parsed.
        """
        tree = self._trees.get(category)
        if tree is not None:
            log_cache_hit(category)
            return tree

        with self._lock_for(category):
            tree = self._trees.get(category)
            if tree is not None:
                log_cache_hit(category)
                return tree
            return self._load(category)

    def get_cached_tree(self, category: str) -> Optional[FlatNode]:
        """Return the root FlatNode for *category*, or None on failure."""
        tree = self.get_tree(category)
        return None if tree is None else tree.root

    def invalidate(self, category: str) -> bool:
        """
        Drop the entry and lock for *category*.  Returns True if an entry
        was cached.
        """
        with self._lock_for(category):
            removed = self._trees.pop(category, None) is not None
        self._drop_lock(category)
        return removed

    def clear(self) -> None:
        """Drop every entry and every per-category lock."""
        with self._locks_guard:
            self._trees.clear()
            self._locks.clear()

    def categories(self) -> list:
        """Cached category names, in load order."""
        return list(self._trees)

    def __contains__(self, category) -> bool:
        return category in self._trees

    def __len__(self) -> int:
        return len(self._trees)

    def __repr__(self) -> str:
        return f"TreeCache(loader={self._loader!r}, cached={len(self._trees)})"

    # ================================================================== #
    # Private helpers                                                      #
    # ================================================================== #

    def _lock_for(self, category: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(category)
            if lock is None:
                lock = self._locks[category] = threading.Lock()
            return lock

    def _drop_lock(self, category: str) -> None:
        with self._locks_guard:
            self._locks.pop(category, None)

    def _load(self, category: str) -> Optional[FlatTree]:
        """**Private.**  Load, parse, flatten and store; caller holds the lock."""
        start = time.perf_counter()
        with self._locks_guard:
            self.n_loads += 1
        try:
            text = self._loader(category)
        except (OSError, UnicodeDecodeError) as e:
            log_cache_failure(category, "read", e)
            self._drop_lock(category)
            return None

        try:
            tree = load_tree(text, strict=self._strict)
        except NewickError as e:
            log_cache_failure(category, "parse", e)
            self._drop_lock(category)
            return None

        self._trees[category] = tree
        log_cache_load(category, tree.n_nodes, time.perf_counter() - start)
        return tree
