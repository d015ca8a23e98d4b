"""Git repository access for editing applications.

This package provides async git operations:
    - RepositoryAccessor: head resolution, tree listing, blob reads
    - Working tree writes, deletes and reset
    - Authored commits of the whole working tree
"""

from __future__ import annotations

from .client import RepositoryAccessor, parse_ls_tree
from .ops import commit_all, walk_tree
from .types import NOTHING_TO_COMMIT, CommitAuthor, CommitOutcome, TreeEntry

__all__ = [
    "NOTHING_TO_COMMIT",
    "CommitAuthor",
    "CommitOutcome",
    "RepositoryAccessor",
    "TreeEntry",
    "commit_all",
    "parse_ls_tree",
    "walk_tree",
]
