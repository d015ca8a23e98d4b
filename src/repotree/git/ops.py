"""High-level git operations.

Provides workflows composed from accessor primitives:
    - Commit pipeline (stage, status check, authored commit)
    - Tree walking by repeated non-recursive listing
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from repotree.core.console import get_logger
from repotree.core.result import Err, GitFault, Ok, Result

from .types import CLEAN_TREE_MARKERS, CommitAuthor, CommitOutcome, TreeEntry

if TYPE_CHECKING:
    from .client import RepositoryAccessor

logger = get_logger(__name__)


def is_clean_status(status_output: str) -> bool:
    return any(marker in status_output for marker in CLEAN_TREE_MARKERS)


async def commit_all(
    repo: RepositoryAccessor, message: str, author: CommitAuthor
) -> Result[CommitOutcome, GitFault]:
    """
    Stage all changes and commit them with a forced author/committer identity.
    Stops at the status check when the tree is clean.
    """
    match await repo.run_git("add", "-A"):
        case Err(err):
            return Err(err)
        case Ok(_):
            pass

    match await repo.run_git("status"):
        case Err(err):
            return Err(err)
        case Ok(status_output):
            if is_clean_status(status_output):
                logger.info("Nothing to commit in %s", repo.root)
                return Ok(CommitOutcome.nothing())

    match await repo.run_git("commit", "-m", message, env=author.as_env()):
        case Err(err):
            return Err(err)
        case Ok(output):
            logger.info("Committed to %s as %s <%s>", repo.root, author.name, author.email)
            return Ok(CommitOutcome(committed=True, output=output))


async def walk_tree(
    repo: RepositoryAccessor, revision: str, path: str | None = None
) -> list[TreeEntry]:
    """List every non-tree entry below ``path`` by descending into subtrees.

    Yields the same entries as ``repo.ls(revision, path, recursive=True)``,
    one directory listing at a time.
    """
    found: list[TreeEntry] = []
    pending: list[str] = [""]
    base = (path or "").rstrip("/")

    while pending:
        relative = pending.pop()
        query = "/".join(part for part in (base, relative) if part)
        for entry in await repo.ls(revision, query or None):
            name = f"{relative}/{entry.name}" if relative else entry.name
            if entry.is_tree:
                pending.append(name)
            else:
                found.append(replace(entry, name=name))
    return found


__all__ = ["commit_all", "is_clean_status", "walk_tree"]
