"""Value types shared by the git accessor and its higher-level operations."""

from __future__ import annotations

from dataclasses import dataclass

NOTHING_TO_COMMIT = "Nothing to commit."

# git status wording for a clean tree; older releases said "directory".
CLEAN_TREE_MARKERS = (
    "nothing to commit, working tree clean",
    "nothing to commit, working directory clean",
)


@dataclass(frozen=True, slots=True)
class TreeEntry:
    """One child of a listed directory at a given revision.

    ``name`` is relative to the queried directory. ``size`` is the blob
    length in bytes and ``None`` for trees and submodule commits.
    """

    name: str
    entry_type: str
    content_hash: str
    size: int | None = None

    @property
    def is_tree(self) -> bool:
        return self.entry_type == "tree"


@dataclass(frozen=True, slots=True)
class CommitAuthor:
    name: str
    email: str

    def as_env(self) -> dict[str, str]:
        """Identity overrides so the host account's git identity is never used."""
        return {
            "GIT_AUTHOR_NAME": self.name,
            "GIT_AUTHOR_EMAIL": self.email,
            "GIT_COMMITTER_NAME": self.name,
            "GIT_COMMITTER_EMAIL": self.email,
        }


@dataclass(frozen=True, slots=True)
class CommitOutcome:
    """Result of a commit request.

    ``committed`` is False when the working tree had no changes; ``output``
    is then ``NOTHING_TO_COMMIT``. Otherwise ``output`` is git's commit
    summary. The new revision hash is not included; resolve head again.
    """

    committed: bool
    output: str

    @classmethod
    def nothing(cls) -> CommitOutcome:
        return cls(committed=False, output=NOTHING_TO_COMMIT)


__all__ = [
    "CLEAN_TREE_MARKERS",
    "NOTHING_TO_COMMIT",
    "CommitAuthor",
    "CommitOutcome",
    "TreeEntry",
]
