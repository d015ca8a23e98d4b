from __future__ import annotations

import asyncio
import os
from collections.abc import Mapping
from contextlib import AbstractAsyncContextManager, nullcontext
from pathlib import Path

from repotree.core.config import RepositoryConfig
from repotree.core.console import get_logger
from repotree.core.result import (
    Err,
    GitFault,
    InvalidOutputError,
    Ok,
    PathMismatchError,
    Result,
    WorkingTreeError,
    try_result,
)
from repotree.core.security import resolve_working_path

from . import ops
from .types import CommitAuthor, CommitOutcome, TreeEntry

logger = get_logger(__name__)


async def _run_git(
    cwd: Path,
    *args: str,
    env: Mapping[str, str] | None = None,
    executable: str = "git",
) -> Result[str, GitFault]:
    """Run git once in ``cwd`` and return its stdout as text, wrapping failures.

    ``env`` is layered over the inherited environment. Stdout is decoded as
    UTF-8 with replacement, so binary blobs do not survive intact.
    """
    if not cwd.exists():
        return Err(GitFault("Repository path does not exist", context={"cwd": str(cwd)}))

    process_env = {**os.environ, **env} if env else None
    logger.debug("git %s (cwd=%s)", " ".join(args), cwd)

    try:
        process = await asyncio.create_subprocess_exec(
            executable,
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            stdin=asyncio.subprocess.DEVNULL,
            cwd=cwd,
            env=process_env,
        )
    except FileNotFoundError:
        return Err(
            GitFault(f"{executable} executable not found on PATH", context={"cwd": str(cwd)})
        )
    except OSError as exc:
        return Err(
            GitFault(
                "Failed to start git",
                context={"cwd": str(cwd), "args": list(args), "error": str(exc)},
            )
        )

    stdout, stderr = await process.communicate()
    output = stdout.decode("utf-8", errors="replace")
    if process.returncode != 0:
        stderr_text = stderr.decode("utf-8", errors="replace").strip()
        logger.debug("git %s failed: %s", args[0] if args else "", stderr_text)
        return Err(
            GitFault(
                "git returned non-zero exit status",
                context={
                    "cwd": str(cwd),
                    "args": list(args),
                    "returncode": process.returncode,
                    "output": output,
                    "stderr": stderr_text,
                },
            )
        )

    return Ok(output)


def parse_ls_tree(output: str, prefix: str = "") -> list[TreeEntry]:
    """Parse ``git ls-tree -lz`` output into entries relative to ``prefix``.

    Each NUL-terminated record is ``<mode> SP <type> SP <hash> SP+ <size> TAB <name>``.
    """
    entries: list[TreeEntry] = []
    for record in output.split("\0"):
        if not record:
            continue

        meta, tab, filename = record.partition("\t")
        fields = meta.split()
        if not tab or len(fields) != 4:
            raise InvalidOutputError("invalid git ls-tree output", context={"record": record})
        _mode, entry_type, content_hash, size = fields

        if prefix:
            if not filename.startswith(prefix):
                raise PathMismatchError(
                    "ls-tree entry is outside the listed directory",
                    context={"prefix": prefix, "name": filename},
                )
            filename = filename[len(prefix) :]

        try:
            size_value = None if size == "-" else int(size)
        except ValueError as exc:
            raise InvalidOutputError(
                "invalid git ls-tree size", context={"record": record}
            ) from exc

        entries.append(
            TreeEntry(
                name=filename,
                entry_type=entry_type,
                content_hash=content_hash,
                size=size_value,
            )
        )
    return entries


class RepositoryAccessor:
    """Async accessor for one git repository, built on subprocess plumbing.

    Read operations and reset/commit raise ``InfrastructureFault`` subclasses
    when git fails or answers in an unexpected shape. Writing a working tree
    file is the one operation that reports failure as a value.

    With ``serialize_mutations`` enabled (the default), reset, write, delete
    and commit on the same accessor run one at a time. Reads are never
    serialized, and separate accessors on one root do not coordinate.
    """

    def __init__(self, config: RepositoryConfig) -> None:
        self._config = config
        self._mutation_lock = asyncio.Lock() if config.serialize_mutations else None

    @classmethod
    def from_path(cls, root: Path | str, branch: str = "master") -> RepositoryAccessor:
        config = RepositoryConfig.model_construct(
            repo_root=Path(root).expanduser().resolve(), branch=branch
        )
        return cls(config)

    @property
    def config(self) -> RepositoryConfig:
        return self._config

    @property
    def root(self) -> Path:
        return self._config.repo_root

    @property
    def branch(self) -> str:
        return self._config.branch

    def _mutating(self) -> AbstractAsyncContextManager[object]:
        if self._mutation_lock is None:
            return nullcontext()
        return self._mutation_lock

    async def run_git(
        self, *args: str, env: Mapping[str, str] | None = None
    ) -> Result[str, GitFault]:
        """Public wrapper around git subprocess execution."""
        return await _run_git(self.root, *args, env=env, executable=self._config.git_executable)

    async def _git(self, *args: str, env: Mapping[str, str] | None = None) -> str:
        return (await self.run_git(*args, env=env)).unwrap()

    async def get_repository_head(self) -> str:
        """Return the revision hash the configured branch points at."""
        output = await self._git("show", self.branch)
        first_line = output.split("\n")[0].split(" ")
        if first_line[0] != "commit" or len(first_line) < 2:
            raise InvalidOutputError(
                "invalid git output", context={"ref": self.branch, "line": first_line[0]}
            )
        return first_line[1]

    async def ls(
        self, revision: str, path: str | None = None, recursive: bool = False
    ) -> list[TreeEntry]:
        """List a directory at ``revision``; ``None`` or ``""`` lists the root.

        Names are relative to ``path``. A recursive listing flattens the
        tree to its files, so subdirectories show up only through the
        names of the files inside them.
        """
        # A trailing slash makes ls-tree list the directory contents, not the entry.
        prefix = path or ""
        if prefix and not prefix.endswith("/"):
            prefix += "/"

        args = ["ls-tree", "-lzr" if recursive else "-lz", revision]
        if prefix:
            args.append(prefix)

        entries = parse_ls_tree(await self._git(*args), prefix)
        logger.debug("ls %s:%s -> %d entries", revision, prefix, len(entries))
        return entries

    async def cat_hash(self, content_hash: str) -> str:
        """Return the content of a blob given its hash."""
        return await self._git("show", content_hash)

    async def cat(self, revision: str, path: str) -> str:
        """Return the content of ``path`` as of ``revision``."""
        return await self._git("show", f"{revision}:{path}")

    async def clean_working_tree(self) -> None:
        """Discard every uncommitted change (``git reset --hard``)."""
        async with self._mutating():
            await self._git("reset", "--hard")

    async def write_working_tree_path(
        self, path: str | Path, content: str | bytes
    ) -> Result[None, WorkingTreeError]:
        """Write ``content`` to a working tree file, creating parent directories.

        Text is written as UTF-8 without newline translation. Filesystem
        errors come back as ``Err(WorkingTreeError)``.
        """

        def _store(target: Path) -> Result[None, WorkingTreeError]:
            def _put() -> None:
                target.parent.mkdir(parents=True, exist_ok=True)
                if isinstance(content, bytes):
                    target.write_bytes(content)
                else:
                    target.write_text(content, encoding="utf-8", newline="")

            return try_result(_put, OSError).map_err(
                lambda exc: WorkingTreeError(
                    f"Failed to write {path}: {exc}", context={"path": str(path)}
                )
            )

        def _write() -> Result[None, WorkingTreeError]:
            return resolve_working_path(self.root, path, follow_symlinks=True).and_then(_store)

        async with self._mutating():
            result = await asyncio.to_thread(_write)

        match result:
            case Err(err):
                logger.debug("write %s failed: %s", path, err)
        return result

    async def delete_working_tree_path(self, path: str | Path) -> None:
        """Remove a working tree file on a best-effort basis.

        Failures (missing file, permissions, a path outside the tree) are
        logged and dropped; the call always completes as if it succeeded.
        """

        def _best_effort_unlink() -> None:
            match resolve_working_path(self.root, path):
                case Err(err):
                    logger.warning("Ignoring delete of %s: %s", path, err)
                case Ok(target):
                    try:
                        target.unlink()
                    except OSError as exc:
                        logger.warning("Ignoring failed delete of %s: %s", path, exc)

        async with self._mutating():
            await asyncio.to_thread(_best_effort_unlink)

    async def commit(self, message: str, author_name: str, author_email: str) -> CommitOutcome:
        """Stage everything and commit it as ``author_name <author_email>``.

        Returns ``CommitOutcome.nothing()`` when there was nothing to commit.
        """
        author = CommitAuthor(name=author_name, email=author_email)
        async with self._mutating():
            result = await ops.commit_all(self, message, author)
        return result.unwrap()


__all__ = [
    "RepositoryAccessor",
    "parse_ls_tree",
]
