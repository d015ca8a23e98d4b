"""
Working tree path containment.

Working tree paths arrive from the editor as repository-relative strings.
They are joined onto the repository root and must stay inside it.
"""

from __future__ import annotations

from pathlib import Path

from repotree.core.result import Err, Ok, Result, WorkingTreeError


def resolve_working_path(
    root: Path, path: str | Path, *, follow_symlinks: bool = False
) -> Result[Path, WorkingTreeError]:
    """Join ``path`` onto ``root`` and reject anything that lands outside it.

    By default a symlink in the final component is not followed, so the link
    itself can be removed. With ``follow_symlinks`` the final component is
    resolved too and must also stay inside the root.

    Returns:
        Ok(absolute_path) when contained, Err(WorkingTreeError) otherwise
    """
    relative = Path(path)
    if not str(path) or relative.is_absolute() or relative.name == "..":
        return Err(
            WorkingTreeError(
                "Working tree path must name a file relative to the repository root",
                context={"path": str(path)},
            )
        )

    root = root.resolve()
    candidate = root / relative
    try:
        parent = candidate.parent.resolve()
    except OSError as exc:
        return Err(
            WorkingTreeError(
                f"Cannot resolve working tree path: {exc}", context={"path": str(path)}
            )
        )

    target = parent / candidate.name
    match _check_contained(root, target, path):
        case Err(err):
            return Err(err)
    if follow_symlinks and target.is_symlink():
        try:
            resolved = target.resolve()
        except OSError as exc:
            return Err(
                WorkingTreeError(
                    f"Cannot resolve working tree path: {exc}", context={"path": str(path)}
                )
            )
        return _check_contained(root, resolved, path)
    return Ok(target)


def _check_contained(root: Path, target: Path, path: str | Path) -> Result[Path, WorkingTreeError]:
    if target == root or root not in target.parents:
        return Err(
            WorkingTreeError(
                "Working tree path escapes the repository root",
                context={"path": str(path), "root": str(root)},
            )
        )
    if ".git" in target.relative_to(root).parts[:1]:
        return Err(
            WorkingTreeError(
                "Working tree path points into the git directory",
                context={"path": str(path)},
            )
        )
    return Ok(target)


__all__ = ["resolve_working_path"]
