from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from repotree.git import RepositoryAccessor  # noqa: E402

README_TEXT = "Project readme, padded to exactly fifty bytes....\n"


def git(path: Path, *args: str) -> str:
    """Run git directly for fixture setup and assertions (not the code under test)."""
    proc = subprocess.run(["git", *args], cwd=path, check=True, capture_output=True, text=True)
    return proc.stdout


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def isolate_config(tmp_path: Path, monkeypatch: Any) -> Path:
    """Point config to a temp path and drop REPOTREE_* overrides from the host."""
    for key in list(os.environ):
        if key.startswith("REPOTREE_"):
            monkeypatch.delenv(key)
    cfg_path = tmp_path / "repotree.toml"
    monkeypatch.setenv("REPOTREE_CONFIG", str(cfg_path))
    return cfg_path


@pytest.fixture
def git_repo(tmp_path: Path, monkeypatch: Any) -> Path:
    """Create a repository on branch ``main`` with one committed snapshot.

    Layout::

        readme.txt          (50 bytes)
        src/app.py
        src/lib/util.py
        docs/guide.md
    """
    # git status wording is matched literally.
    monkeypatch.setenv("LC_ALL", "C")
    monkeypatch.setenv("LANGUAGE", "C")
    for key in (
        "GIT_AUTHOR_NAME",
        "GIT_AUTHOR_EMAIL",
        "GIT_COMMITTER_NAME",
        "GIT_COMMITTER_EMAIL",
    ):
        monkeypatch.delenv(key, raising=False)

    repo_path = tmp_path / "repo"
    repo_path.mkdir()

    git(repo_path, "init", "-q")
    git(repo_path, "symbolic-ref", "HEAD", "refs/heads/main")
    git(repo_path, "config", "user.email", "fixture@example.com")
    git(repo_path, "config", "user.name", "Fixture User")
    git(repo_path, "config", "commit.gpgsign", "false")

    (repo_path / "readme.txt").write_text(README_TEXT)
    (repo_path / "src" / "lib").mkdir(parents=True)
    (repo_path / "src" / "app.py").write_text("print('hello')\n")
    (repo_path / "src" / "lib" / "util.py").write_text("def util():\n    return 1\n")
    (repo_path / "docs").mkdir()
    (repo_path / "docs" / "guide.md").write_text("# Guide\n")

    git(repo_path, "add", ".")
    git(repo_path, "commit", "-q", "-m", "Initial commit")
    return repo_path


@pytest.fixture
def accessor(git_repo: Path) -> RepositoryAccessor:
    return RepositoryAccessor.from_path(git_repo, branch="main")


@pytest.fixture
def git_cmd() -> Any:
    """Direct git runner for assertions: ``git_cmd(repo, "log", "-1")``."""
    return git
