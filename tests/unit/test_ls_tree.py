"""Tests for parsing `git ls-tree -lz` output."""

from __future__ import annotations

import pytest

from repotree.core.result import InfrastructureFault, InvalidOutputError, PathMismatchError
from repotree.git import TreeEntry, parse_ls_tree

BLOB_HASH = "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"
TREE_HASH = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


def _record(mode: str, kind: str, digest: str, size: str, name: str) -> str:
    # ls-tree right-aligns the size column to seven characters.
    return f"{mode} {kind} {digest} {size:>7}\t{name}\0"


def test_parses_blobs_and_trees_at_root() -> None:
    output = _record("100644", "blob", BLOB_HASH, "50", "readme.txt") + _record(
        "040000", "tree", TREE_HASH, "-", "src"
    )

    entries = parse_ls_tree(output)

    assert entries == [
        TreeEntry(name="readme.txt", entry_type="blob", content_hash=BLOB_HASH, size=50),
        TreeEntry(name="src", entry_type="tree", content_hash=TREE_HASH, size=None),
    ]


def test_empty_output_yields_no_entries() -> None:
    assert parse_ls_tree("") == []
    assert parse_ls_tree("", "src/") == []


def test_prefix_is_stripped_from_names() -> None:
    output = _record("100644", "blob", BLOB_HASH, "12", "src/app.py") + _record(
        "100644", "blob", BLOB_HASH, "3", "src/lib/util.py"
    )

    names = [entry.name for entry in parse_ls_tree(output, "src/")]

    assert names == ["app.py", "lib/util.py"]


def test_name_outside_prefix_is_a_path_mismatch() -> None:
    output = _record("100644", "blob", BLOB_HASH, "12", "docs/guide.md")

    with pytest.raises(PathMismatchError) as excinfo:
        parse_ls_tree(output, "src/")

    assert isinstance(excinfo.value, InfrastructureFault)
    assert excinfo.value.context["name"] == "docs/guide.md"


def test_sibling_with_shared_prefix_is_rejected() -> None:
    output = _record("100644", "blob", BLOB_HASH, "1", "srcfile.txt")

    with pytest.raises(PathMismatchError):
        parse_ls_tree(output, "src/")


def test_filenames_keep_spaces_and_tabs() -> None:
    output = _record("100644", "blob", BLOB_HASH, "4", "my notes\tdraft.txt")

    (entry,) = parse_ls_tree(output)

    assert entry.name == "my notes\tdraft.txt"
    assert entry.size == 4


def test_submodule_commit_has_no_size() -> None:
    output = _record("160000", "commit", BLOB_HASH, "-", "vendor/lib")

    (entry,) = parse_ls_tree(output)

    assert entry.entry_type == "commit"
    assert entry.size is None
    assert not entry.is_tree


@pytest.mark.parametrize(
    "record",
    [
        "100644 blob deadbeef\0",
        "100644 blob deadbeef\tmissing-size\0",
        f"100644 blob {BLOB_HASH}     abc\tbad-size\0",
    ],
)
def test_malformed_records_are_invalid_output(record: str) -> None:
    with pytest.raises(InvalidOutputError):
        parse_ls_tree(record)
