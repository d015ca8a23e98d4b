from __future__ import annotations

from typer.main import get_command
from typer.testing import CliRunner

from repotree import __version__
from repotree.main import app

runner = CliRunner()


def test_app_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_all_commands_have_help() -> None:
    """
    Iterate over every registered command and ensure it accepts --help.
    This catches import errors and broken option declarations.
    """
    commands = get_command(app).commands
    assert {"head", "ls", "cat", "cat-hash", "reset", "write", "rm", "commit"} <= set(commands)
    for name in commands:
        result = runner.invoke(app, [name, "--help"])
        assert result.exit_code == 0, f"{name} --help failed: {result.output}"
