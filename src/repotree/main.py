from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

import typer
from rich import box
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .core.config import ConfigLoadResult, RepositoryConfig, load_config
from .core.console import console, get_console, setup_logging
from .core.decorators import handle_exceptions
from .core.result import Err, Ok
from .git import RepositoryAccessor, TreeEntry

app = typer.Typer(help="repotree: read and edit a git-backed source tree.")


@dataclass
class AppState:
    config: RepositoryConfig
    config_meta: ConfigLoadResult
    logger: logging.Logger
    accessor: RepositoryAccessor


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to a repotree config file (TOML or JSON)."
    ),
    repo: Path | None = typer.Option(None, "--repo", "-r", help="Repository root."),
    branch: str | None = typer.Option(None, "--branch", "-b", help="Branch to resolve as head."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    loaded_config, meta = load_config(config_path=config)

    updates: dict[str, object] = {}
    if repo is not None:
        updates["repo_root"] = repo.expanduser().resolve()
    if branch:
        updates["branch"] = branch
    if updates:
        loaded_config = loaded_config.model_copy(update=updates)

    logger = setup_logging(level=loaded_config.log_level, verbose=verbose)

    ctx.obj = AppState(
        config=loaded_config,
        config_meta=meta,
        logger=logger,
        accessor=RepositoryAccessor(loaded_config),
    )

    if meta.error:
        get_console(stderr=True).print(
            Panel(
                f"[bold red]Configuration Error - Safe Mode Active[/bold red]\n\n"
                f"Failed to load {escape(str(meta.path))}:\n{escape(meta.error)}\n\n"
                f"[yellow]Using default settings.[/yellow]",
                border_style="red",
            )
        )
    else:
        logger.debug(
            "Loaded configuration from %s (env overrides: %s)",
            meta.path,
            sorted(meta.env_overrides),
        )


@app.command("head")
@handle_exceptions
def head(ctx: typer.Context) -> None:
    """Print the revision hash of the configured branch."""
    state: AppState = ctx.obj
    typer.echo(asyncio.run(state.accessor.get_repository_head()))


@app.command("ls")
@handle_exceptions
def list_tree(
    ctx: typer.Context,
    revision: str | None = typer.Argument(None, help="Revision to list (default: head)."),
    path: str | None = typer.Argument(None, help="Directory to list (default: root)."),
    recursive: bool = typer.Option(False, "--recursive", "-R", help="List all files below."),
) -> None:
    """List a directory as of a revision."""
    state: AppState = ctx.obj

    async def _list() -> tuple[str, list[TreeEntry]]:
        target = revision or await state.accessor.get_repository_head()
        return target, await state.accessor.ls(target, path, recursive=recursive)

    target, entries = asyncio.run(_list())

    table = Table(title=f"{escape(path or '/')} @ {target[:12]}", box=box.SIMPLE, expand=True)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Type", style="white", no_wrap=True)
    table.add_column("Size", style="white", justify="right", no_wrap=True)
    table.add_column("Hash", style="dim", no_wrap=True)

    for entry in sorted(entries, key=lambda e: (not e.is_tree, e.name)):
        name = f"{entry.name}/" if entry.is_tree else entry.name
        size = "" if entry.size is None else str(entry.size)
        table.add_row(escape(name), entry.entry_type, size, entry.content_hash[:12])

    console.print(table)


@app.command("cat")
@handle_exceptions
def cat(
    ctx: typer.Context,
    revision: str = typer.Argument(..., help="Revision to read from."),
    path: str = typer.Argument(..., help="File path relative to the repository root."),
) -> None:
    """Print a file as of a revision."""
    state: AppState = ctx.obj
    typer.echo(asyncio.run(state.accessor.cat(revision, path)), nl=False)


@app.command("cat-hash")
@handle_exceptions
def cat_hash(
    ctx: typer.Context,
    content_hash: str = typer.Argument(..., help="Blob hash."),
) -> None:
    """Print a blob by its content hash."""
    state: AppState = ctx.obj
    typer.echo(asyncio.run(state.accessor.cat_hash(content_hash)), nl=False)


@app.command("reset")
@handle_exceptions
def reset(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Confirm discarding changes."),
) -> None:
    """Discard all uncommitted changes in the working tree."""
    state: AppState = ctx.obj
    if not yes:
        console.print("[yellow]Refusing to reset without --yes.[/yellow]")
        raise typer.Exit(code=1)
    asyncio.run(state.accessor.clean_working_tree())
    console.print(f"[green]Reset {escape(str(state.config.repo_root))}[/green]")


@app.command("write")
@handle_exceptions
def write(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File path relative to the repository root."),
    from_file: Path | None = typer.Option(
        None, "--from-file", "-f", help="Read content from this file instead of stdin."
    ),
) -> None:
    """Write a working tree file from stdin or another file."""
    state: AppState = ctx.obj
    content = from_file.read_bytes() if from_file else sys.stdin.buffer.read()

    match asyncio.run(state.accessor.write_working_tree_path(path, content)):
        case Ok(_):
            console.print(f"[green]Wrote {escape(path)}[/green]")
        case Err(err):
            get_console(stderr=True).print(f"[red]{escape(err.message)}[/red]")
            raise typer.Exit(code=1)


@app.command("rm")
@handle_exceptions
def remove(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File path relative to the repository root."),
) -> None:
    """Delete a working tree file (missing files are ignored)."""
    state: AppState = ctx.obj
    asyncio.run(state.accessor.delete_working_tree_path(path))
    console.print(f"[green]Removed {escape(path)}[/green]")


@app.command("commit")
@handle_exceptions
def commit(
    ctx: typer.Context,
    message: str = typer.Option(..., "--message", "-m", help="Commit message."),
    author_name: str = typer.Option(..., "--author-name", help="Author and committer name."),
    author_email: str = typer.Option(..., "--author-email", help="Author and committer email."),
) -> None:
    """Stage every working tree change and commit it."""
    state: AppState = ctx.obj
    outcome = asyncio.run(state.accessor.commit(message, author_name, author_email))
    if outcome.committed:
        console.print(outcome.output.rstrip(), markup=False)
    else:
        console.print(f"[yellow]{outcome.output}[/yellow]")


@app.command("config")
def show_config(ctx: typer.Context) -> None:
    """Show the active configuration and where it came from."""
    state: AppState = ctx.obj
    config = state.config
    meta = state.config_meta

    table = Table(title="Config", box=box.SIMPLE, expand=True)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")

    for key, value in config.model_dump().items():
        table.add_row(key, escape(str(value)))

    console.print(table)

    meta_lines = [
        f"Path: {escape(str(meta.path))}",
        "File loaded: yes" if meta.file_loaded else "File loaded: no (using defaults + env)",
    ]

    if meta.env_overrides:
        meta_lines.append("Env overrides: " + ", ".join(sorted(meta.env_overrides)))

    console.print(Panel("\n".join(meta_lines), title="Config source", box=box.SIMPLE))


@app.command("version")
def show_version() -> None:
    """Print the repotree version."""
    console.print(__version__)


def cli() -> None:
    app()


if __name__ == "__main__":
    cli()
