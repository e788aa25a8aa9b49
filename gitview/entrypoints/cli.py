"""gitview CLI entrypoint.

Command-line interface for inspecting and operating on a git working tree.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import sys
from collections.abc import Awaitable, Callable
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

import click

if TYPE_CHECKING:
    from gitview.adapters.factory import GitviewSession
    from gitview.domain.config import GitviewConfig

from gitview.core.errors import (
    GitviewCliError,
    nothing_to_do_error,
    operation_failed_error,
    repository_unavailable_error,
)
from gitview.core.presentation import (
    format_branch_line,
    format_change_count,
    format_commit_line,
    format_json,
    format_status_lines,
    snapshot_to_dict,
)
from gitview.core.presentation.json_formatter import branch_to_dict, commit_to_dict
from gitview.domain.entities import OperationResult, RepositorySnapshot
from gitview.domain.exceptions import GitviewError
from gitview.version import __version__

T = TypeVar("T")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def handle_cli_errors(command_name: str):
    """Decorator to handle common CLI errors.

    Catches domain and unexpected errors, displaying appropriate messages
    and showing tracebacks in verbose mode. GitviewCliError exceptions
    are re-raised to use their built-in formatting.

    Args:
        command_name: Name of the command for error messages.

    Returns:
        Decorated function with error handling.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except (click.ClickException, click.exceptions.Abort):
                raise
            except GitviewError as e:
                raise GitviewCliError(e.message, hint=e.hint) from e
            except (ValueError, RuntimeError) as e:
                raise GitviewCliError(
                    str(e),
                    hint="Run with --verbose for more details",
                ) from e
            except Exception as e:
                ctx = click.get_current_context()
                if ctx.obj.get("verbose", False):
                    import traceback

                    traceback.print_exc()
                raise GitviewCliError(
                    f"Unexpected error in {command_name}: {e}",
                    hint="Run with --verbose for more details",
                ) from e

        return wrapper

    return decorator


def _configure_logging(verbose: bool, quiet: bool) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _get_repo_root(ctx: click.Context) -> Path:
    """Resolve the working tree root from --repo or the current directory.

    The git binary comes from the global config; a local config cannot be
    read before the repository is found.

    Raises:
        NotARepositoryError: If the path is not inside a git repository.
    """
    from gitview.adapters.factory import ConfigFactory
    from gitview.adapters.git_cmd.git_adapter import find_repo_root

    start = ctx.obj.get("repo") or Path.cwd()
    binary = ConfigFactory().create_config_provider().load_global().git.binary
    return find_repo_root(Path(start), binary)


def _load_config(repo_root: Path) -> GitviewConfig:
    """Load merged global and local configuration for a repository."""
    from gitview.adapters.factory import ConfigFactory

    return ConfigFactory().create_config_provider().load(repo_root)


def _create_session(ctx: click.Context, log_depth: int | None = None) -> GitviewSession:
    """Create a session for the repository selected on the command line.

    Args:
        ctx: Click context holding --repo.
        log_depth: Overrides the configured number of commits fetched.
    """
    from gitview.adapters.factory import SessionFactory

    repo_root = _get_repo_root(ctx)
    config = _load_config(repo_root)
    if log_depth is not None:
        config = replace(config, refresh=replace(config.refresh, log_depth=log_depth))
    return SessionFactory(config).create_session(repo_root)


def _run_with_session(
    ctx: click.Context,
    action: Callable[[GitviewSession], Awaitable[T]],
    log_depth: int | None = None,
) -> T:
    """Run an async action against a fresh session and close it afterwards."""

    async def run() -> T:
        session = _create_session(ctx, log_depth=log_depth)
        try:
            return await action(session)
        finally:
            await session.aclose()

    return asyncio.run(run())


async def _fetch_snapshot(session: GitviewSession) -> RepositorySnapshot:
    value = await session.coordinator.refresh_now()
    if not isinstance(value, RepositorySnapshot):
        repository_unavailable_error(value.reason)
    return value


def _take_snapshot(ctx: click.Context, log_depth: int | None = None) -> RepositorySnapshot:
    return _run_with_session(ctx, _fetch_snapshot, log_depth=log_depth)


async def _run_operations(
    session: GitviewSession,
    operations: list[Callable[[], Awaitable[OperationResult]]],
) -> tuple[list[OperationResult], int]:
    """Run operations in order, then wait for the refresh they trigger.

    Returns:
        The operation results and the change count after the refresh.
    """
    results = []
    for operation in operations:
        result = await operation()
        results.append(result)
        if not result.success:
            break
    await session.coordinator.wait_until_idle()
    return results, session.coordinator.change_count.count


def _report_operations(
    ctx: click.Context,
    operation: str,
    done: str,
    labels: list[str],
    results: list[OperationResult],
    count: int,
) -> None:
    for label, result in zip(labels, results):
        if not result.success:
            operation_failed_error(f"{operation} {label}", result.error)
        if not ctx.obj.get("quiet", False):
            detail = f" ({result.outcome.value})" if result.outcome else ""
            click.echo(f"✓ {done} {label}{detail}")
    if not ctx.obj.get("quiet", False):
        click.echo(format_change_count(count))


@click.group()
@click.version_option(version=__version__, prog_name="gitview")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress non-essential output.",
)
@click.option(
    "--repo",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Repository to operate on (default: current directory).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, repo: Path | None) -> None:
    """gitview - Live view of a git working tree.

    Shows status, recent commits and branches, and stages, commits or
    discards changes.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["repo"] = repo
    _configure_logging(verbose, quiet)


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@click.pass_context
@handle_cli_errors("status")
def status(ctx: click.Context, json_output: bool) -> None:
    """Show the current branch and pending changes."""
    snapshot = _take_snapshot(ctx)
    if json_output:
        click.echo(format_json(snapshot_to_dict(snapshot)))
        return
    for line in format_status_lines(snapshot.status):
        click.echo(line)


@cli.command()
@click.option(
    "--max-count",
    "-n",
    type=click.IntRange(min=1),
    default=None,
    help="Number of commits to show (default: from config).",
)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@click.pass_context
@handle_cli_errors("log")
def log(ctx: click.Context, max_count: int | None, json_output: bool) -> None:
    """Show recent commits, newest first."""
    snapshot = _take_snapshot(ctx, log_depth=max_count)
    if json_output:
        click.echo(format_json([commit_to_dict(c) for c in snapshot.commits]))
        return
    if not snapshot.commits:
        click.echo("No commits yet")
        return
    for commit in snapshot.commits:
        click.echo(format_commit_line(commit))


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@click.pass_context
@handle_cli_errors("branches")
def branches(ctx: click.Context, json_output: bool) -> None:
    """List local and remote-tracking branches."""
    snapshot = _take_snapshot(ctx)
    if json_output:
        click.echo(format_json([branch_to_dict(b) for b in snapshot.branches]))
        return
    for branch in snapshot.branches:
        click.echo(format_branch_line(branch))


@cli.command()
@click.pass_context
@handle_cli_errors("count")
def count(ctx: click.Context) -> None:
    """Print the number of pending changes.

    Outputs a bare integer, suitable for prompts and status bars.
    """

    async def action(session: GitviewSession) -> int:
        await _fetch_snapshot(session)
        return session.coordinator.change_count.count

    click.echo(_run_with_session(ctx, action))


@cli.command()
@click.argument("paths", nargs=-1, type=str)
@click.option("--all", "-A", "stage_all", is_flag=True, help="Stage every change.")
@click.pass_context
@handle_cli_errors("stage")
def stage(ctx: click.Context, paths: tuple[str, ...], stage_all: bool) -> None:
    """Stage PATHS (or everything with --all)."""
    if not paths and not stage_all:
        nothing_to_do_error("stage")

    async def action(session: GitviewSession):
        ops = session.operations
        if stage_all:
            return await _run_operations(session, [ops.stage_all])
        return await _run_operations(
            session, [functools.partial(ops.stage, path) for path in paths]
        )

    results, change_count = _run_with_session(ctx, action)
    labels = ["all changes"] if stage_all else list(paths)
    _report_operations(ctx, "stage", "Staged", labels, results, change_count)


@cli.command()
@click.argument("paths", nargs=-1, type=str)
@click.pass_context
@handle_cli_errors("unstage")
def unstage(ctx: click.Context, paths: tuple[str, ...]) -> None:
    """Unstage PATHS, or everything when no path is given."""

    async def action(session: GitviewSession):
        ops = session.operations
        if not paths:
            return await _run_operations(session, [ops.unstage_all])
        return await _run_operations(
            session, [functools.partial(ops.unstage, path) for path in paths]
        )

    results, change_count = _run_with_session(ctx, action)
    labels = list(paths) if paths else ["all changes"]
    _report_operations(ctx, "unstage", "Unstaged", labels, results, change_count)


@cli.command()
@click.option("--message", "-m", required=True, help="Commit message.")
@click.pass_context
@handle_cli_errors("commit")
def commit(ctx: click.Context, message: str) -> None:
    """Commit the staged changes."""

    async def action(session: GitviewSession):
        return await _run_operations(
            session, [functools.partial(session.operations.commit, message)]
        )

    results, change_count = _run_with_session(ctx, action)
    _report_operations(ctx, "commit", "Committed", ["staged changes"], results, change_count)


@cli.command()
@click.argument("paths", nargs=-1, type=str, required=True)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
@handle_cli_errors("discard")
def discard(ctx: click.Context, paths: tuple[str, ...], yes: bool) -> None:
    """Discard working tree changes to PATHS.

    Tracked files are restored to their committed content; untracked and
    newly added files are deleted.
    """
    if not yes:
        click.confirm(
            f"Discard all changes to {', '.join(paths)}? This cannot be undone",
            abort=True,
        )

    async def action(session: GitviewSession):
        return await _run_operations(
            session, [functools.partial(session.operations.discard, path) for path in paths]
        )

    results, change_count = _run_with_session(ctx, action)
    _report_operations(ctx, "discard", "Discarded", list(paths), results, change_count)


@cli.command()
@click.option(
    "--no-poll",
    is_flag=True,
    help="Disable the fallback poll (refresh only on request).",
)
@click.pass_context
@handle_cli_errors("watch")
def watch(ctx: click.Context, no_poll: bool) -> None:
    """Open a live, full-screen view of the repository.

    Keys: up/down select, enter preview, s stage, u unstage, r refresh,
    q quit.
    """
    from gitview.adapters.tui.watch_ui import WatchUI

    session = _create_session(ctx)
    WatchUI(session, poll=not no_poll).run()


@cli.group()
def config() -> None:
    """Manage gitview configuration."""
    pass


@config.command(name="show")
@click.pass_context
@handle_cli_errors("config show")
def config_show(ctx: click.Context) -> None:
    """Show config file locations and the effective settings."""
    from gitview.shared.config_io import (
        dump_config,
        get_global_config_path,
        get_local_config_path,
    )

    repo_root = _get_repo_root(ctx)
    global_path = get_global_config_path()
    local_path = get_local_config_path(repo_root)

    for label, path in (("Global config", global_path), ("Local config", local_path)):
        state = "" if path.exists() else click.style(" (not found)", dim=True)
        click.echo(f"{label}: {path}{state}")

    click.echo()
    click.echo("Effective configuration:")
    click.echo(dump_config(_load_config(repo_root)))


@config.command(name="init")
@click.option("--global", "-g", "init_global", is_flag=True, help="Create the global config.")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing config file.")
@click.pass_context
@handle_cli_errors("config init")
def config_init(ctx: click.Context, init_global: bool, force: bool) -> None:
    """Write a commented default config file."""
    from gitview.shared.config_io import (
        create_default_config_file,
        get_global_config_path,
        get_local_config_path,
    )

    if init_global:
        path = get_global_config_path()
    else:
        path = get_local_config_path(_get_repo_root(ctx))

    if path.exists() and not force:
        raise GitviewCliError(
            f"Config already exists: {path}",
            hint="Use --force to overwrite it",
        )

    create_default_config_file(path)
    click.echo(f"✓ Created {path}")


@config.command(name="path")
@click.option("--global", "-g", "show_global", is_flag=True, help="Show only global config path")
@click.option("--local", "-l", "show_local", is_flag=True, help="Show only local config path")
@click.pass_context
@handle_cli_errors("config path")
def config_path(ctx: click.Context, show_global: bool, show_local: bool) -> None:
    """Print config file path(s) for use in scripts.

    Outputs bare paths without any decoration, suitable for piping.
    """
    from gitview.shared.config_io import get_global_config_path, get_local_config_path

    global_path = get_global_config_path()

    if show_global:
        click.echo(global_path)
        return

    try:
        local_path = get_local_config_path(_get_repo_root(ctx))
    except GitviewError:
        # Not in a repository: there is no local config
        local_path = None

    if show_local:
        if local_path is not None:
            click.echo(local_path)
        return

    click.echo(f"global:{global_path}")
    if local_path is not None:
        click.echo(f"local:{local_path}")


def main() -> int:
    """Main entrypoint for the CLI."""
    try:
        cli(obj={})
        return 0
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
