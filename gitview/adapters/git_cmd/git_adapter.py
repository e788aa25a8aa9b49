"""Git adapter implementing the VCS protocol with asynchronous git commands."""

import asyncio
import logging
import os
import shutil
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from gitview.core.parsing.log_parser import LOG_FIELD_DELIMITER, escape_log_field
from gitview.domain.config import GitConfig
from gitview.domain.entities import DiscardOutcome, FileOperation, FileOperationKind
from gitview.domain.exceptions import EngineError, NotARepositoryError
from gitview.ports.vcs import ALL_PATHS

logger = logging.getLogger(__name__)

# Log record layout: unit separator between fields, record separator after each
_LOG_FIELD_SEPARATOR = "\x1f"
_LOG_RECORD_SEPARATOR = "\x1e"
_LOG_FORMAT = "%H%x1f%s%x1f%an%x1f%aI%x1e"

# Stderr fragments git prints when HEAD has no commits yet
_EMPTY_REPO_MARKERS = ("does not have any commits", "bad default revision 'HEAD'")

FileOperationCallback = Callable[[FileOperation], None]


@dataclass(frozen=True)
class GitResult:
    """Completed git invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


def _git_env() -> dict[str, str]:
    env = dict(os.environ)
    # Section headers and tracking lines are parsed in English
    env["LC_ALL"] = "C"
    env["LANGUAGE"] = "C"
    # Background queries must not take the index lock from the user's git
    env["GIT_OPTIONAL_LOCKS"] = "0"
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env


def find_repo_root(start: Path, binary: str = "git") -> Path:
    """Find the top-level directory of the repository containing start.

    Args:
        start: Any path inside the working tree.
        binary: Git executable.

    Returns:
        Absolute path of the working tree root.

    Raises:
        NotARepositoryError: If start is not inside a git working tree.
    """
    try:
        result = subprocess.run(
            [binary, "-C", str(start), "rev-parse", "--show-toplevel"],
            capture_output=True,
            check=True,
            env=_git_env(),
        )
    except FileNotFoundError as e:
        raise NotARepositoryError(
            f"git executable not found: {binary}",
            hint="Install git or set 'binary' under [git] in config.toml",
        ) from e
    except subprocess.CalledProcessError as e:
        raise NotARepositoryError(
            f"Not a git repository: {start}",
            hint="Run gitview inside a git working tree or pass --repo",
        ) from e
    return Path(result.stdout.decode("utf-8", errors="replace").strip()).resolve()


def format_log_records(raw: str) -> str:
    """Convert separator-delimited git log output into pipe-delimited lines.

    Literal pipes inside the subject or author are replaced with the
    placeholder so each line splits into exactly four fields.
    """
    lines = []
    for record in raw.split(_LOG_RECORD_SEPARATOR):
        record = record.strip("\n")
        if not record:
            continue
        fields = record.split(_LOG_FIELD_SEPARATOR)
        if len(fields) != 4:
            logger.debug("Unexpected git log record: %r", record)
            continue
        commit_hash, subject, author, date = fields
        lines.append(
            LOG_FIELD_DELIMITER.join(
                [commit_hash, escape_log_field(subject), escape_log_field(author), date]
            )
        )
    return "\n".join(lines)


class GitAdapter:
    """Git VCS adapter running the git CLI as asyncio subprocesses.

    Args:
        repo_root: Path of the repository working tree.
        config: Git engine configuration.
        on_file_operation: Called after discard changes a file on disk.

    Raises:
        NotARepositoryError: If repo_root is not a git repository.
    """

    def __init__(
        self,
        repo_root: Path,
        config: GitConfig | None = None,
        on_file_operation: FileOperationCallback | None = None,
    ) -> None:
        self._config = config or GitConfig()
        self.repo_root = find_repo_root(repo_root, self._config.binary)
        self.on_file_operation = on_file_operation
        self._env = _git_env()

    async def _run_git(
        self,
        args: list[str],
        context: str,
        check: bool = True,
    ) -> GitResult:
        """Run a git command in the repository.

        Args:
            args: Git command arguments (without 'git' prefix).
            context: Human-readable description used in error messages.
            check: Whether to raise EngineError on non-zero exit.

        Returns:
            GitResult with decoded output.

        Raises:
            EngineError: If git cannot be started, times out, or (with
                check=True) exits non-zero.
        """
        cmd = [self._config.binary, "-C", str(self.repo_root), *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._env,
            )
        except FileNotFoundError as e:
            raise EngineError(
                f"{context}: git executable not found ({self._config.binary})",
                command=args[0],
                hint="Install git or set 'binary' under [git] in config.toml",
            ) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self._config.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            raise EngineError(
                f"{context}: git timed out after {self._config.timeout_seconds}s",
                command=args[0],
                hint="Raise 'timeout_seconds' under [git] in config.toml",
            ) from e
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()

        result = GitResult(
            args=tuple(args),
            returncode=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
        if check and result.returncode != 0:
            raise EngineError(
                self._format_git_error(result, context),
                command=args[0],
                returncode=result.returncode,
                stderr=result.stderr.strip(),
            )
        return result

    def _format_git_error(self, result: GitResult, context: str) -> str:
        """Format git error with full context.

        Args:
            result: The failed git invocation.
            context: Human-readable description of what was being done.

        Returns:
            Formatted error message with exit code and stderr.
        """
        stderr = result.stderr.strip()

        msg = f"{context} (git exit code {result.returncode})"
        if stderr:
            msg += f": {stderr}"
        else:
            msg += " (no error output from git)"

        return msg

    async def status(self) -> str:
        result = await self._run_git(
            ["status", f"--untracked-files={self._config.untracked_files}"],
            "Failed to read status",
        )
        return result.stdout

    async def log(self, max_entries: int) -> str:
        """Return up to max_entries commits as ``hash|message|author|date`` lines.

        A repository without commits yields an empty string.
        """
        result = await self._run_git(
            ["log", "-n", str(max_entries), f"--format={_LOG_FORMAT}"],
            "Failed to read log",
            check=False,
        )
        if result.returncode != 0:
            if any(marker in result.stderr for marker in _EMPTY_REPO_MARKERS):
                return ""
            raise EngineError(
                self._format_git_error(result, "Failed to read log"),
                command="log",
                returncode=result.returncode,
                stderr=result.stderr.strip(),
            )
        return format_log_records(result.stdout)

    async def branch(self) -> str:
        args = ["branch", "--no-color"]
        if self._config.all_branches:
            args.append("--all")
        result = await self._run_git(args, "Failed to list branches")
        return result.stdout

    async def add(self, path: str) -> None:
        if path == ALL_PATHS:
            await self._run_git(["add", "--all"], "Failed to stage all changes")
        else:
            await self._run_git(["add", "--", path], f"Failed to stage '{path}'")

    async def reset(self, path: str | None = None) -> None:
        if path is None:
            if not await self._has_head():
                # Nothing committed yet: unstaging means emptying the index
                await self._run_git(
                    ["rm", "-r", "--cached", "--quiet", "--ignore-unmatch", "--", "."],
                    "Failed to unstage all changes",
                )
                return
            await self._run_git(["reset", "--quiet"], "Failed to unstage all changes")
            return

        if not await self._has_head():
            await self._run_git(
                ["rm", "--cached", "--quiet", "--ignore-unmatch", "--", path],
                f"Failed to unstage '{path}'",
            )
            return
        await self._run_git(["reset", "--quiet", "--", path], f"Failed to unstage '{path}'")

    async def commit(self, message: str) -> None:
        await self._run_git(["commit", "--quiet", "-m", message], "Failed to commit")

    async def discard_changes(self, path: str) -> DiscardOutcome:
        """Throw away working tree and index changes to path.

        Files present in HEAD are restored to their committed content. Files
        that only exist in the index or the working tree are removed.

        Returns:
            RESTORED or DELETED.

        Raises:
            EngineError: If git fails or there is nothing at path to discard.
        """
        target = self.repo_root / path

        if await self._in_head(path):
            await self._run_git(
                ["checkout", "HEAD", "--", path], f"Failed to discard changes to '{path}'"
            )
            content = self._read_restored(target)
            self._notify(FileOperation(path=path, kind=FileOperationKind.FILE, content=content))
            return DiscardOutcome.RESTORED

        if await self._in_index(path):
            await self._run_git(
                ["rm", "-r", "--cached", "--quiet", "--", path],
                f"Failed to unstage '{path}'",
            )
        elif not target.exists():
            raise EngineError(f"Nothing to discard at '{path}'", command="discard")

        try:
            if target.is_dir():
                shutil.rmtree(target)
            elif target.exists():
                target.unlink()
        except OSError as e:
            raise EngineError(f"Failed to delete '{path}': {e}", command="discard") from e

        self._notify(FileOperation(path=path, kind=FileOperationKind.DELETE))
        return DiscardOutcome.DELETED

    async def _has_head(self) -> bool:
        result = await self._run_git(
            ["rev-parse", "--verify", "--quiet", "HEAD"], "Failed to resolve HEAD", check=False
        )
        return result.returncode == 0

    async def _in_head(self, path: str) -> bool:
        result = await self._run_git(
            ["cat-file", "-e", f"HEAD:{path}"], f"Failed to look up '{path}'", check=False
        )
        return result.returncode == 0

    async def _in_index(self, path: str) -> bool:
        result = await self._run_git(
            ["ls-files", "--cached", "--error-unmatch", "--", path],
            f"Failed to look up '{path}'",
            check=False,
        )
        return result.returncode == 0

    def _read_restored(self, target: Path) -> str | None:
        if not target.is_file():
            return None
        try:
            return target.read_text(errors="replace")
        except OSError as e:
            logger.warning("Could not read restored file %s: %s", target, e)
            return None

    def _notify(self, operation: FileOperation) -> None:
        if self.on_file_operation is None:
            return
        try:
            self.on_file_operation(operation)
        except Exception:
            logger.exception("File operation callback failed for %s", operation.path)
