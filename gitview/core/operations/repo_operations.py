"""Repository operations: stage, unstage, commit and discard.

Each operation calls the engine and, on success, raises an immediate refresh
trigger so the published snapshot reflects the change. Engine failures are
logged and returned as error results; no refresh follows a failure.
"""

import logging
from collections.abc import Awaitable, Callable

from gitview.core.use_case_errors import format_error_message, log_use_case_error
from gitview.domain.entities import DiscardOutcome, OperationResult
from gitview.ports.vcs import ALL_PATHS, VersionControlEngine

logger = logging.getLogger(__name__)


class RepositoryOperations:
    """Mutating engine commands followed by an immediate refresh.

    Args:
        engine: Version-control engine of the current workspace.
        on_completed: Called after every successful operation, typically
            RefreshCoordinator.notify_operation_completed.
    """

    def __init__(
        self,
        engine: VersionControlEngine,
        on_completed: Callable[[], None],
    ) -> None:
        self._engine = engine
        self._on_completed = on_completed

    def set_engine(self, engine: VersionControlEngine) -> None:
        self._engine = engine

    async def stage(self, path: str) -> OperationResult:
        return await self._run(f"stage {path}", lambda: self._engine.add(path))

    async def stage_all(self) -> OperationResult:
        return await self._run("stage all", lambda: self._engine.add(ALL_PATHS))

    async def unstage(self, path: str) -> OperationResult:
        return await self._run(f"unstage {path}", lambda: self._engine.reset(path))

    async def unstage_all(self) -> OperationResult:
        return await self._run("unstage all", lambda: self._engine.reset())

    async def commit(self, message: str) -> OperationResult:
        """Commit the staged changes.

        Args:
            message: Commit message; surrounding whitespace is trimmed.

        Returns:
            Error result without calling the engine if message is blank.
        """
        message = message.strip()
        if not message:
            return OperationResult.create_error("Commit message cannot be empty")
        return await self._run("commit", lambda: self._engine.commit(message))

    async def discard(self, path: str) -> OperationResult:
        """Throw away working tree changes to path.

        Returns:
            Result whose outcome says whether the file was restored or deleted.
        """
        return await self._run(f"discard {path}", lambda: self._engine.discard_changes(path))

    async def _run(
        self,
        operation_name: str,
        action: Callable[[], Awaitable[DiscardOutcome | None]],
    ) -> OperationResult:
        try:
            outcome = await action()
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception as e:
            log_use_case_error(e, operation_name)
            return OperationResult.create_error(format_error_message(e, operation_name))

        logger.info("Completed %s", operation_name)
        self._on_completed()
        return OperationResult.create_success(outcome=outcome)
