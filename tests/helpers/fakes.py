"""In-memory fakes of the engine and storage ports."""

import asyncio

from gitview.domain.entities import DiscardOutcome

CLEAN_STATUS = "On branch main\nnothing to commit, working tree clean\n"


class FakeEngine:
    """VersionControlEngine returning canned text and recording calls.

    Set fail_with to make every query raise, or add a query name to
    failures to make only that query raise at once. Clear the gate event to
    hold queries in flight until the test sets it again. in_flight counts
    queries that have started and not yet returned, raised or been cancelled.
    """

    def __init__(
        self,
        status_text: str = CLEAN_STATUS,
        log_text: str = "",
        branch_text: str = "* main\n",
    ) -> None:
        self.status_text = status_text
        self.log_text = log_text
        self.branch_text = branch_text
        self.fail_with: Exception | None = None
        self.failures: dict[str, Exception] = {}
        self.in_flight = 0
        self.max_in_flight = 0
        self.gate = asyncio.Event()
        self.gate.set()
        self.calls: list[tuple] = []
        self.discard_outcome = DiscardOutcome.RESTORED

    @property
    def query_rounds(self) -> int:
        """Number of status queries, one per refresh cycle."""
        return sum(1 for call in self.calls if call[0] == "status")

    async def _query(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if name in self.failures:
                raise self.failures[name]
            await self.gate.wait()
            if self.fail_with is not None:
                raise self.fail_with
        finally:
            self.in_flight -= 1

    async def status(self) -> str:
        await self._query("status")
        return self.status_text

    async def log(self, max_entries: int) -> str:
        await self._query("log", max_entries)
        return self.log_text

    async def branch(self) -> str:
        await self._query("branch")
        return self.branch_text

    async def add(self, path: str) -> None:
        await self._query("add", path)

    async def reset(self, path: str | None = None) -> None:
        await self._query("reset", path)

    async def commit(self, message: str) -> None:
        await self._query("commit", message)

    async def discard_changes(self, path: str) -> DiscardOutcome:
        await self._query("discard", path)
        return self.discard_outcome


class FakeStorage:
    """Storage backed by a dict of path to content."""

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files = dict(files or {})
        self.sync_calls = 0
        self.sync_error: Exception | None = None
        self.read_error: Exception | None = None

    async def sync(self) -> None:
        self.sync_calls += 1
        if self.sync_error is not None:
            raise self.sync_error

    async def read_text(self, path: str) -> str | None:
        if self.read_error is not None:
            raise self.read_error
        return self.files.get(path)
