"""Tests for TabContentReconciler."""

import pytest

from gitview.adapters.editor.buffers import BufferRegistry
from gitview.core.refresh.snapshot_cell import SnapshotCell
from gitview.core.tabs.reconciler import TabContentReconciler
from gitview.domain.entities import (
    UNAVAILABLE,
    FileOperation,
    FileOperationKind,
    GitStatus,
    RepositorySnapshot,
    Unavailable,
)
from tests.helpers.clock import ManualClock, settle
from tests.helpers.fakes import FakeStorage

GRACE = 0.1


class RecordingBuffers(BufferRegistry):
    """BufferRegistry that records every close request."""

    def __init__(self) -> None:
        super().__init__()
        self.closed: list[str] = []

    def close_tab(self, path: str) -> None:
        self.closed.append(path)
        super().close_tab(path)


class CountingStorage(FakeStorage):
    """FakeStorage that counts reads and can fail for selected paths."""

    def __init__(self, files: dict[str, str] | None = None) -> None:
        super().__init__(files)
        self.reads = 0
        self.unreadable: set[str] = set()

    async def read_text(self, path: str) -> str | None:
        self.reads += 1
        if path in self.unreadable:
            raise PermissionError(f"Permission denied: {path}")
        return await super().read_text(path)


@pytest.fixture
def buffers() -> RecordingBuffers:
    return RecordingBuffers()


@pytest.fixture
def storage() -> CountingStorage:
    return CountingStorage()


@pytest.fixture
def reconciler(
    buffers: RecordingBuffers, storage: CountingStorage, manual_clock: ManualClock
) -> TabContentReconciler:
    return TabContentReconciler(buffers, storage, manual_clock, close_grace_seconds=GRACE)


def snapshot() -> RepositorySnapshot:
    return RepositorySnapshot.assemble(GitStatus(), (), ())


class TestReconcile:
    """Tests for a reconciliation pass."""

    @pytest.mark.asyncio
    async def test_clean_tab_takes_stored_content(
        self, reconciler: TabContentReconciler, buffers, storage
    ) -> None:
        buffers.open("a.txt", "old\n")
        storage.files["a.txt"] = "new\n"

        report = await reconciler.reconcile()

        assert report.updated == ["a.txt"]
        assert buffers.get("a.txt").content == "new\n"
        assert not buffers.get("a.txt").is_dirty

    @pytest.mark.asyncio
    async def test_dirty_tab_is_never_overwritten(
        self, reconciler: TabContentReconciler, buffers, storage
    ) -> None:
        """Test that unsaved edits survive a differing stored file."""
        buffers.open("a.txt", "old\n")
        buffers.edit("a.txt", "my edits\n")
        storage.files["a.txt"] = "changed on disk\n"

        report = await reconciler.reconcile()

        assert report.updated == []
        assert report.skipped_dirty == ["a.txt"]
        tab = buffers.get("a.txt")
        assert tab.content == "my edits\n"
        assert tab.is_dirty

    @pytest.mark.asyncio
    async def test_matching_content_left_alone(
        self, reconciler: TabContentReconciler, buffers, storage
    ) -> None:
        buffers.open("a.txt", "same\n")
        storage.files["a.txt"] = "same\n"

        report = await reconciler.reconcile()

        assert not report.changed
        assert report.skipped_dirty == []

    @pytest.mark.asyncio
    async def test_unreadable_file_skipped(
        self, reconciler: TabContentReconciler, buffers, storage, caplog
    ) -> None:
        """Test that a read error leaves that buffer alone and continues."""
        buffers.open("locked.txt", "old\n")
        buffers.open("b.txt", "old\n")
        storage.files.update({"locked.txt": "new\n", "b.txt": "new\n"})
        storage.unreadable.add("locked.txt")

        report = await reconciler.reconcile()

        assert report.updated == ["b.txt"]
        assert buffers.get("locked.txt").content == "old\n"
        assert "Could not read locked.txt" in caplog.text


class TestDeletedFiles:
    """Tests for buffers whose file no longer exists."""

    @pytest.mark.asyncio
    async def test_clean_tab_closed_after_grace(
        self, reconciler: TabContentReconciler, buffers, manual_clock: ManualClock
    ) -> None:
        buffers.open("gone.txt", "bye\n")

        report = await reconciler.reconcile()

        assert report.scheduled_close == ["gone.txt"]
        assert "gone.txt" in buffers
        assert reconciler.pending_close == {"gone.txt"}

        await manual_clock.advance(GRACE)

        assert "gone.txt" not in buffers
        assert buffers.closed == ["gone.txt"]
        assert reconciler.pending_close == frozenset()

    @pytest.mark.asyncio
    async def test_close_scheduled_once(
        self, reconciler: TabContentReconciler, buffers, manual_clock: ManualClock
    ) -> None:
        """Test that repeated passes during the grace delay close only once."""
        buffers.open("gone.txt", "bye\n")

        first = await reconciler.reconcile()
        second = await reconciler.reconcile()
        await manual_clock.advance(GRACE * 5)

        assert first.scheduled_close == ["gone.txt"]
        assert second.scheduled_close == []
        assert buffers.closed == ["gone.txt"]

    @pytest.mark.asyncio
    async def test_dirty_tab_of_deleted_file_kept(
        self, reconciler: TabContentReconciler, buffers, manual_clock: ManualClock
    ) -> None:
        buffers.open("gone.txt", "bye\n")
        buffers.edit("gone.txt", "keep me\n")

        report = await reconciler.reconcile()
        await manual_clock.advance(GRACE)

        assert report.skipped_dirty == ["gone.txt"]
        assert buffers.closed == []

    @pytest.mark.asyncio
    async def test_tab_edited_during_grace_kept(
        self, reconciler: TabContentReconciler, buffers, manual_clock: ManualClock
    ) -> None:
        buffers.open("gone.txt", "bye\n")
        await reconciler.reconcile()

        buffers.edit("gone.txt", "typing...\n")
        await manual_clock.advance(GRACE)

        assert "gone.txt" in buffers
        assert buffers.closed == []

    @pytest.mark.asyncio
    async def test_file_reappearing_during_grace_kept(
        self, reconciler: TabContentReconciler, buffers, storage, manual_clock: ManualClock
    ) -> None:
        buffers.open("flaky.txt", "v1\n")
        await reconciler.reconcile()

        storage.files["flaky.txt"] = "v2\n"
        await manual_clock.advance(GRACE)

        assert "flaky.txt" in buffers
        assert buffers.closed == []

    @pytest.mark.asyncio
    async def test_set_storage_cancels_pending_closes(
        self, reconciler: TabContentReconciler, buffers, manual_clock: ManualClock
    ) -> None:
        buffers.open("gone.txt", "bye\n")
        await reconciler.reconcile()

        reconciler.set_storage(FakeStorage())
        await manual_clock.advance(GRACE)

        assert buffers.closed == []
        assert reconciler.pending_close == frozenset()

    @pytest.mark.asyncio
    async def test_aclose_cancels_pending_closes(
        self, reconciler: TabContentReconciler, buffers, manual_clock: ManualClock
    ) -> None:
        buffers.open("gone.txt", "bye\n")
        await reconciler.reconcile()

        await reconciler.aclose()
        await manual_clock.advance(GRACE)

        assert buffers.closed == []


class TestPublications:
    """Tests for reconciling in response to snapshot publications."""

    @pytest.mark.asyncio
    async def test_snapshot_publication_reconciles(
        self, reconciler: TabContentReconciler, buffers, storage
    ) -> None:
        cell = SnapshotCell()
        reconciler.attach(cell)
        buffers.open("a.txt", "old\n")
        storage.files["a.txt"] = "new\n"

        cell.publish(snapshot())
        await reconciler.wait_until_idle()

        assert buffers.get("a.txt").content == "new\n"

    @pytest.mark.asyncio
    async def test_unavailable_publication_ignored(
        self, reconciler: TabContentReconciler, buffers, storage
    ) -> None:
        cell = SnapshotCell()
        reconciler.attach(cell)
        buffers.open("a.txt", "old\n")

        cell.publish(UNAVAILABLE)
        cell.publish(Unavailable("boom"))
        await settle()

        assert storage.reads == 0

    @pytest.mark.asyncio
    async def test_queued_requests_share_one_pass(
        self, reconciler: TabContentReconciler, buffers, storage
    ) -> None:
        buffers.open("a.txt", "same\n")
        storage.files["a.txt"] = "same\n"

        for _ in range(4):
            reconciler.request_reconcile()
        await reconciler.wait_until_idle()

        assert storage.reads == 1


class TestFileOperations:
    """Tests for engine file operation notifications."""

    def test_restored_file_replaces_clean_tab(
        self, reconciler: TabContentReconciler, buffers
    ) -> None:
        buffers.open("a.txt", "edited on disk\n")

        reconciler.on_file_operation(
            FileOperation("a.txt", FileOperationKind.FILE, content="committed\n")
        )

        assert buffers.get("a.txt").content == "committed\n"

    def test_restored_file_leaves_dirty_tab(
        self, reconciler: TabContentReconciler, buffers
    ) -> None:
        buffers.open("a.txt", "x\n")
        buffers.edit("a.txt", "unsaved\n")

        reconciler.on_file_operation(
            FileOperation("a.txt", FileOperationKind.FILE, content="committed\n")
        )

        assert buffers.get("a.txt").content == "unsaved\n"

    def test_unknown_path_ignored(self, reconciler: TabContentReconciler, buffers) -> None:
        reconciler.on_file_operation(
            FileOperation("nope.txt", FileOperationKind.FILE, content="x\n")
        )

        assert len(buffers) == 0

    @pytest.mark.asyncio
    async def test_deleted_file_closes_clean_tab(
        self, reconciler: TabContentReconciler, buffers, manual_clock: ManualClock
    ) -> None:
        buffers.open("new.txt", "draft\n")

        reconciler.on_file_operation(FileOperation("new.txt", FileOperationKind.DELETE))
        await manual_clock.advance(GRACE)

        assert buffers.closed == ["new.txt"]
