"""Refresh scheduling, execution and snapshot publication."""

from gitview.core.refresh.coordinator import RefreshCoordinator
from gitview.core.refresh.scheduler import RefreshScheduler
from gitview.core.refresh.snapshot_cell import SnapshotCell

__all__ = ["RefreshCoordinator", "RefreshScheduler", "SnapshotCell"]
