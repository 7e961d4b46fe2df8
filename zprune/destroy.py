"""Destroy snapshots in dataset-scoped batches.

Large ``zfs destroy`` calls have been seen to lock up ZFS on Linux, so
snapshots are destroyed at most ``batch_size`` at a time, one batch after
another. A batch uses the ``dataset@snap1,snap2,...`` syntax, which only
accepts snapshots of a single dataset.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from zprune.models import Snapshot

if TYPE_CHECKING:
    from zprune.zfs import Storage


class StrandedSnapshotsError(AssertionError):
    """Snapshots were left queued after every batch was flushed (a bug)."""
    def __init__(self, snapshots: list[Snapshot]):
        self.snapshots = snapshots
        super().__init__(
            f"There are still {len(snapshots)} snapshot(s) in the queue! "
            f"Please file a bug report."
        )


def group_by_dataset(snapshots: list[Snapshot]) -> dict[str, list[Snapshot]]:
    """Group snapshots by dataset, keeping first-seen dataset order."""
    groups: dict[str, list[Snapshot]] = {}
    for snap in snapshots:
        groups.setdefault(snap.dataset, []).append(snap)
    return groups


def build_destroy_argument(snapshots: list[Snapshot]) -> str:
    """Return ``dataset@suffix1,suffix2,...`` for snapshots of one dataset."""
    if not snapshots:
        raise ValueError("Cannot build a destroy argument for zero snapshots")
    dataset = snapshots[0].dataset
    if any(s.dataset != dataset for s in snapshots):
        raise ValueError(f"Batch mixes datasets: {sorted({s.dataset for s in snapshots})}")
    return f"{dataset}@" + ",".join(s.suffix for s in snapshots)


def calculate_percentage(done: int, total: int) -> float:
    return done / total * 100.0


def _ensure_drained(queue: list[Snapshot]) -> None:
    if not queue:
        return
    print("These were the remaining snapshots:")
    print("-" * 16)
    for snap in queue:
        print(snap.full_name)
    raise StrandedSnapshotsError(list(queue))


def destroy_snapshots(
    storage: "Storage",
    snapshots: list[Snapshot],
    batch_size: int,
    dry_run: bool = False,
    verbose: bool = False,
) -> list[Snapshot]:
    """
    Destroy ``snapshots`` and return the ones destroyed.

    Each dataset's snapshots are queued in order; the queue is flushed as a
    single destroy call whenever its length reaches a multiple of
    ``batch_size``, and once more at the end of the dataset. A batch size at
    least as large as a dataset's snapshot count means one call for it.

    StorageError from a destroy call propagates: earlier batches stay
    destroyed and nothing further is attempted.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    total = len(snapshots)
    queue: list[Snapshot] = []
    deleted: list[Snapshot] = []

    def flush() -> None:
        argument = build_destroy_argument(queue)
        if dry_run or verbose:
            print(f"  [destroy] zfs destroy {argument}")
        if not dry_run:
            storage.destroy_batch(argument)
        deleted.extend(queue)
        queue.clear()
        verb = "Would delete" if dry_run else "Deleted"
        print(
            f"{verb} | {calculate_percentage(len(deleted), total):6.2f}% "
            f"<=> [{len(deleted)}/{total}]"
        )

    for dataset, dataset_snaps in group_by_dataset(snapshots).items():
        print(f"Cleaning snapshots for {dataset} ...\n")
        for snap in dataset_snaps:
            queue.append(snap)
            if len(queue) % batch_size == 0:
                flush()
        if queue:
            flush()
        print()

    _ensure_drained(queue)
    return deleted
