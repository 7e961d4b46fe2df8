"""MockExecutor, FakeStorage and shared fixtures for testing."""
from __future__ import annotations

from datetime import datetime

import pytest

from zprune.models import SNAPSHOT_FORMAT, Snapshot
from zprune.zfs import StorageError


class MockExecutor:
    """
    Executor that returns pre-scripted responses for commands.

    responses: dict mapping tuple(cmd) -> stdout string (or an Exception to raise)
    If the command isn't found, raises KeyError (to catch unexpected calls in tests).
    """

    def __init__(self, responses: dict | None = None, label: str = "mock"):
        self.responses: dict = responses or {}
        self._label = label
        self.calls: list[list[str]] = []  # record of all commands run

    @property
    def label(self) -> str:
        return self._label

    def run(self, cmd: list[str]) -> str:
        self.calls.append(cmd)
        key = tuple(cmd)
        if key not in self.responses:
            raise KeyError(f"MockExecutor: unexpected command: {cmd}")
        result = self.responses[key]
        if isinstance(result, Exception):
            raise result
        return result


class FakeStorage:
    """
    In-memory Storage.

    snapshots: raw snapshot names returned by list_snapshots
    exclusions: dict mapping exclude source identifier -> list of raw lines
    fail_on_destroy: 1-based index of the destroy call that raises StorageError
    """

    def __init__(
        self,
        snapshots: list[str] | None = None,
        exclusions: dict[str, list[str]] | None = None,
        fail_on_destroy: int | None = None,
    ):
        self.snapshots = list(snapshots or [])
        self.exclusions = dict(exclusions or {})
        self.fail_on_destroy = fail_on_destroy
        self.destroy_calls: list[str] = []

    def list_snapshots(self) -> str:
        return _snap_list_output(self.snapshots)

    def destroy_batch(self, argument: str) -> None:
        self.destroy_calls.append(argument)
        if self.fail_on_destroy == len(self.destroy_calls):
            raise StorageError(f"cannot destroy {argument}")

    def read_exclusion_source(self, identifier: str) -> str:
        if identifier not in self.exclusions:
            raise StorageError(f"Could not read exclude file {identifier}")
        return _snap_list_output(self.exclusions[identifier])

    def exclusion_source_exists(self, identifier: str) -> bool:
        return identifier in self.exclusions


def create_snapshot(dataset: str, time: str, label: str = "CHECKPOINT") -> Snapshot:
    """Build a Snapshot from a dataset and a SNAPSHOT_FORMAT time string."""
    return Snapshot.create(dataset, datetime.strptime(time, SNAPSHOT_FORMAT), label)


def _snap_list_output(full_names: list[str]) -> str:
    return "\n".join(full_names) + "\n"


# ---------------------------------------------------------------------------
# Listing shared by selection and prune tests
# ---------------------------------------------------------------------------

SYSTEM_SNAPS = [
    "boot@2020-08-12-1237-49-CHECKPOINT",
    "tank/gentoo/os@2020-07-13-2354-09-CHECKPOINT",
    "tank/gentoo/os@2020-05-01-1100-00-CHECKPOINT",
    "tank/gentoo/home@2020-04-25-1300-15-CHECKPOINT",
    "tank@2020-01-01-2354-09-CHECKPOINT",
]

EXCLUDE_FILE = "/etc/zprune/keep.txt"
EXCLUDED_SNAPS = ["tank/gentoo/home@2020-04-25-1300-15-CHECKPOINT"]


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage(SYSTEM_SNAPS, {EXCLUDE_FILE: EXCLUDED_SNAPS})
