"""ZFS storage operations using an Executor for dependency injection."""
from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from zprune.executor import ExecutorError

if TYPE_CHECKING:
    from zprune.executor import Executor

logger = logging.getLogger(__name__)

LIST_SNAPSHOTS_CMD = ["zfs", "list", "-t", "snapshot", "-H", "-o", "name", "-s", "name"]


class StorageError(Exception):
    """Listing, destroying or reading the exclude source failed."""


@runtime_checkable
class Storage(Protocol):
    def list_snapshots(self) -> str:
        """Return every snapshot name on the system, one per line."""
        raise NotImplementedError

    def destroy_batch(self, argument: str) -> None:
        """Destroy ``dataset@suffix1,suffix2,...`` in a single call."""
        raise NotImplementedError

    def read_exclusion_source(self, identifier: str) -> str:
        """Return the exclude source contents, one snapshot name per line."""
        raise NotImplementedError

    def exclusion_source_exists(self, identifier: str) -> bool:
        raise NotImplementedError


class ZfsStorage:
    """Storage backed by the ``zfs`` command and local exclude files."""

    def __init__(self, executor: "Executor"):
        self.executor = executor

    @property
    def label(self) -> str:
        return self.executor.label

    def list_snapshots(self) -> str:
        try:
            return self.executor.run(LIST_SNAPSHOTS_CMD)
        except ExecutorError as e:
            raise StorageError(f"Could not list snapshots ({self.label}): {e}") from e

    def destroy_batch(self, argument: str) -> None:
        cmd = ["zfs", "destroy", argument]
        logger.debug("[%s] %s", self.label, " ".join(cmd))
        try:
            self.executor.run(cmd)
        except ExecutorError as e:
            raise StorageError(f"Could not destroy {argument} ({self.label}): {e}") from e

    def read_exclusion_source(self, identifier: str) -> str:
        try:
            with open(identifier) as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Could not read exclude file {identifier}: {e}") from e

    def exclusion_source_exists(self, identifier: str) -> bool:
        return os.path.exists(identifier)
