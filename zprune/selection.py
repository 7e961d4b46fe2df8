"""Select stale snapshots: parse listings, filter, apply exclusions."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Iterable

from zprune.models import Snapshot

if TYPE_CHECKING:
    from zprune.models import PruneConfig
    from zprune.zfs import Storage

logger = logging.getLogger(__name__)


def parse_snapshot(name: str) -> Snapshot | None:
    """Return the parsed snapshot, or None (with a warning) if it is malformed."""
    try:
        return Snapshot.parse(name)
    except ValueError as e:
        logger.warning("Snapshot is invalid, skipping: %s", e)
        return None


def parse_snapshots(lines: Iterable[str]) -> list[Snapshot]:
    """Parse raw snapshot names, dropping blank and malformed lines."""
    results = []
    for line in lines:
        name = line.strip()
        if not name:
            continue
        snap = parse_snapshot(name)
        if snap is not None:
            results.append(snap)
    return results


def filter_by_pool_and_label(
    snapshots: list[Snapshot],
    pool: str,
    label: str = "",
) -> list[Snapshot]:
    """Keep snapshots in ``pool``; when ``label`` is set, also require an exact label match."""
    if not label:
        return [s for s in snapshots if s.pool == pool]
    return [s for s in snapshots if s.pool == pool and s.label == label]


def filter_stale(snapshots: list[Snapshot], cutoff: datetime) -> list[Snapshot]:
    """Keep snapshots strictly older than ``cutoff``."""
    return [s for s in snapshots if s.is_stale(cutoff)]


def resolve_exclusions(storage: "Storage", config: "PruneConfig") -> list[Snapshot]:
    """
    Read the configured exclude source and return the snapshots it protects.

    Entries are scoped by the run's pool and label: an entry for another pool
    or label is dropped here and has no effect on the run.
    """
    if not config.exclude_file:
        return []
    contents = storage.read_exclusion_source(config.exclude_file)
    return filter_by_pool_and_label(
        parse_snapshots(contents.splitlines()), config.pool, config.label,
    )


def subtract_exclusions(
    candidates: list[Snapshot],
    excluded: list[Snapshot],
) -> list[Snapshot]:
    """Remove every candidate equal to an excluded snapshot, preserving order."""
    protected = set(excluded)
    return [s for s in candidates if s not in protected]


def relevant_snapshots(
    storage: "Storage",
    config: "PruneConfig",
    excluded: list[Snapshot],
) -> list[Snapshot]:
    """Return the snapshots this run should destroy."""
    snapshots = parse_snapshots(storage.list_snapshots().splitlines())
    snapshots = filter_by_pool_and_label(snapshots, config.pool, config.label)
    stale = filter_stale(snapshots, config.cutoff)
    # Exclusions always win, whatever the snapshot's age
    return subtract_exclusions(stale, excluded)
