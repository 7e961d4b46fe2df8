"""Prune run: report, select, confirm, destroy."""
from __future__ import annotations

import os
from typing import TYPE_CHECKING

from zprune.destroy import destroy_snapshots
from zprune.models import SNAPSHOT_FORMAT, Snapshot
from zprune.selection import relevant_snapshots, resolve_exclusions

if TYPE_CHECKING:
    from zprune.models import PruneConfig
    from zprune.zfs import Storage

# ANSI color codes (respect NO_COLOR convention: https://no-color.org)
if os.environ.get("NO_COLOR") is not None:
    GREEN = RED = YELLOW = RESET = ""
else:
    GREEN = "\033[32m"
    RED = "\033[31m"
    YELLOW = "\033[33m"
    RESET = "\033[0m"

RULE = "-" * 16


def _confirm(prompt: str) -> bool:
    """Ask the user yes/no. Return True if yes."""
    try:
        answer = input(f"{prompt} [y/N]: ").strip().lower()
    except (EOFError, KeyboardInterrupt):
        print()
        return False
    return answer in ("y", "yes")


def print_config(config: "PruneConfig") -> None:
    print("Configuration")
    print(RULE)
    rows = [
        ("Pool", config.pool),
        ("Cut Off Date", config.cutoff.strftime(SNAPSHOT_FORMAT)),
        ("Exclude File", config.exclude_file or ""),
        ("Label (Filter)", config.label),
    ]
    if config.show_config:
        rows += [
            ("Show Queued", config.show_queued),
            ("Show Excluded", config.show_excluded),
            ("Dry Run", config.dry_run),
            ("Iteration Amount (Batch)", config.batch_size),
            ("Ask For Confirmation", config.confirm),
            ("Host", config.host or "local"),
        ]
    for name, value in rows:
        print(f"{name}: {value}")
    print()


def _print_listing(title: str, snapshots: list[Snapshot]) -> None:
    print(title)
    print(RULE)
    for snap in snapshots:
        print(snap.full_name)
    print()


def run_prune(config: "PruneConfig", storage: "Storage") -> int:
    """
    Run a prune job. Returns exit code (0=success, 1=aborted by user).

    StorageError propagates to the caller; the caller decides the exit code.
    """
    print_config(config)

    excluded = resolve_exclusions(storage, config)
    stale = relevant_snapshots(storage, config, excluded)

    if config.show_queued:
        _print_listing("These snapshots are QUEUED for REMOVAL:", stale)
    if config.show_excluded:
        _print_listing("These snapshots are EXCLUDED from REMOVAL:", excluded)

    print(f"Amount of Snapshots to Remove: {len(stale)}")
    print(f"Amount of Snapshots to Exclude: {len(excluded)}")
    print()

    if not stale:
        print(f"{GREEN}Your pool is already clean. Take care!{RESET}")
        return 0

    if config.dry_run:
        destroy_snapshots(storage, stale, config.batch_size, dry_run=True)
        print(f"{YELLOW}[dry-run] Nothing was deleted.{RESET}")
        return 0

    if config.confirm:
        if not _confirm("Do you want to delete the above snapshots?"):
            print("Nothing will be deleted. Take care!")
            return 1
        print()

    deleted = destroy_snapshots(
        storage, stale, config.batch_size, verbose=config.verbose,
    )
    print(f"{GREEN}Deleted {len(deleted)} snapshot(s).{RESET}")
    return 0
