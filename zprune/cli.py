"""CLI entry point for zprune."""
from __future__ import annotations

import argparse
import logging
import sys

import yaml

from zprune.config import ConfigError, build_config, load_defaults
from zprune.executor import LocalExecutor, SSHExecutor
from zprune.models import DEFAULT_BATCH_SIZE, DEFAULT_MAX_AGE_DAYS
from zprune.prune import RED, RESET, run_prune
from zprune.zfs import StorageError, ZfsStorage


def _make_executor(host: str | None, user: str | None, port: int):
    """Local executor, or SSH when a host is given."""
    if host:
        return SSHExecutor(host=host, user=user, port=port)
    return LocalExecutor()


def _pick(args, defaults: dict, name: str, fallback=None):
    """Command-line value if given, else the config file value, else fallback."""
    value = getattr(args, name, None)
    if value is not None:
        return value
    return defaults.get(name, fallback)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zprune",
        description="A simple snapshot cleaner for ZFS.",
    )
    parser.add_argument("-C", "--config",
                        help="YAML file with default option values")
    parser.add_argument("-p", "--pool", help="The pool you want to clean")
    parser.add_argument("-d", "--date",
                        help="Cut off date; older snapshots are deleted. "
                             "Example: 2017-09-26-1111-00 (default: 30 days ago)")
    parser.add_argument("-e", "--exclude-file", dest="exclude_file",
                        help="Excludes the snapshots listed in this file (one per line)")
    parser.add_argument("-l", "--label",
                        help="Only clean snapshots with this label")
    parser.add_argument("-i", "--per-iteration", dest="batch_size", type=int,
                        help=f"Snapshots to delete per iteration (default: {DEFAULT_BATCH_SIZE})")
    parser.add_argument("-f", "--no-confirm", action="store_true",
                        help="Skip the confirmation prompt (for cron)")
    parser.add_argument("-n", "--dry-run", action="store_true",
                        help="Show what would happen without deleting anything")
    parser.add_argument("-s", "--show-queued", action="store_true",
                        help="Show snapshots that will be removed")
    parser.add_argument("-x", "--show-excluded", action="store_true",
                        help="Show snapshots that will be excluded")
    parser.add_argument("-c", "--show-config", action="store_true",
                        help="Display every configuration option in use")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show each zfs destroy command")
    parser.add_argument("--host", help="Run zfs on this host over SSH")
    parser.add_argument("--user", help="SSH user")
    parser.add_argument("--port", type=int, help="SSH port (default: 22)")
    return parser


def config_from_args(args, storage_factory=None):
    """Merge the YAML defaults with command-line options.

    Returns (config, storage). Raises ConfigError, OSError or yaml.YAMLError.
    """
    defaults = load_defaults(args.config) if args.config else {}

    host = _pick(args, defaults, "host")
    user = _pick(args, defaults, "user")
    port = _pick(args, defaults, "port", 22)

    if storage_factory is None:
        storage = ZfsStorage(_make_executor(host, user, port))
    else:
        storage = storage_factory()

    config = build_config(
        storage,
        pool=_pick(args, defaults, "pool"),
        date=args.date,
        exclude_file=_pick(args, defaults, "exclude_file"),
        label=_pick(args, defaults, "label", ""),
        batch_size=_pick(args, defaults, "batch_size", DEFAULT_BATCH_SIZE),
        confirm=not args.no_confirm,
        dry_run=args.dry_run,
        show_queued=args.show_queued,
        show_excluded=args.show_excluded,
        show_config=args.show_config,
        verbose=args.verbose,
        max_age_days=defaults.get("max_age_days", DEFAULT_MAX_AGE_DAYS),
        host=host,
        user=user,
        port=port,
    )
    return config, storage


def main(argv=None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(format="[%(name)-16s][%(levelname).1s] %(message)s", level=level)

    try:
        config, storage = config_from_args(args)
    except (ConfigError, OSError, yaml.YAMLError) as e:
        print(f"Config error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        rc = run_prune(config, storage)
    except StorageError as e:
        print(f"{RED}ERROR: {e}{RESET}", file=sys.stderr)
        rc = 1
    sys.exit(rc)


if __name__ == "__main__":
    main()
