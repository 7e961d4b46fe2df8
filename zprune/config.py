"""Validate run parameters and load optional YAML defaults."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

import yaml

from zprune.models import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_AGE_DAYS,
    SNAPSHOT_FORMAT,
    PruneConfig,
)

if TYPE_CHECKING:
    from zprune.zfs import Storage

# Keys accepted in the YAML defaults file
_STRING_KEYS = ("pool", "label", "exclude_file", "host", "user")
_INT_KEYS = ("batch_size", "max_age_days", "port")


class ConfigError(Exception):
    pass


def _positive_int(name: str, value) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    if number < 1:
        raise ConfigError(f"{name} must be >= 1, got {number}")
    return number


def load_defaults(path: str) -> dict:
    """Load default option values from a YAML file.

    Example:
        pool: tank
        label: CHECKPOINT
        exclude_file: /etc/zprune/keep.txt
        batch_size: 50
        max_age_days: 14
    """
    with open(path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config must be a YAML mapping: {path}")

    unknown = sorted(set(raw) - set(_STRING_KEYS) - set(_INT_KEYS))
    if unknown:
        raise ConfigError(f"Unknown config key(s): {', '.join(map(str, unknown))}")

    defaults = {}
    for key in _STRING_KEYS:
        if raw.get(key) is not None:
            defaults[key] = str(raw[key]).strip()
    for key in _INT_KEYS:
        if raw.get(key) is not None:
            defaults[key] = _positive_int(key, raw[key])
    return defaults


def parse_cutoff(date: str) -> datetime:
    try:
        cutoff = datetime.strptime(date, SNAPSHOT_FORMAT)
    except ValueError:
        cutoff = None
    if cutoff is None or cutoff.strftime(SNAPSHOT_FORMAT) != date:
        raise ConfigError(
            f"Error parsing date {date!r}. Example: 2017-09-26-1111-00"
        )
    return cutoff


def default_cutoff(now: datetime | None = None, max_age_days: int = DEFAULT_MAX_AGE_DAYS) -> datetime:
    if now is None:
        now = datetime.now().replace(microsecond=0)
    return now - timedelta(days=max_age_days)


def build_config(
    storage: "Storage",
    pool: str | None,
    date: str | None = None,
    exclude_file: str | None = None,
    label: str | None = "",
    batch_size: int = DEFAULT_BATCH_SIZE,
    confirm: bool = True,
    dry_run: bool = False,
    show_queued: bool = False,
    show_excluded: bool = False,
    show_config: bool = False,
    verbose: bool = False,
    max_age_days: int = DEFAULT_MAX_AGE_DAYS,
    host: str | None = None,
    user: str | None = None,
    port: int = 22,
    now: datetime | None = None,
) -> PruneConfig:
    """Validate raw option values and return a PruneConfig.

    The exclude file is checked through ``storage``, so a fake storage can
    stand in for the filesystem.
    """
    if not pool:
        raise ConfigError("Pool name not provided. Example: -p tank")

    batch_size = _positive_int("batch size", batch_size)
    max_age_days = _positive_int("max_age_days", max_age_days)

    if date:
        cutoff = parse_cutoff(date)
    else:
        cutoff = default_cutoff(now, max_age_days)

    exclude_file = exclude_file or None
    if exclude_file is not None and not storage.exclusion_source_exists(exclude_file):
        raise ConfigError(f"Exclude file doesn't exist: {exclude_file}")

    return PruneConfig(
        pool=pool,
        cutoff=cutoff,
        exclude_file=exclude_file,
        label=label or "",
        batch_size=batch_size,
        confirm=confirm,
        dry_run=dry_run,
        show_queued=show_queued,
        show_excluded=show_excluded,
        show_config=show_config,
        verbose=verbose,
        host=host or None,
        user=user or None,
        port=int(port),
    )
