"""Data models for zprune."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

# Timestamp embedded in snapshot names, e.g. 2020-08-13-2354-09
SNAPSHOT_FORMAT = "%Y-%m-%d-%H%M-%S"
DEFAULT_BATCH_SIZE = 100
DEFAULT_MAX_AGE_DAYS = 30


@dataclass(frozen=True, order=True)
class Snapshot:
    """A ZFS snapshot: pool/dataset@YYYY-MM-DD-HHMM-SS-label."""
    pool: str
    dataset: str
    timestamp: datetime
    label: str
    suffix: str = field(init=False)  # "<timestamp>-<label>", the part after '@'

    def __post_init__(self) -> None:
        suffix = f"{self.timestamp.strftime(SNAPSHOT_FORMAT)}-{self.label}"
        object.__setattr__(self, "suffix", suffix)

    def __str__(self) -> str:
        return self.full_name

    @property
    def full_name(self) -> str:
        return f"{self.dataset}@{self.suffix}"

    def is_stale(self, cutoff: datetime) -> bool:
        return self.timestamp < cutoff

    @classmethod
    def create(cls, dataset: str, timestamp: datetime, label: str) -> "Snapshot":
        return cls(
            pool=dataset.split("/")[0],
            dataset=dataset,
            timestamp=timestamp,
            label=label,
        )

    @classmethod
    def parse(cls, full_name: str) -> "Snapshot":
        """Parse ``dataset@YYYY-MM-DD-HHMM-SS-label``.

        Raises ValueError unless the name has exactly one '@' and exactly six
        '-' separated fields after it, the first five forming a valid time.
        """
        parts = full_name.split("@")
        if len(parts) != 2:
            raise ValueError(f"Not a snapshot: {full_name!r}")
        dataset, suffix = parts

        fields = suffix.split("-")
        if len(fields) != 6:
            raise ValueError(
                f"Expected 6 '-' separated fields after '@', got {len(fields)}: {full_name!r}"
            )
        stamp = "-".join(fields[:5])
        try:
            timestamp = datetime.strptime(stamp, SNAPSHOT_FORMAT)
        except ValueError as e:
            raise ValueError(f"Invalid timestamp {stamp!r} in {full_name!r}: {e}") from e
        # strptime accepts unpadded fields; the name must match its own suffix
        if timestamp.strftime(SNAPSHOT_FORMAT) != stamp:
            raise ValueError(f"Invalid timestamp {stamp!r} in {full_name!r}: not zero-padded")

        return cls(
            pool=dataset.split("/")[0],
            dataset=dataset,
            timestamp=timestamp,
            label=fields[5],
        )


@dataclass(frozen=True)
class PruneConfig:
    """Validated run parameters. Build with zprune.config.build_config."""
    pool: str
    cutoff: datetime
    exclude_file: str | None = None
    label: str = ""              # empty: every label
    batch_size: int = DEFAULT_BATCH_SIZE
    confirm: bool = True
    dry_run: bool = False
    show_queued: bool = False
    show_excluded: bool = False
    show_config: bool = False
    verbose: bool = False
    host: str | None = None
    user: str | None = None
    port: int = 22

    @property
    def is_remote(self) -> bool:
        return self.host is not None
