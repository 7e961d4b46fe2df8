"""Tests for zprune.config module."""
from __future__ import annotations

import textwrap
from datetime import datetime

import pytest

from zprune.config import ConfigError, build_config, default_cutoff, load_defaults
from tests.conftest import EXCLUDE_FILE, FakeStorage

NOW = datetime(2020, 9, 30, 12, 0, 0)


def _write_config(tmp_path, yaml_text: str) -> str:
    p = tmp_path / "zprune.yaml"
    p.write_text(textwrap.dedent(yaml_text))
    return str(p)


class TestBuildConfigValid:
    def test_minimal(self):
        config = build_config(FakeStorage(), "tank", now=NOW)
        assert config.pool == "tank"
        assert config.cutoff == datetime(2020, 8, 31, 12, 0, 0)
        assert config.exclude_file is None
        assert config.label == ""
        assert config.batch_size == 100
        assert config.confirm is True
        assert config.dry_run is False
        assert not config.is_remote

    def test_explicit_date(self):
        config = build_config(FakeStorage(), "tank", date="2017-09-26-1111-00")
        assert config.cutoff == datetime(2017, 9, 26, 11, 11, 0)

    def test_max_age_days(self):
        config = build_config(FakeStorage(), "tank", max_age_days=7, now=NOW)
        assert config.cutoff == datetime(2020, 9, 23, 12, 0, 0)

    def test_existing_exclude_file(self):
        storage = FakeStorage(exclusions={EXCLUDE_FILE: []})
        config = build_config(storage, "tank", exclude_file=EXCLUDE_FILE)
        assert config.exclude_file == EXCLUDE_FILE

    def test_empty_exclude_file_means_none(self):
        config = build_config(FakeStorage(), "tank", exclude_file="")
        assert config.exclude_file is None

    def test_flags_and_label(self):
        config = build_config(
            FakeStorage(), "tank", label="CHECKPOINT", batch_size="5",
            confirm=False, dry_run=True, show_queued=True, show_excluded=True,
        )
        assert config.label == "CHECKPOINT"
        assert config.batch_size == 5
        assert (config.confirm, config.dry_run) == (False, True)
        assert config.show_queued and config.show_excluded

    def test_default_cutoff_drops_microseconds(self):
        assert default_cutoff().microsecond == 0


class TestBuildConfigInvalid:
    @pytest.mark.parametrize("pool", ["", None])
    def test_missing_pool(self, pool):
        with pytest.raises(ConfigError, match="Pool name not provided"):
            build_config(FakeStorage(), pool)

    @pytest.mark.parametrize("date", [
        "2017-09-26", "yesterday", "2017-09-26-1111-00-X",
        "2017-9-26-1111-00", "2017-09-26-111-00",
    ])
    def test_bad_date(self, date):
        with pytest.raises(ConfigError, match="Error parsing date"):
            build_config(FakeStorage(), "tank", date=date)

    def test_missing_exclude_file(self):
        with pytest.raises(ConfigError, match="doesn't exist"):
            build_config(FakeStorage(), "tank", exclude_file="/nope")

    @pytest.mark.parametrize("batch_size", [0, -3, "many", True])
    def test_bad_batch_size(self, batch_size):
        with pytest.raises(ConfigError, match="batch size"):
            build_config(FakeStorage(), "tank", batch_size=batch_size)


class TestLoadDefaults:
    def test_full(self, tmp_path):
        path = _write_config(tmp_path, """\
            pool: tank
            label: CHECKPOINT
            exclude_file: /etc/zprune/keep.txt
            batch_size: 50
            max_age_days: 14
            host: nas
            user: root
            port: 2222
        """)
        assert load_defaults(path) == {
            "pool": "tank",
            "label": "CHECKPOINT",
            "exclude_file": "/etc/zprune/keep.txt",
            "batch_size": 50,
            "max_age_days": 14,
            "host": "nas",
            "user": "root",
            "port": 2222,
        }

    def test_empty_file(self, tmp_path):
        assert load_defaults(_write_config(tmp_path, "")) == {}

    def test_null_values_ignored(self, tmp_path):
        path = _write_config(tmp_path, "pool: tank\nlabel:\n")
        assert load_defaults(path) == {"pool": "tank"}

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ConfigError, match="YAML mapping"):
            load_defaults(_write_config(tmp_path, "- tank\n"))

    def test_unknown_key(self, tmp_path):
        with pytest.raises(ConfigError, match="Unknown config key"):
            load_defaults(_write_config(tmp_path, "pool: tank\niterations: 5\n"))

    def test_negative_batch_size(self, tmp_path):
        with pytest.raises(ConfigError, match="batch_size must be >= 1"):
            load_defaults(_write_config(tmp_path, "batch_size: -1\n"))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_defaults(str(tmp_path / "missing.yaml"))
