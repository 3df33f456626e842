"""Tests for scheduler tunables and layered app configuration."""

import pytest
from pydantic import ValidationError

from cadence.application.config import AppConfig, SchedulerConfig, resolve_config
from cadence.domain.models import Rating


@pytest.fixture
def no_config_files(monkeypatch):
    monkeypatch.setattr("cadence.application.config.CONFIG_FILES", [])


class TestSchedulerConfig:
    def test_defaults(self):
        config = SchedulerConfig()
        assert config.initial_ease == 2.5
        assert config.minimum_ease == 1.3
        assert config.new_item_intervals[Rating.EASY] == 7
        assert config.graduation_intervals["good"] == 2
        assert config.ease_bonus[Rating.AGAIN] == pytest.approx(-0.2)
        assert config.interval_multiplier.hard == 1.2

    def test_is_immutable(self):
        config = SchedulerConfig()
        with pytest.raises(ValidationError):
            config.max_interval_days = 10

    def test_initial_ease_below_floor_rejected(self):
        with pytest.raises(ValidationError):
            SchedulerConfig(initial_ease=1.2, minimum_ease=1.3)

    def test_negative_interval_rejected(self):
        with pytest.raises(ValidationError):
            SchedulerConfig(new_item_intervals={"again": -1, "hard": 1, "good": 3, "easy": 7})

    def test_unknown_rating_lookup(self):
        with pytest.raises(ValueError):
            SchedulerConfig().ease_bonus["meh"]


class TestResolveConfig:
    def test_paths_derive_from_data_dir(self, tmp_path, mock_home, no_config_files):
        config = resolve_config({"data_dir": tmp_path / "data"})

        assert config.db_path == tmp_path / "data" / "cadence.db"
        assert config.session_path == tmp_path / "data" / "session.json"
        assert config.log_dir == mock_home / ".config/cadence/logs"

    def test_none_overrides_are_ignored(self, mock_home, no_config_files):
        config = resolve_config({"user_id": None, "new_items_per_day": None})
        assert config.user_id == "local"
        assert config.new_items_per_day == 10

    def test_env_overrides_nested_scheduler(self, mock_home, no_config_files, monkeypatch):
        monkeypatch.setenv("CADENCE_SCHEDULER__MAX_INTERVAL_DAYS", "90")
        monkeypatch.setenv("CADENCE_USER_ID", "bob")

        config = resolve_config()

        assert config.scheduler.max_interval_days == 90
        assert config.user_id == "bob"

    def test_cli_beats_env_beats_file(self, tmp_path, mock_home, monkeypatch):
        toml_file = tmp_path / "config.toml"
        toml_file.write_text('user_id = "from-file"\nnew_items_per_day = 3\nseed = 5\n')
        monkeypatch.setattr("cadence.application.config.CONFIG_FILES", [toml_file])
        monkeypatch.setenv("CADENCE_NEW_ITEMS_PER_DAY", "7")

        config = resolve_config({"user_id": "from-cli"})

        assert config.user_id == "from-cli"
        assert config.new_items_per_day == 7
        assert config.seed == 5

    def test_single_table_entry_from_env(self, mock_home, no_config_files, monkeypatch):
        monkeypatch.setenv("CADENCE_SCHEDULER__NEW_ITEM_INTERVALS__GOOD", "4")

        scheduler = resolve_config().scheduler

        assert scheduler.new_item_intervals[Rating.GOOD] == 4
        assert scheduler.new_item_intervals[Rating.EASY] == 7
        assert scheduler.graduation_intervals[Rating.GOOD] == 2

    def test_single_table_entry_from_toml(self, tmp_path, mock_home, monkeypatch):
        toml_file = tmp_path / "config.toml"
        toml_file.write_text("[scheduler.ease_bonus]\neasy = 0.2\n")
        monkeypatch.setattr("cadence.application.config.CONFIG_FILES", [toml_file])

        scheduler = resolve_config().scheduler

        assert scheduler.ease_bonus[Rating.EASY] == pytest.approx(0.2)
        assert scheduler.ease_bonus[Rating.HARD] == pytest.approx(-0.15)

    def test_partial_table_still_validated(self, mock_home, no_config_files, monkeypatch):
        monkeypatch.setenv("CADENCE_SCHEDULER__GRADUATION_INTERVALS__HARD", "-1")
        with pytest.raises(ValidationError):
            resolve_config()

    def test_home_is_expanded(self, mock_home, no_config_files):
        config = AppConfig(data_dir="~/srs")
        assert config.data_dir == mock_home / "srs"

    def test_negative_new_item_limit_rejected(self, mock_home, no_config_files):
        with pytest.raises(ValidationError):
            resolve_config({"new_items_per_day": -1})
