"""Tests for src/config.py — HackfeedConfig, TOML loading, CLI overrides."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from hackfeed.config import (
    GenerationConfig,
    HackfeedConfig,
    load_config,
    merge_cli_overrides,
)


class TestHackfeedConfigDefaults:
    def test_default_store(self):
        cfg = HackfeedConfig()
        assert cfg.store.directory == "./data"
        assert cfg.data_dir == Path("./data")

    def test_default_generation(self):
        cfg = HackfeedConfig()
        assert cfg.generation.per_category == 10
        assert cfg.generation.timeout == 120
        assert cfg.generation.difficulty_split == [0.6, 0.9]

    def test_default_recycle(self):
        cfg = HackfeedConfig()
        assert cfg.recycle.limit == 20
        assert cfg.recycle.min_age_days == 30
        assert cfg.recycle.like_ratio == 2.0

    def test_default_schedule(self):
        cfg = HackfeedConfig()
        assert cfg.schedule.job_hours() == {
            "refresh": 0,
            "reconcile": 1,
            "recycle": 2,
            "streaks": 3,
            "subscriptions": 4,
        }

    def test_default_duplicates(self):
        cfg = HackfeedConfig()
        assert cfg.duplicates.title_prefilter == 0.8
        assert cfg.duplicates.sweep_threshold == 0.7


class TestValidation:
    def test_bad_split(self):
        with pytest.raises(ValidationError):
            GenerationConfig(difficulty_split=[0.9, 0.6])

    def test_bad_timeout(self):
        with pytest.raises(ValidationError):
            GenerationConfig(timeout=0)


class TestLoadConfig:
    def test_explicit_path(self, tmp_path: Path):
        config_file = tmp_path / ".hackfeed.toml"
        config_file.write_text(
            '[store]\ndirectory = "/srv/feed"\n\n'
            "[generation]\nper_category = 4\n\n"
            "[schedule]\nrefresh = 6\n",
            encoding="utf-8",
        )
        with patch.dict(os.environ, {}, clear=True):
            cfg = load_config(config_file)
        assert cfg.store.directory == "/srv/feed"
        assert cfg.generation.per_category == 4
        assert cfg.schedule.refresh == 6

    def test_missing_file_returns_defaults(self, tmp_path: Path):
        with patch.dict(os.environ, {}, clear=True):
            cfg = load_config(tmp_path / "missing.toml")
        assert cfg.generation.per_category == 10

    def test_invalid_toml_returns_defaults(self, tmp_path: Path):
        config_file = tmp_path / "bad.toml"
        config_file.write_text("[store\ndirectory = ", encoding="utf-8")
        with patch.dict(os.environ, {}, clear=True):
            cfg = load_config(config_file)
        assert cfg.store.directory == "./data"

    def test_env_overrides(self, tmp_path: Path):
        env = {
            "HACKFEED_DATA_DIR": "/tmp/feed",
            "HACKFEED_MODEL": "sonnet",
            "HACKFEED_ADMIN_USER_ID": "admin-9",
            "HACKFEED_GENERATION_TIMEOUT": "45",
            "HACKFEED_PER_CATEGORY": "3",
            "HACKFEED_TIMEZONE": "Europe/Paris",
        }
        with patch.dict(os.environ, env, clear=True):
            cfg = load_config(tmp_path / "missing.toml")
        assert cfg.store.directory == "/tmp/feed"
        assert cfg.generation.model == "sonnet"
        assert cfg.users.admin_user_id == "admin-9"
        assert cfg.generation.timeout == 45
        assert cfg.generation.per_category == 3
        assert cfg.schedule.timezone == "Europe/Paris"

    def test_malformed_int_env_keeps_defaults(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ):
        env = {"HACKFEED_GENERATION_TIMEOUT": "2m", "HACKFEED_PER_CATEGORY": "ten"}
        with patch.dict(os.environ, env, clear=True):
            cfg = load_config(tmp_path / "missing.toml")
        assert cfg.generation.timeout == 120
        assert cfg.generation.per_category == 10
        assert "HACKFEED_GENERATION_TIMEOUT" in caplog.text
        assert "HACKFEED_PER_CATEGORY" in caplog.text

    def test_out_of_range_env_keeps_file_value(self, tmp_path: Path):
        config_file = tmp_path / ".hackfeed.toml"
        config_file.write_text("[generation]\ntimeout = 30\n", encoding="utf-8")
        env = {"HACKFEED_GENERATION_TIMEOUT": "0", "HACKFEED_PER_CATEGORY": "4"}
        with patch.dict(os.environ, env, clear=True):
            cfg = load_config(config_file)
        assert cfg.generation.timeout == 30
        assert cfg.generation.per_category == 4


class TestMergeCliOverrides:
    def test_only_set_values(self):
        cfg = merge_cli_overrides(HackfeedConfig(), data_dir="/x", model=None, recycle_limit=5)
        assert cfg.store.directory == "/x"
        assert cfg.generation.model is None
        assert cfg.recycle.limit == 5

    def test_unknown_keys_ignored(self):
        cfg = merge_cli_overrides(HackfeedConfig(), nonsense="value")
        assert cfg == HackfeedConfig()
