"""Unified configuration loaded from .hackfeed.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".hackfeed.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
    Path.home() / ".config" / "hackfeed",
]


class StoreConfig(BaseModel):
    """[store] section."""

    directory: str = "./data"


class GenerationConfig(BaseModel):
    """[generation] section."""

    per_category: int = Field(default=10, ge=0)
    timeout: int = Field(default=120, gt=0)
    model: str | None = None
    # Cumulative cut points: beginner below the first, intermediate below the second.
    difficulty_split: list[float] = Field(default_factory=lambda: [0.6, 0.9])

    @field_validator("difficulty_split")
    @classmethod
    def _check_split(cls, value: list[float]) -> list[float]:
        if len(value) != 2 or not 0.0 <= value[0] <= value[1] <= 1.0:
            raise ValueError("difficulty_split must be two ascending fractions in [0, 1]")
        return value


class RefreshConfig(BaseModel):
    """[refresh] section."""

    publish_per_category: int = Field(default=10, ge=0)


class RecycleConfig(BaseModel):
    """[recycle] section."""

    limit: int = Field(default=20, ge=0)
    min_age_days: int = 30
    min_likes: int = 10
    min_views: int = 100
    like_ratio: float = 2.0


class UsersConfig(BaseModel):
    """[users] section."""

    streak_inactive_days: int = 2
    admin_user_id: str = ""


class ScheduleConfig(BaseModel):
    """[schedule] section — hour of day for each daily job."""

    refresh: int = Field(default=0, ge=0, le=23)
    reconcile: int = Field(default=1, ge=0, le=23)
    recycle: int = Field(default=2, ge=0, le=23)
    streaks: int = Field(default=3, ge=0, le=23)
    subscriptions: int = Field(default=4, ge=0, le=23)
    poll_seconds: int = Field(default=60, gt=0)
    timezone: str = "UTC"

    @model_validator(mode="after")
    def _distinct_hours(self) -> ScheduleConfig:
        hours = self.job_hours()
        if len(set(hours.values())) != len(hours):
            raise ValueError(f"scheduled job hours must be distinct: {hours}")
        return self

    def job_hours(self) -> dict[str, int]:
        return {
            "refresh": self.refresh,
            "reconcile": self.reconcile,
            "recycle": self.recycle,
            "streaks": self.streaks,
            "subscriptions": self.subscriptions,
        }


class DuplicatesConfig(BaseModel):
    """[duplicates] section.

    The per-item query and the corpus sweep keep separate weights and
    thresholds; they are not interchangeable.
    """

    title_prefilter: float = 0.8
    title_weight: float = 0.4
    body_weight: float = 0.6
    sweep_threshold: float = 0.7
    sweep_body_weight: float = 0.7
    sweep_title_weight: float = 0.3


class LoggingConfig(BaseModel):
    """[logging] section."""

    level: str = "INFO"


class HackfeedConfig(BaseModel):
    """Top-level configuration model."""

    store: StoreConfig = Field(default_factory=StoreConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    refresh: RefreshConfig = Field(default_factory=RefreshConfig)
    recycle: RecycleConfig = Field(default_factory=RecycleConfig)
    users: UsersConfig = Field(default_factory=UsersConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    duplicates: DuplicatesConfig = Field(default_factory=DuplicatesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def data_dir(self) -> Path:
        return Path(self.store.directory)


def load_config(path: str | Path | None = None) -> HackfeedConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .hackfeed.toml in CWD
    3. ~/.config/hackfeed/config.toml

    Then overlay environment variables.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        global_config = Path.home() / ".config" / "hackfeed" / "config.toml"
        if not data and global_config.exists():
            data = _load_toml(global_config)
            logger.info("Loaded config from %s", global_config)

    config = HackfeedConfig.model_validate(data) if data else HackfeedConfig()
    return _apply_env_vars(config)


def merge_cli_overrides(config: HackfeedConfig, **cli_kwargs: object) -> HackfeedConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the flag was provided (not None).
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "data_dir": ("store", "directory"),
        "model": ("generation", "model"),
        "per_category": ("generation", "per_category"),
        "timeout": ("generation", "timeout"),
        "publish_per_category": ("refresh", "publish_per_category"),
        "recycle_limit": ("recycle", "limit"),
        "admin_user_id": ("users", "admin_user_id"),
        "log_level": ("logging", "level"),
    }

    for key, value in cli_kwargs.items():
        if value is None or key not in mapping:
            continue
        section, field = mapping[key]
        data[section][field] = value

    return HackfeedConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: HackfeedConfig) -> HackfeedConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "HACKFEED_DATA_DIR": ("store", "directory"),
        "HACKFEED_MODEL": ("generation", "model"),
        "HACKFEED_ADMIN_USER_ID": ("users", "admin_user_id"),
        "HACKFEED_LOG_LEVEL": ("logging", "level"),
        "HACKFEED_TIMEZONE": ("schedule", "timezone"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    for env_var, field in (
        ("HACKFEED_GENERATION_TIMEOUT", "timeout"),
        ("HACKFEED_PER_CATEGORY", "per_category"),
    ):
        raw = os.environ.get(env_var)
        if raw is None:
            continue
        try:
            value = int(raw)
            GenerationConfig.model_validate({**data["generation"], field: value})
        except ValueError:  # includes pydantic.ValidationError
            logger.warning(
                "Ignoring invalid %s=%r, keeping %s", env_var, raw, data["generation"][field]
            )
            continue
        data["generation"][field] = value

    return HackfeedConfig.model_validate(data)
