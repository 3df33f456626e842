from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from cadence.domain.constants import (
    DEFAULT_INITIAL_EASE,
    DEFAULT_MAX_INTERVAL_DAYS,
    DEFAULT_MINIMUM_EASE,
    DEFAULT_NEW_ITEMS_PER_DAY,
    LAPSE_INTERVAL_DAYS,
)
from cadence.domain.models import Rating

CONFIG_FILES = [
    Path.home() / ".config/cadence/config.toml",
    Path.home() / ".cadence.toml",
]


class RatingTable(BaseModel):
    """One value per rating, looked up with `table[rating]`."""

    model_config = ConfigDict(frozen=True)

    again: float
    hard: float
    good: float
    easy: float

    def __getitem__(self, rating: Rating | str) -> float:
        return getattr(self, Rating.parse(rating).value)


class IntervalTable(RatingTable):
    """Fixed intervals in days; must be non-negative."""

    @model_validator(mode="after")
    def _non_negative(self) -> "IntervalTable":
        for rating in Rating:
            if self[rating] < 0:
                raise ValueError(f"interval for '{rating.value}' must be >= 0")
        return self


class EaseBonus(RatingTable):
    again: float = -0.20
    hard: float = -0.15
    good: float = 0.0
    easy: float = 0.15


class NewItemIntervals(IntervalTable):
    """Intervals for an item's first rating."""

    again: float = LAPSE_INTERVAL_DAYS
    hard: float = 1
    good: float = 3
    easy: float = 7


class GraduationIntervals(IntervalTable):
    """Intervals for leaving the learning or relearning phase."""

    again: float = LAPSE_INTERVAL_DAYS
    hard: float = 1
    good: float = 2
    easy: float = 4


class IntervalMultiplier(BaseModel):
    model_config = ConfigDict(frozen=True)

    hard: float = Field(default=1.2, gt=0)
    easy: float = Field(default=1.3, gt=0)  # applied on top of the ease factor


class SchedulerConfig(BaseModel):
    """
    Immutable tunables for the scheduling algorithm.

    Defaults reproduce the product's shipped behaviour: new items graduate to
    1/3/7 days, learning items to 1/2/4 days, lapses restart at 10 minutes.
    """

    model_config = ConfigDict(frozen=True)

    initial_ease: float = DEFAULT_INITIAL_EASE
    minimum_ease: float = Field(default=DEFAULT_MINIMUM_EASE, gt=0)
    ease_bonus: EaseBonus = EaseBonus()
    interval_multiplier: IntervalMultiplier = IntervalMultiplier()
    new_item_intervals: NewItemIntervals = NewItemIntervals()
    graduation_intervals: GraduationIntervals = GraduationIntervals()
    max_interval_days: float = Field(default=DEFAULT_MAX_INTERVAL_DAYS, gt=0)

    @model_validator(mode="after")
    def _initial_ease_above_floor(self) -> "SchedulerConfig":
        if self.initial_ease < self.minimum_ease:
            raise ValueError("initial_ease must be >= minimum_ease")
        return self


DEFAULT_SCHEDULER_CONFIG = SchedulerConfig()


class AppConfig(BaseSettings):
    """
    Configuration model for cadence.
    Supports loading from:
    1. Config file (~/.config/cadence/config.toml or ~/.cadence.toml)
    2. Environment variables (CADENCE_*, nested with __)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="CADENCE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    user_id: str = "local"

    # Daily cap on never-reviewed items; 0 means unlimited
    new_items_per_day: int = Field(default=DEFAULT_NEW_ITEMS_PER_DAY, ge=0)

    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)

    # Paths
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local/share/cadence")
    db_path: Path | None = None
    session_path: Path | None = None
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".config/cadence/logs")

    verbose: int = 1
    seed: int | None = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # Earlier sources win: CLI overrides, then env, then the first config file found
        toml_file = next((f for f in CONFIG_FILES if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("data_dir", "log_dir", mode="before")
    @classmethod
    def expand_dir(cls, v: Any) -> Path:
        return Path(v).expanduser()

    @field_validator("db_path", "session_path", mode="before")
    @classmethod
    def expand_optional_path(cls, v: Any) -> Path | None:
        if v is None:
            return None
        return Path(v).expanduser()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/cadence/config.toml (if exists)
    3. Environment variables (CADENCE_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    config = AppConfig(**overrides)

    if config.db_path is None:
        config.db_path = config.data_dir / "cadence.db"
    if config.session_path is None:
        config.session_path = config.data_dir / "session.json"

    return config
