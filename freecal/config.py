"""
Configuration management using Pydantic models loaded from YAML.
"""

from datetime import time
from pathlib import Path
from typing import Any, List
from zoneinfo import ZoneInfoNotFoundError

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import WorkingHours
from .domain.timeutils import parse_clock


class WorkdayConfig(BaseModel):
    """Daily work window and minimum slot length."""
    start: str = "09:00"
    end: str = "17:00"
    min_minutes: int = 60

    @field_validator("start", "end", mode="before")
    @classmethod
    def reject_sexagesimal(cls, value: Any) -> Any:
        """YAML reads an unquoted 9:00 as the integer 540."""
        if isinstance(value, int):
            raise ValueError(
                f"clock value was read as the number {value}; quote it in YAML, e.g. \"09:00\""
            )
        return value

    @field_validator("start", "end")
    @classmethod
    def validate_clock(cls, value: str) -> str:
        """Validate HH:MM format (ClockFormatError is a ValueError)."""
        parse_clock(value)
        return value.strip()

    @field_validator("min_minutes")
    @classmethod
    def validate_min_minutes(cls, value: int) -> int:
        """Ensure the minimum slot length is positive."""
        if value <= 0:
            raise ValueError("min_minutes must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_window_order(self) -> "WorkdayConfig":
        """Ensure the work window opens before it closes on the same day."""
        if self.get_end_time() <= self.get_start_time():
            raise ValueError("workday end must be later than workday start")
        return self

    def get_start_time(self) -> time:
        """Get start time as time object."""
        hour, minute = parse_clock(self.start)
        return time(hour=hour, minute=minute)

    def get_end_time(self) -> time:
        """Get end time as time object."""
        hour, minute = parse_clock(self.end)
        return time(hour=hour, minute=minute)


class AppConfig(BaseModel):
    """Application configuration."""
    credentials_path: Path = Path("credentials.json")
    token_path: Path = Path("token.json")
    calendar_id: str = "primary"
    timezone: str = "Asia/Tokyo"
    workday: WorkdayConfig = Field(default_factory=WorkdayConfig)
    exclude_days: List[int] = Field(default_factory=lambda: [5, 6])  # Saturday, Sunday
    use_keyring: bool = True

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA identifier."""
        try:
            pendulum.timezone(value)
        except (ValueError, ZoneInfoNotFoundError) as exc:
            raise ValueError(f"Unknown timezone: {value!r}") from exc
        return value

    @field_validator("calendar_id")
    @classmethod
    def validate_calendar_id(cls, value: str) -> str:
        """Reject blank calendar ids."""
        if not value.strip():
            raise ValueError("calendar_id must not be empty")
        return value.strip()

    @field_validator("exclude_days")
    @classmethod
    def validate_exclude_days(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range and deduplicated."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"exclude_days must be between 0 and 6, got {invalid_days}")
        # Preserve order while removing duplicates
        seen: set[int] = set()
        deduped: List[int] = []
        for day in value:
            if day not in seen:
                deduped.append(day)
                seen.add(day)
        return deduped

    def get_working_hours(self) -> WorkingHours:
        """Build the domain working-hours model."""
        return WorkingHours(
            start_time=self.workday.get_start_time(),
            end_time=self.workday.get_end_time(),
            exclude_weekdays=list(self.exclude_days),
            timezone=self.timezone,
        )

    def with_overrides(self, **overrides: Any) -> "AppConfig":
        """
        Return a re-validated copy with command-line overrides applied.

        ``None`` values are ignored. Keys ``workstart``, ``workend`` and
        ``min_minutes`` update the nested workday section.
        """
        data = self.model_dump()
        workday_keys = {"workstart": "start", "workend": "end", "min_minutes": "min_minutes"}

        for key, value in overrides.items():
            if value is None:
                continue
            if key in workday_keys:
                data["workday"][workday_keys[key]] = value
            else:
                data[key] = value

        return AppConfig.model_validate(data)

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.cwd() / "config.yaml"


def load_config(config_path: Path | None = None) -> AppConfig:
    """
    Load the configuration.

    An explicitly given path must exist. Without one, ``./config.yaml`` is
    used when present, otherwise the built-in defaults.
    """
    if config_path is not None:
        return AppConfig.load_from_yaml(config_path)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)

    return AppConfig()
