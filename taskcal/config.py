"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from pathlib import Path
from typing import List, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import WorkingHours

ACCESS_TOKEN_ENV_VAR = "TASKCAL_ACCESS_TOKEN"


class WorkingHoursConfig(BaseModel):
    """Working-hour window and default task length."""
    start_hour: int = 11
    end_hour: int = 17
    default_duration_minutes: int = 60

    @field_validator("default_duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure task duration is positive."""
        if value <= 0:
            raise ValueError("default_duration_minutes must be greater than zero")
        return value

    @field_validator("start_hour", "end_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 24."""
        if not 0 <= v <= 24:
            raise ValueError(f"Hour must be between 0 and 24, got {v}")
        return v

    @model_validator(mode="after")
    def validate_hours_order(self) -> "WorkingHoursConfig":
        """Ensure the configured window opens before it closes."""
        if self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be later than start_hour")
        return self


class CalendarsConfig(BaseModel):
    """Calendars that count as busy time."""
    primary: str = "primary"
    tasks: str
    holidays: Optional[str] = None


class AppConfig(BaseModel):
    """Application configuration."""
    calendars: CalendarsConfig
    working_hours: WorkingHoursConfig = Field(default_factory=WorkingHoursConfig)
    timezone: str = "Europe/Berlin"
    exclude_days: List[int] = Field(default_factory=lambda: [5, 6])  # Saturday, Sunday
    access_token: Optional[str] = None
    graph_base_url: str = "https://graph.microsoft.com/v1.0"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the time zone name is known."""
        try:
            pendulum.timezone(value)
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

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
        """Build the domain working-hours value."""
        return WorkingHours(
            start_hour=self.working_hours.start_hour,
            end_hour=self.working_hours.end_hour,
            exclude_weekdays=tuple(self.exclude_days),
        )

    def resolve_access_token(self) -> str:
        """
        Return the Graph access token from the config or the environment.

        Raises:
            ValueError: If no token is available
        """
        token = self.access_token or os.environ.get(ACCESS_TOKEN_ENV_VAR)
        if not token:
            raise ValueError(
                f"No access token configured. Set 'access_token' in the config file "
                f"or the {ACCESS_TOKEN_ENV_VAR} environment variable."
            )
        return token

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
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of taskcal/)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
