"""
Configuration management using Pydantic models loaded from YAML.
"""

import json
from pathlib import Path
from typing import Any, List, Literal, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.business_hours import BusinessHours, DayWindow, parse_hhmm
from .domain.exceptions import ConfigError

SEND_UPDATES_VALUES = ("all", "externalOnly", "none")


class DayWindowConfig(BaseModel):
    """Opening hours for one class of days, as ``HH:MM`` strings."""
    open: str
    close: str

    @field_validator("open", "close")
    @classmethod
    def validate_hhmm(cls, v: str) -> str:
        parse_hhmm(v)
        return v

    @model_validator(mode="after")
    def validate_order(self) -> "DayWindowConfig":
        if parse_hhmm(self.close) <= parse_hhmm(self.open):
            raise ValueError(f"close ({self.close}) must be later than open ({self.open})")
        return self

    def to_domain(self) -> DayWindow:
        return DayWindow(open_time=parse_hhmm(self.open), close_time=parse_hhmm(self.close))


class BusinessHoursConfig(BaseModel):
    """Club operating hours."""
    weekday: DayWindowConfig = Field(
        default_factory=lambda: DayWindowConfig(open="07:00", close="22:30")
    )
    weekend: DayWindowConfig = Field(
        default_factory=lambda: DayWindowConfig(open="08:00", close="14:00")
    )


class DefaultsConfig(BaseModel):
    """Default settings for availability and booking requests."""
    granularity_minutes: int = 30
    lookahead_hours: int = 72
    booking_duration_minutes: int = 60
    max_days_shown: int = 7
    send_updates: str = "all"
    booking_summary: str = "Clase"

    @field_validator("granularity_minutes", "lookahead_hours", "booking_duration_minutes", "max_days_shown")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value

    @field_validator("send_updates")
    @classmethod
    def validate_send_updates(cls, value: str) -> str:
        if value not in SEND_UPDATES_VALUES:
            raise ValueError(f"send_updates must be one of {SEND_UPDATES_VALUES}, got '{value}'")
        return value


class Coach(BaseModel):
    """Coach configuration."""
    name: str  # Used as alias
    email: str
    calendar_id: str = ""  # Optional: personal calendar instead of the club one

    def display_name(self) -> str:
        return self.name


class AuthConfig(BaseModel):
    """Google credentials."""
    mode: Literal["service_account", "oauth_user"] = "oauth_user"
    service_account_file: Optional[Path] = None
    subject: Optional[str] = None  # impersonated user for domain-wide delegation
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    refresh_token: Optional[str] = None


def parse_coach_map(value: str) -> List[dict]:
    """
    Parse a coach table given as a JSON object or ``Alias=email,Alias2=email2``.

    Returns:
        List of ``{"name": ..., "email": ...}`` dictionaries
    """
    if not value or not value.strip():
        return []

    try:
        mapping = json.loads(value)
    except json.JSONDecodeError:
        mapping = {}
        for pair in value.split(","):
            alias, _, email = pair.partition("=")
            if alias.strip() and email.strip():
                mapping[alias.strip()] = email.strip()

    if not isinstance(mapping, dict):
        raise ValueError("Coach map must be a JSON object or 'Alias=email' pairs")

    return [{"name": alias, "email": email} for alias, email in mapping.items()]


class AppConfig(BaseModel):
    """Application configuration."""
    calendar_id: str
    timezone: str = "America/Mexico_City"
    business_hours: BusinessHoursConfig = Field(default_factory=BusinessHoursConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    coaches: List[Coach] = Field(default_factory=list)
    auth: AuthConfig = Field(default_factory=AuthConfig)

    model_config = {"frozen": True}

    @field_validator("coaches", mode="before")
    @classmethod
    def coerce_coach_map(cls, value: Any) -> Any:
        """Accept the compact string form and plain alias->email mappings."""
        if isinstance(value, str):
            return parse_coach_map(value)
        if isinstance(value, dict):
            return [{"name": alias, "email": email} for alias, email in value.items()]
        return value

    @field_validator("coaches")
    @classmethod
    def validate_coaches(cls, value: List[Coach]) -> List[Coach]:
        """Ensure coach aliases are unique."""
        seen_names: set[str] = set()
        for coach in value:
            name_key = coach.name.lower()
            if name_key in seen_names:
                raise ValueError(f"Duplicate coach name detected: {coach.name}")
            seen_names.add(name_key)
        return value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            pendulum.timezone(value)
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Unknown timezone '{value}'") from exc
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            ConfigError: If the file is missing, not valid YAML or fails validation
        """
        if not config_path.exists():
            raise ConfigError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a mapping at the root level.")

        try:
            return cls(**data)
        except ValueError as exc:
            raise ConfigError(f"Invalid configuration in {config_path}: {exc}") from exc

    def build_business_hours(self) -> BusinessHours:
        return BusinessHours(
            weekday=self.business_hours.weekday.to_domain(),
            weekend=self.business_hours.weekend.to_domain(),
            timezone=self.timezone,
        )

    def find_coach_by_name(self, name: str) -> Coach | None:
        """Find a coach by alias, ignoring case and surrounding spaces."""
        wanted = name.strip().lower()
        for coach in self.coaches:
            if coach.name.lower() == wanted:
                return coach
        return None

    def calendar_for(self, coach: Coach | None) -> str:
        """Calendar to read for a coach: their own if configured, else the club's."""
        if coach and coach.calendar_id:
            return coach.calendar_id
        return self.calendar_id


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        config_path = Path(__file__).parent.parent / "config.yaml"

    return config_path
