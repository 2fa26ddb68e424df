"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ON_MY_WAY_TEMPLATE = (
    "Hi {{customerName}}, this is {{businessName}}. I am on my way to service your garage door "
    "and should arrive in about {{etaMinutes}} minutes."
)


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FIELDROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Field Route Timeline API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root log level applied when the app starts.")
    timezone: str = Field(default="UTC", description="IANA zone used to turn HH:MM job times into timestamps.")
    home_address: Optional[str] = Field(
        default=None,
        description="Home base the day starts from and returns to. Requests may override it.",
    )
    default_stop_duration_minutes: int = Field(default=60, ge=1)
    day_start: str = Field(
        default="08:00",
        description="Clock origin used when the first stop of the day has no scheduled time.",
    )
    plan_tolerance_minutes: int = Field(
        default=15,
        ge=0,
        description="Projected arrivals within this many minutes of the scheduled time are on time.",
    )
    adherence_tolerance_minutes: int = Field(
        default=5,
        ge=0,
        description="Live arrival estimates within this many minutes of the scheduled time are on time.",
    )
    excluded_job_statuses: tuple[str, ...] = Field(default=("Declined", "Cancelled"))
    routing_provider: Literal["osrm", "google"] = Field(default="osrm")
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile to use when computing travel times.",
    )
    nominatim_base_url: str = Field(
        default="https://nominatim.openstreetmap.org",
        description="Geocoder used to resolve stop addresses before OSRM requests.",
    )
    nominatim_user_agent: str = Field(default="fieldroute")
    google_maps_api_key: Optional[str] = Field(default=None)
    google_directions_url: str = Field(default="https://maps.googleapis.com/maps/api/directions/json")
    routing_timeout_seconds: float = Field(default=20.0, gt=0.0)
    distance_unit: Literal["mi", "km"] = Field(default="mi")
    business_name: str = ""
    on_my_way_template: str = DEFAULT_ON_MY_WAY_TEMPLATE
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", "excluded_job_statuses", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            # Try comma-separated
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            # Single value
            if value.strip():
                return (value.strip(),)
        # Return empty tuple if value is None or empty
        return tuple()

    @field_validator("day_start")
    @classmethod
    def _check_day_start(cls, value: str) -> str:
        hours, _, minutes = value.partition(":")
        if not (hours.isdigit() and minutes.isdigit() and int(hours) < 24 and int(minutes) < 60):
            raise ValueError(f"day_start must be HH:MM, got '{value}'")
        return value


settings = Settings()
