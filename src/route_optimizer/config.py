"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="RO_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Delivery Route Optimizer API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for locally stored sessions.")
    osrm_base_url: Optional[str] = Field(
        default="https://router.project-osrm.org",
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile to use for trip and route requests.",
    )
    osrm_timeout_seconds: float = Field(default=20.0, gt=0.0)
    osrm_max_retries: int = Field(default=1, ge=0)
    osrm_backoff_seconds: float = Field(default=0.5, ge=0.0)

    geocoder_base_url: str = Field(
        default="https://nominatim.openstreetmap.org",
        description="Nominatim-compatible geocoding endpoint.",
    )
    geocoder_country_codes: str = Field(default="cz", description="Countries searched before the worldwide fallback.")
    geocoder_viewbox: Optional[str] = Field(
        default="12.09,51.06,18.87,48.55",
        description="Bounding box (lon1,lat1,lon2,lat2) for the biased search.",
    )
    geocoder_user_agent: str = Field(default="delivery-route-optimizer/0.1")
    geocoder_timeout_seconds: float = Field(default=10.0, gt=0.0)

    priority_bonus: float = Field(default=-0.2, gt=-1.0, le=0.0)
    two_opt_tie_tolerance_km: float = Field(default=0.1, ge=0.0)
    two_opt_priority_weight: float = Field(default=10.0, ge=0.0)
    two_opt_max_passes: int = Field(default=1000, ge=1)

    navigation_max_waypoints: int = Field(default=8, ge=1)
    navigation_single_session_limit: int = Field(default=10, ge=2)
    navigation_batch_delay_seconds: float = Field(default=3.0, ge=0.0)
    same_place_threshold_km: float = Field(default=0.01, ge=0.0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase key used for saved routes and usage tracking.",
    )

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
