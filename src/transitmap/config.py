"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ROUTE_PALETTE = (
    "#3498db", "#e74c3c", "#2ecc71", "#f39c12", "#9b59b6",
    "#1abc9c", "#d35400", "#c0392b", "#16a085", "#27ae60",
    "#8e44ad", "#f1c40f", "#e67e22", "#7f8c8d", "#34495e",
)


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSIT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Transit Map API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root logger level.")
    data_root: Path = Field(default=Path("data"), description="Root directory for static data files.")
    routes_dir: Path = Field(
        default=Path("data/rutas"),
        description="Directory holding one sub-folder per route with routes.geojson and stops.geojson.",
    )
    routes_index_file: Path = Field(
        default=Path("data/rutas/index.json"),
        description="JSON array of route folder names to load.",
    )

    proximity_radius_m: float = Field(default=500.0, ge=0.0)
    nearest_display_radius_m: float = Field(
        default=500.0,
        ge=0.0,
        description="Nearest stops further than this are reported as out of walking range.",
    )
    degenerate_query_epsilon_m: float = Field(
        default=50.0,
        ge=0.0,
        description="Origin and destination closer than this are refused as the same place.",
    )
    geofence_tolerance_m: float = Field(default=30.0, ge=0.0)
    route_palette: tuple[str, ...] = Field(default=DEFAULT_ROUTE_PALETTE)

    geocoder_base_url: Optional[str] = Field(
        default="https://nominatim.openstreetmap.org",
        description="Base URL for the Nominatim-compatible geocoding service.",
    )
    geocoder_region_suffix: str = Field(
        default="Xalapa, Veracruz",
        description="Appended to every search term to keep results inside the service area.",
    )
    geocoder_user_agent: str = "transitmap/0.1"
    geocoder_timeout_seconds: float = Field(default=10.0, gt=0.0)
    geocoder_max_retries: int = Field(default=2, ge=0)
    geocoder_backoff_seconds: float = Field(default=0.5, ge=0.0)
    search_aliases: dict[str, str] = Field(
        default={
            "caxa": "Central de Autobuses de Xalapa, Veracruz",
            "zona uv": "Zona Universitaria, Xalapa, Veracruz",
            "uv": "Universidad Veracruzana, Xalapa, Veracruz",
            "plaza crystal": "Plaza Crystal, Xalapa, Veracruz",
            "usbi": "Campus para la Cultura las Artes y el Deporte",
            "cem": "Centro de Alta Especialidad",
        },
        description="Short names mapped to the full place name sent to the geocoder.",
    )

    walking_speed_m_per_min: float = Field(default=83.0, gt=0.0)
    peak_speed_kmh: float = Field(default=16.0, gt=0.0)
    offpeak_speed_kmh: float = Field(default=22.0, gt=0.0)
    peak_windows: tuple[str, ...] = Field(
        default=("07:00-09:00", "18:00-20:00"),
        description="Time-of-day windows (HH:MM-HH:MM) driven at peak speed.",
    )

    first_route_id: int = Field(default=14010000, ge=0)
    first_stop_id: int = Field(default=14020000, ge=0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:8080",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("data_root", "routes_dir", "routes_index_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", "route_palette", "peak_windows", mode="before")
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

    @field_validator("route_palette")
    @classmethod
    def _require_palette(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("route_palette must contain at least one colour.")
        return value

    @field_validator("search_aliases", mode="before")
    @classmethod
    def _parse_aliases(cls, value: Any) -> dict[str, str]:
        """Accept a JSON object or 'alias=Place;alias=Place' pairs."""
        if isinstance(value, dict):
            return {str(key).strip().lower(): str(target) for key, target in value.items()}
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, dict):
                    return {str(key).strip().lower(): str(target) for key, target in parsed.items()}
            except (json.JSONDecodeError, TypeError):
                pass
            aliases: dict[str, str] = {}
            for pair in value.split(";"):
                if "=" not in pair:
                    continue
                key, target = pair.split("=", 1)
                if key.strip() and target.strip():
                    aliases[key.strip().lower()] = target.strip()
            return aliases
        return {}


settings = Settings()
