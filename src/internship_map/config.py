"""
Configuration models.

Values come from an optional YAML file (with ``${VAR}`` environment
substitution) and from the environment / ``.env`` for credentials.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv
from loguru import logger
from pydantic import BaseModel, Field, model_validator

from .core.models import Coordinates


class StorageConfig(BaseModel):
    """Where profile data and migration state are kept."""

    data_dir: str = "./data"
    profiles_key: str = "internship_map_profiles"
    migration_state_key: str = "internship_map_migration_state"
    create_backup: bool = True


class GeoConfig(BaseModel):
    """Geocoding, address search and routing services."""

    mapbox_access_token: str = ""
    mapbox_url: str = "https://api.mapbox.com/geocoding/v5/mapbox.places"
    nominatim_url: str = "https://nominatim.openstreetmap.org/search"
    osrm_urls: list[str] = Field(
        default_factory=lambda: [
            "https://router.project-osrm.org/route/v1",
            "https://routing.openstreetmap.de/routed-{vehicle}/route/v1",
        ]
    )
    user_agent: str = "Pittsburgh-Internship-Map/1.0"
    timeout_seconds: float = 5.0

    # Pittsburgh
    metro_center: Coordinates = Field(
        default_factory=lambda: Coordinates(lat=40.4406, lng=-79.9959)
    )
    # City of Bridges High School, 460 S Graham St
    travel_origin: Coordinates = Field(
        default_factory=lambda: Coordinates(lat=40.4576121, lng=-79.9371610)
    )
    area_keywords: list[str] = Field(
        default_factory=lambda: ["pittsburgh", "pgh", "allegheny"]
    )
    # west, south, east, north
    viewbox: tuple[float, float, float, float] = (-80.1, 40.35, -79.9, 40.5)
    search_min_chars: int = 3
    search_limit: int = 5
    search_debounce_seconds: float = 0.3

    @model_validator(mode="after")
    def _check_limits(self) -> "GeoConfig":
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if self.search_min_chars < 1 or self.search_limit < 1:
            raise ValueError("search_min_chars and search_limit must be >= 1")
        return self


class MigrationConfig(BaseModel):
    """Boot-time reconciliation settings."""

    anchor_id: str = "sample_9"
    anchor_company: str = "Andy Warhol Museum"
    cleanup_markers: list[str] = Field(default_factory=lambda: ["asdf"])
    match_tolerance_deg: float = 0.01
    default_start_offset_days: int = 90
    default_duration_days: int = 120


class AppConfig(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    geo: GeoConfig = Field(default_factory=GeoConfig)
    migration: MigrationConfig = Field(default_factory=MigrationConfig)
    reference_data_path: str | None = None
    persist_submissions: bool = True


_ENV_PATTERN = re.compile(r"\$\{(\w+)\}")


def read_yaml(config_path: str | Path) -> dict[str, Any]:
    """
    Read a YAML configuration file, substituting ``${VAR}`` from the environment.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    content = path.read_text(encoding="utf-8")
    content = _ENV_PATTERN.sub(
        lambda m: os.getenv(m.group(1), m.group(0)), content
    )
    try:
        return yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        logger.critical(f"Error parsing YAML file: {e}")
        raise


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Build the configuration from an optional YAML file plus the environment."""
    load_dotenv(find_dotenv(usecwd=True))
    data = read_yaml(config_path) if config_path else {}
    config = AppConfig.model_validate(data)

    token = os.getenv("MAPBOX_ACCESS_TOKEN")
    if token:
        config.geo.mapbox_access_token = token
    data_dir = os.getenv("INTERNSHIP_MAP_DATA_DIR")
    if data_dir:
        config.storage.data_dir = data_dir
    return config
