"""
Pittsburgh internship map.

Student internship profiles on a map, filtered by travel time from school
and by field, with boot-time migration of the stored profile data.
"""

from .app import InternshipMapApp
from .config import AppConfig, load_config
from .core import (
    Coordinates,
    InternshipAddress,
    StudentProfile,
    TravelTime,
    create_profile,
)
from .filtering import FilterCriteria, FilterResult, LocationType, TravelMode, filter_profiles
from .migrations import MigrationEngine, MigrationState
from .storage import InMemoryBackend, JsonFileBackend, ProfileStore

__version__ = "1.0.0"

__all__ = [
    "InternshipMapApp",
    "AppConfig",
    "load_config",
    "Coordinates",
    "InternshipAddress",
    "StudentProfile",
    "TravelTime",
    "create_profile",
    "FilterCriteria",
    "FilterResult",
    "LocationType",
    "TravelMode",
    "filter_profiles",
    "MigrationEngine",
    "MigrationState",
    "InMemoryBackend",
    "JsonFileBackend",
    "ProfileStore",
]
