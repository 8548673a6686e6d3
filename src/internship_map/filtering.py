"""
Profile filtering for the map and the remote-internship list.

Pure and stateless: the same profiles and criteria always give equal
results, and input order is preserved.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from pydantic import BaseModel, Field, field_validator

from .core.models import StudentProfile, normalize_field


class LocationType(str, Enum):
    ALL = "all"
    PHYSICAL = "physical"
    REMOTE = "remote"


class TravelMode(str, Enum):
    ALL = "all"
    DRIVING = "driving"
    WALKING = "walking"
    BUS = "bus"


class FilterCriteria(BaseModel):
    """Current state of the filter controls."""

    location_type: LocationType = LocationType.ALL
    travel_mode: TravelMode = TravelMode.ALL
    max_minutes: int = Field(default=30, gt=0)
    fields: frozenset[str] = frozenset()  # empty = no restriction

    @field_validator("fields", mode="before")
    @classmethod
    def _canonical_fields(cls, value):
        if value is None:
            return frozenset()
        return frozenset(normalize_field(v) or v for v in value)


@dataclass(frozen=True)
class FilterResult:
    map_profiles: list[StudentProfile]  # physical, shown as markers
    remote_profiles: list[StudentProfile]  # shown in the list below the map


def _field_tag(profile: StudentProfile) -> str:
    return normalize_field(profile.field) or profile.field


def _within_travel_time(
    profile: StudentProfile, mode: TravelMode, max_minutes: int
) -> bool:
    # 0 means "unknown", not "zero minutes away"
    if profile.travel_time is None:
        return False
    minutes = profile.travel_time.minutes_for(mode.value)
    return minutes is not None and 0 < minutes <= max_minutes


def filter_profiles(
    profiles: Sequence[StudentProfile], criteria: FilterCriteria
) -> FilterResult:
    """
    Split profiles into map markers and remote list entries.

    Physical profiles are dropped entirely for ``remote`` and filtered by
    travel time when a mode is chosen; remote profiles are dropped for
    ``physical`` and are never filtered by travel time. The field filter
    applies to both sides.
    """
    remote = [p for p in profiles if p.is_remote]
    physical = [p for p in profiles if not p.is_remote]

    if criteria.location_type == LocationType.REMOTE:
        physical = []

    if criteria.travel_mode != TravelMode.ALL:
        physical = [
            p
            for p in physical
            if _within_travel_time(p, criteria.travel_mode, criteria.max_minutes)
        ]

    if criteria.fields:
        physical = [p for p in physical if _field_tag(p) in criteria.fields]
        remote = [p for p in remote if _field_tag(p) in criteria.fields]

    if criteria.location_type == LocationType.PHYSICAL:
        remote = []

    return FilterResult(map_profiles=physical, remote_profiles=remote)
