"""
Profile data models.

Stored JSON keeps the camelCase layout the map front end has always
written, so every model validates and serializes by alias. Fields added by
later releases are optional here: old records must still load so the boot
migrations can backfill them.
"""

from __future__ import annotations

import random
import string
import time
from datetime import date, datetime, timezone
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

# Bundled sample profiles are recognised by this id prefix
REFERENCE_ID_PREFIX = "sample_"
USER_ID_PREFIX = "profile_"

INTERNSHIP_FIELDS: tuple[str, ...] = (
    "library science",
    "physical therapy",
    "medicine",
    "podcasting",
    "welding",
    "teaching & craft work",
    "dance movement therapy",
    "hair",
    "activism & food justice",
    "coding",
    "tattooing",
    "scientific illustration",
    "public service",
    "needlework",
    "child care",
    "ceramics",
    "climbing",
    "tea & small business management",
    "romance writing & publication",
    "animal rescue",
    "robotics",
    "writing",
    "election work",
    "film/video editing",
    "comedy, comic illustration",
    "art",
    "veterinary science",
    "technology",
    "falconry",
    "youth empowerment",
    "K-8 Education",
    "retail-skateboarding",
    "mortician",
    "construction/social service",
    "corporate law",
    "therapy",
    "urban renewal",
    "consulting",
    "chess non-profit",
    "food/community",
    "clothing: corporate office",
    "restaurant",
    "global service",
)

REQUIRED_QUESTIONS = (
    "question1_what_made_unique",
    "question2_meaningful_contribution",
    "question3_skills_learned",
)
OPTIONAL_QUESTIONS = (
    "question4_most_surprising",
    "question5_specific_moment",
    "question6_future_goals",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_field(value: str) -> str | None:
    """Canonical spelling of a field tag, or None if it is not in the set."""
    lowered = value.strip().lower()
    for tag in INTERNSHIP_FIELDS:
        if tag.lower() == lowered:
            return tag
    return None


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Coordinates(_CamelModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)

    def is_near(self, other: "Coordinates", tolerance: float) -> bool:
        return (
            abs(self.lat - other.lat) < tolerance
            and abs(self.lng - other.lng) < tolerance
        )


class InternshipAddress(_CamelModel):
    street: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    full_address: str = ""


class TravelTime(_CamelModel):
    """Minutes from the school to the internship site."""

    driving: int | None = Field(default=None, ge=0)
    walking: int | None = Field(default=None, ge=0)
    bus: int | None = Field(default=None, ge=0)

    @field_validator("driving", "walking", "bus", mode="before")
    @classmethod
    def _round_minutes(cls, value: Any) -> Any:
        if isinstance(value, float):
            return round(value)
        return value

    def minutes_for(self, mode: str) -> int | None:
        return getattr(self, mode)

    @property
    def is_unknown(self) -> bool:
        """True when no mode has a positive value (zero means unknown)."""
        return not (self.driving or self.walking or self.bus)


class StudentProfile(_CamelModel):
    """One internship experience, as persisted in the profile store."""

    id: str = Field(min_length=1)
    first_name: str
    last_name: str
    email: str
    internship_company: str
    field: str = ""
    internship_contact_name: str = ""
    internship_site_email: str = ""

    is_remote: bool = False
    internship_address: InternshipAddress | None = None
    coordinates: Coordinates | None = None

    start_date: date | None = None
    end_date: date | None = None

    question1_what_made_unique: str | None = Field(
        default=None, alias="question1_whatMadeUnique"
    )
    question2_meaningful_contribution: str | None = Field(
        default=None, alias="question2_meaningfulContribution"
    )
    question3_skills_learned: str | None = Field(
        default=None, alias="question3_skillsLearned"
    )
    question4_most_surprising: str | None = Field(
        default=None, alias="question4_mostSurprising"
    )
    question5_specific_moment: str | None = Field(
        default=None, alias="question5_specificMoment"
    )
    question6_future_goals: str | None = Field(
        default=None, alias="question6_futureGoals"
    )
    accomplishments: str | None = None  # first-generation free text

    travel_time: TravelTime | None = None
    rating: int | None = Field(default=None, ge=1, le=5)
    rating_comment: str | None = None

    # Kept for the session only, never serialized
    photos: list[str] = Field(default_factory=list, exclude=True)

    created_at: datetime
    updated_at: datetime

    @field_validator("rating", mode="before")
    @classmethod
    def _zero_rating_is_missing(cls, value: Any) -> Any:
        if value in (0, "", None):
            return None
        return value

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        if value == "":
            return None
        if isinstance(value, str) and "T" in value:
            return value.split("T", 1)[0]
        return value

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="before")
    @classmethod
    def _fill_timestamps(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        created = data.pop("created_at", None) or data.get("createdAt")
        updated = data.pop("updated_at", None) or data.get("updatedAt")
        fallback = created or updated or utcnow()
        data["createdAt"] = created or fallback
        data["updatedAt"] = updated or fallback
        return data

    @model_validator(mode="after")
    def _check_consistency(self) -> "StudentProfile":
        if self.is_remote:
            self.internship_address = None
            self.coordinates = None
            self.travel_time = None
        elif self.internship_address is None or self.coordinates is None:
            raise ValueError(
                "non-remote internship requires both an address and coordinates"
            )
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        if self.updated_at < self.created_at:
            raise ValueError("updatedAt must not be before createdAt")
        return self

    @property
    def is_reference(self) -> bool:
        return self.id.startswith(REFERENCE_ID_PREFIX)

    def lacks_rating(self) -> bool:
        return not self.rating or not self.rating_comment

    def lacks_narrative(self) -> bool:
        """Any required answer or either date missing."""
        return (
            any(not getattr(self, name) for name in REQUIRED_QUESTIONS)
            or not self.start_date
            or not self.end_date
        )

    def to_record(self) -> dict[str, Any]:
        """JSON-ready dict in the persisted camelCase layout."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> "StudentProfile":
        return cls.model_validate(data)


def generate_profile_id(now: datetime | None = None) -> str:
    """profile_<epoch millis>_<9 base36 chars>"""
    millis = int((now.timestamp() if now else time.time()) * 1000)
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{USER_ID_PREFIX}{millis}_{suffix}"


def create_profile(
    data: dict[str, Any],
    clock: Callable[[], datetime] = utcnow,
) -> StudentProfile:
    """Assign a fresh id and matching timestamps to submitted profile data."""
    now = clock()
    payload = dict(data)
    payload["id"] = generate_profile_id(now)
    payload["created_at"] = now
    payload["updated_at"] = now
    return StudentProfile.model_validate(payload)
