"""
Entry-point validation.

Submitted data is checked here, before anything reaches the store. The
profile model itself stays lenient so that older stored records keep
loading; the submission contract is stricter.
"""

from __future__ import annotations

import base64
import re
from datetime import date
from typing import Any, Sequence

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .core.exceptions import ProfileValidationError
from .core.models import Coordinates, InternshipAddress, normalize_field

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MAX_PHOTOS = 10
MAX_PHOTO_BYTES = 5 * 1024 * 1024
ALLOWED_PHOTO_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ProfileForm(BaseModel):
    """What a student submits for a new profile."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str
    internship_company: str = Field(min_length=1)
    field: str = Field(min_length=1)
    internship_contact_name: str = Field(min_length=1)
    internship_site_email: str

    is_remote: bool = False
    address_input: str | None = None
    # Set when the student picked a search suggestion
    selected_address: InternshipAddress | None = None
    selected_coordinates: Coordinates | None = None

    start_date: date
    end_date: date

    question1_what_made_unique: str = Field(
        min_length=1, alias="question1_whatMadeUnique"
    )
    question2_meaningful_contribution: str = Field(
        min_length=1, alias="question2_meaningfulContribution"
    )
    question3_skills_learned: str = Field(min_length=1, alias="question3_skillsLearned")
    question4_most_surprising: str | None = Field(
        default=None, alias="question4_mostSurprising"
    )
    question5_specific_moment: str | None = Field(
        default=None, alias="question5_specificMoment"
    )
    question6_future_goals: str | None = Field(
        default=None, alias="question6_futureGoals"
    )

    travel_time_driving: int | None = Field(default=None, ge=0)
    travel_time_walking: int | None = Field(default=None, ge=0)
    travel_time_bus: int | None = Field(default=None, ge=0)

    rating: int = Field(ge=1, le=5)
    rating_comment: str = Field(min_length=1)

    @field_validator("email", "internship_site_email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email address")
        return value

    @field_validator("field")
    @classmethod
    def _known_field(cls, value: str) -> str:
        canonical = normalize_field(value)
        if canonical is None:
            raise ValueError(f"Unknown internship field: {value}")
        return canonical

    @field_validator(
        "address_input",
        "question4_most_surprising",
        "question5_specific_moment",
        "question6_future_goals",
        "travel_time_driving",
        "travel_time_walking",
        "travel_time_bus",
        mode="before",
    )
    @classmethod
    def _blank_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @model_validator(mode="after")
    def _check_form(self) -> "ProfileForm":
        if self.end_date < self.start_date:
            raise ValueError("End date must be on or after the start date")
        if not self.is_remote:
            if not self.address_input and self.selected_address is None:
                raise ValueError("Address is required for non-remote internships")
            if not (self.travel_time_driving or self.travel_time_bus):
                raise ValueError(
                    "Please provide at least one travel time (Car or Bus)"
                )
        return self

    def profile_data(
        self,
        address: InternshipAddress | None = None,
        coordinates: Coordinates | None = None,
    ) -> dict[str, Any]:
        """Keyword arguments for StudentProfile, minus id and timestamps."""
        data = self.model_dump(
            exclude={
                "address_input",
                "selected_address",
                "selected_coordinates",
                "travel_time_driving",
                "travel_time_walking",
                "travel_time_bus",
            }
        )
        if not self.is_remote:
            data["internship_address"] = address or self.selected_address
            data["coordinates"] = coordinates or self.selected_coordinates
            data["travel_time"] = {
                "driving": self.travel_time_driving,
                "walking": self.travel_time_walking,
                "bus": self.travel_time_bus,
            }
        return data


def describe_validation_error(error: ValidationError) -> list[str]:
    """Human-readable lines for each problem in a pydantic ValidationError."""
    messages = []
    for err in error.errors():
        location = ".".join(str(loc) for loc in err["loc"])
        if err["type"] == "missing":
            messages.append(f"Missing required field '{location}'")
        elif location:
            messages.append(f"{location}: {err['msg']}")
        else:
            messages.append(err["msg"].removeprefix("Value error, "))
    return messages


def validate_form(data: dict[str, Any]) -> ProfileForm:
    """
    Validate submitted form data.

    Raises:
        ProfileValidationError: For the first problem found; every problem
            is listed in the message
    """
    try:
        return ProfileForm.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        field_name = ".".join(str(loc) for loc in first["loc"]) or "form"
        raise ProfileValidationError(
            field_name, "; ".join(describe_validation_error(e))
        ) from e


def encode_photo(content: bytes, content_type: str) -> str:
    """Inline data URL for an uploaded image, after type and size checks."""
    if content_type not in ALLOWED_PHOTO_TYPES:
        raise ProfileValidationError(
            "photos", "Invalid file type. Please upload JPEG, PNG, or WebP images."
        )
    if len(content) > MAX_PHOTO_BYTES:
        raise ProfileValidationError("photos", "File too large. Maximum size is 5MB.")
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def check_photo_count(existing: Sequence[str], adding: int) -> None:
    if len(existing) + adding > MAX_PHOTOS:
        raise ProfileValidationError(
            "photos",
            f"Maximum {MAX_PHOTOS} photos allowed. Please select fewer photos.",
        )
