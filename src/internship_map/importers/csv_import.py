"""
Batch import of profiles from a CSV export.

The header row names the columns (matched case-insensitively); every
following row is validated and saved on its own, so one bad row never
blocks the rest of the file.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Sequence

from loguru import logger

from ..core.exceptions import CsvFormatError, ProfileValidationError
from ..core.models import InternshipAddress, StudentProfile, create_profile, utcnow
from ..geo.area import AREA_KEYWORDS, is_target_area
from ..geo.providers import ProviderChain
from ..storage.profile_store import ProfileStore
from ..validation import validate_form

# Lower-cased column header -> ProfileForm field
COLUMNS = {
    "firstname": "first_name",
    "lastname": "last_name",
    "email": "email",
    "internshipcompany": "internship_company",
    "field": "field",
    "internshipcontactname": "internship_contact_name",
    "internshipsiteemail": "internship_site_email",
    "isremote": "is_remote",
    "startdate": "start_date",
    "enddate": "end_date",
    "address": "address_input",
    "traveltimedriving": "travel_time_driving",
    "traveltimewalking": "travel_time_walking",
    "traveltimebus": "travel_time_bus",
    "question1_whatmadeunique": "question1_what_made_unique",
    "question2_meaningfulcontribution": "question2_meaningful_contribution",
    "question3_skillslearned": "question3_skills_learned",
    "question4_mostsurprising": "question4_most_surprising",
    "question5_specificmoment": "question5_specific_moment",
    "question6_futuregoals": "question6_future_goals",
    "rating": "rating",
    "ratingcomment": "rating_comment",
}

LEGACY_COLUMN = "accomplishments"
_REQUIRED_ANSWERS = (
    "question1_what_made_unique",
    "question2_meaningful_contribution",
    "question3_skills_learned",
)
_TRAVEL_COLUMNS = ("travel_time_driving", "travel_time_walking", "travel_time_bus")
TRUE_VALUES = ("yes", "true", "1", "y")


@dataclass(frozen=True)
class RowError:
    row: int  # spreadsheet row number, first line is row 1
    message: str

    def __str__(self) -> str:
        return f"Row {self.row}: {self.message}"


@dataclass
class CsvImportResult:
    created: list[StudentProfile] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)


def parse_bool(value: str | None) -> bool:
    return (value or "").strip().lower() in TRUE_VALUES


def parse_minutes(value: str | None) -> int | None:
    """Whole minutes, or None for blank or unreadable cells."""
    try:
        return int((value or "").strip())
    except ValueError:
        return None


def read_numbered_rows(text: str) -> list[tuple[int, dict[str, str]]]:
    """
    Parse CSV text into (spreadsheet row, dict keyed by lower-cased header).

    Rows are counted per CSV record, so blank rows still take a number and a
    quoted cell spanning several lines stays one row.

    Raises:
        CsvFormatError: No header row, or no data rows under it
    """
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    lines = [
        (number, row)
        for number, row in enumerate(reader, start=1)
        if any(cell.strip() for cell in row)
    ]
    if len(lines) < 2:
        raise CsvFormatError(
            "CSV file must have at least a header row and one data row"
        )
    headers = [h.strip().lower() for h in lines[0][1]]
    return [
        (
            number,
            {h: (row[i].strip() if i < len(row) else "") for i, h in enumerate(headers)},
        )
        for number, row in lines[1:]
    ]


def read_rows(text: str) -> list[dict[str, str]]:
    """Parsed data rows without their row numbers."""
    return [row for _, row in read_numbered_rows(text)]


def row_to_form_data(row: dict[str, str]) -> dict[str, Any]:
    """Map a parsed row onto ProfileForm field names."""
    data: dict[str, Any] = {}
    for column, name in COLUMNS.items():
        value = row.get(column, "")
        if value:
            data[name] = value

    data["is_remote"] = parse_bool(row.get("isremote"))
    for name in _TRAVEL_COLUMNS:
        if name in data:
            data[name] = parse_minutes(data[name])

    # First-generation exports had a single free-text column
    legacy = row.get(LEGACY_COLUMN, "")
    if legacy:
        data["accomplishments"] = legacy
        for name in _REQUIRED_ANSWERS:
            data.setdefault(name, legacy)
    return data


def address_from_text(text: str) -> InternshipAddress:
    """Best-effort split of a typed address into its parts."""
    parts = [p.strip() for p in text.split(",") if p.strip()]
    street = parts[0] if parts else text
    city = parts[1] if len(parts) > 1 else "Pittsburgh"
    return InternshipAddress(
        street=street,
        city=city,
        state="Pennsylvania",
        zip="",
        full_address=text,
    )


class CsvImporter:
    """Validates, geocodes and saves rows from a CSV file."""

    def __init__(
        self,
        store: ProfileStore,
        geocoder: ProviderChain,
        area_keywords: Sequence[str] = AREA_KEYWORDS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.geocoder = geocoder
        self.area_keywords = tuple(area_keywords)
        self._clock = clock

    async def _build_profile(self, row: dict[str, str]) -> StudentProfile:
        data = row_to_form_data(row)
        legacy = data.pop("accomplishments", None)
        form = validate_form(data)

        address = coordinates = None
        if not form.is_remote:
            text = form.address_input or ""
            result = await self.geocoder.geocode(text)
            if not result.ok:
                raise ProfileValidationError(
                    "address", f"Could not geocode address: {text}"
                )
            coordinates = result.data
            address = address_from_text(text)
            if not is_target_area(address, self.area_keywords):
                raise ProfileValidationError(
                    "address", "Address must be in Pittsburgh area"
                )

        profile_data = form.profile_data(address=address, coordinates=coordinates)
        if legacy:
            profile_data["accomplishments"] = legacy
        return create_profile(profile_data, clock=self._clock)

    async def import_text(self, text: str) -> CsvImportResult:
        """
        Import every row of a CSV document.

        Raises:
            CsvFormatError: The file has no header or no data rows
        """
        rows = read_numbered_rows(text)
        result = CsvImportResult()

        for row_number, row in rows:
            try:
                profile = await self._build_profile(row)
            except ProfileValidationError as e:
                result.errors.append(RowError(row_number, e.message))
                continue

            if not self.store.save(profile):
                result.errors.append(RowError(row_number, "Could not save profile"))
                continue
            result.created.append(profile)

        logger.info(
            f"CSV import: {len(result.created)} created, {len(result.errors)} rejected"
        )
        for error in result.errors:
            logger.warning(f"CSV import {error}")
        return result
