"""Bundled sample profiles used for seeding and backfilling."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterator, Sequence

from loguru import logger

from ..core.models import REFERENCE_ID_PREFIX, StudentProfile

DEFAULT_DATA_PATH = Path(__file__).parent / "data" / "reference_profiles.json"


class ReferenceDataset:
    """Read-only, ordered collection of reference profiles."""

    def __init__(self, profiles: Sequence[StudentProfile]):
        for profile in profiles:
            if not profile.is_reference:
                raise ValueError(
                    f"Reference profile id {profile.id!r} lacks the "
                    f"'{REFERENCE_ID_PREFIX}' prefix"
                )
        self._profiles = tuple(profiles)

    @classmethod
    def load(cls, path: str | Path | None = None) -> "ReferenceDataset":
        """Load the dataset from JSON (defaults to the bundled file)."""
        data_path = Path(path) if path else DEFAULT_DATA_PATH
        with open(data_path, "r", encoding="utf-8") as f:
            records = json.load(f)
        profiles = [StudentProfile.from_record(record) for record in records]
        logger.debug(f"Loaded {len(profiles)} reference profiles from {data_path}")
        return cls(profiles)

    def __len__(self) -> int:
        return len(self._profiles)

    def __iter__(self) -> Iterator[StudentProfile]:
        return iter(self._profiles)

    @property
    def profiles(self) -> list[StudentProfile]:
        return list(self._profiles)

    def ids(self) -> set[str]:
        return {p.id for p in self._profiles}

    def get(self, profile_id: str) -> StudentProfile | None:
        for profile in self._profiles:
            if profile.id == profile_id:
                return profile
        return None

    def remote(self) -> list[StudentProfile]:
        return [p for p in self._profiles if p.is_remote]

    def find_anchor(
        self, anchor_id: str, anchor_company: str
    ) -> StudentProfile | None:
        """The anchor record, by id first, then by company name."""
        return self.get(anchor_id) or next(
            (p for p in self._profiles if p.internship_company == anchor_company),
            None,
        )
