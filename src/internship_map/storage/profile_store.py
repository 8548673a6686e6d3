"""
Persistent record store.

All profiles live as one JSON array under a single backend key. An
unavailable backend, a full quota or malformed JSON degrade to "no data"
or a False return value, never an exception.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable, Sequence

from loguru import logger
from pydantic import ValidationError

from ..core.exceptions import StorageError, StorageQuotaExceededError
from ..core.interfaces import KeyValueBackend
from ..core.models import StudentProfile, utcnow
from ..reference.matching import find_reference_match

DEFAULT_PROFILES_KEY = "internship_map_profiles"


class ProfileStore:
    """Upsert/delete/seed over the durable profile array."""

    def __init__(
        self,
        backend: KeyValueBackend,
        key: str = DEFAULT_PROFILES_KEY,
        clock: Callable[[], datetime] = utcnow,
        match_tolerance: float = 0.01,
    ):
        self._backend = backend
        self._key = key
        self._clock = clock
        self._match_tolerance = match_tolerance

    @property
    def key(self) -> str:
        return self._key

    # ------------------------------------------------------------------
    # raw access
    # ------------------------------------------------------------------

    def _read_records(self) -> list[dict[str, Any]]:
        """Stored array as plain dicts; unreadable or corrupt storage is empty."""
        try:
            raw = self._backend.get(self._key)
        except StorageError as e:
            logger.error(f"Error loading profiles from storage: {e}")
            return []
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupted profile data under '{self._key}': {e}")
            return []
        if not isinstance(data, list):
            logger.error(f"Profile data under '{self._key}' is not an array")
            return []
        return [item for item in data if isinstance(item, dict)]

    def _write_records(self, records: list[dict[str, Any]]) -> bool:
        try:
            self._backend.set(self._key, json.dumps(records, ensure_ascii=False))
            return True
        except StorageQuotaExceededError as e:
            logger.error(f"Storage quota exceeded while saving profiles: {e}")
            return False
        except StorageError as e:
            logger.error(f"Error saving profiles to storage: {e}")
            return False

    def _stamp_timestamps(self, record: dict[str, Any]) -> tuple[dict[str, Any], bool]:
        """Fill an absent createdAt/updatedAt so parsing stays deterministic."""
        created = record.get("createdAt") or record.get("created_at")
        updated = record.get("updatedAt") or record.get("updated_at")
        if created and updated:
            return record, False
        stamp = created or updated or self._clock().isoformat()
        return {**record, "createdAt": created or stamp, "updatedAt": updated or stamp}, True

    @staticmethod
    def _missing_from(profile: StudentProfile, match: StudentProfile) -> dict[str, Any]:
        updates: dict[str, Any] = {}
        if (
            profile.travel_time is None or profile.travel_time.is_unknown
        ) and match.travel_time is not None:
            updates["travel_time"] = match.travel_time
        if not profile.rating and match.rating:
            updates["rating"] = match.rating
        if not profile.rating_comment and match.rating_comment:
            updates["rating_comment"] = match.rating_comment
        return updates

    @staticmethod
    def _parse(record: dict[str, Any]) -> StudentProfile | None:
        try:
            return StudentProfile.from_record(record)
        except ValidationError as e:
            logger.warning(
                f"Skipping invalid stored profile {record.get('id', '?')}: "
                f"{e.error_count()} error(s)"
            )
            return None

    # ------------------------------------------------------------------
    # public contract
    # ------------------------------------------------------------------

    def get_all(self) -> list[StudentProfile]:
        """All valid stored profiles in insertion order."""
        profiles = []
        for record in self._read_records():
            profile = self._parse(record)
            if profile is not None:
                profiles.append(profile)
        return profiles

    def get_by_id(self, profile_id: str) -> StudentProfile | None:
        for profile in self.get_all():
            if profile.id == profile_id:
                return profile
        return None

    def save(self, profile: StudentProfile) -> bool:
        """
        Upsert by id.

        An existing record is replaced and its updatedAt refreshed to now;
        a new record is appended with its own timestamps.
        """
        records = self._read_records()
        for index, record in enumerate(records):
            if record.get("id") == profile.id:
                updated_at = max(self._clock(), profile.created_at)
                records[index] = profile.model_copy(
                    update={"updated_at": updated_at}
                ).to_record()
                break
        else:
            records.append(profile.to_record())
        return self._write_records(records)

    def delete_by_id(self, profile_id: str) -> bool:
        records = [r for r in self._read_records() if r.get("id") != profile_id]
        return self._write_records(records)

    def replace_all(self, profiles: Sequence[StudentProfile]) -> bool:
        """Overwrite the whole array with exactly these profiles."""
        return self._write_records([p.to_record() for p in profiles])

    def clear(self) -> None:
        try:
            self._backend.delete(self._key)
        except StorageError as e:
            logger.error(f"Error clearing profiles from storage: {e}")

    def seed_if_empty(self, reference: Sequence[StudentProfile]) -> bool:
        """
        Write the reference set into an empty store, or reconcile a populated one.

        Reconciliation stamps missing timestamps from the clock once, then
        copies travel time, rating and rating comment from the matching
        reference record onto stored records that lack them. Values already
        present are never overwritten.

        Returns:
            True if anything was written
        """
        records = self._read_records()
        if not records:
            if self.replace_all(reference):
                logger.info(f"Seeded empty store with {len(reference)} profiles")
                return True
            return False

        changed = 0
        for index, record in enumerate(records):
            record, stamped = self._stamp_timestamps(record)
            profile = self._parse(record)
            if profile is None:
                continue
            if stamped:
                records[index] = record
            match = find_reference_match(profile, reference, self._match_tolerance)
            updates = self._missing_from(profile, match) if match else {}
            if updates:
                records[index] = profile.model_copy(update=updates).to_record()
            if stamped or updates:
                changed += 1

        if not changed:
            return False
        logger.info(f"Reconciled {changed} stored profile(s) with reference data")
        return self._write_records(records)
