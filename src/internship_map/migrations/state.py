"""
Migration flags.

All "has this step already run" flags live in one structured record. Stores
written by older releases kept one key per flag holding the string "true";
those keys are folded in the first time the structured record is missing.
"""

from __future__ import annotations

import json

from loguru import logger
from pydantic import BaseModel, ValidationError

from ..core.exceptions import StorageError
from ..core.interfaces import KeyValueBackend

DEFAULT_STATE_KEY = "internship_map_migration_state"

# field name -> key used by the per-flag layout
LEGACY_FLAG_KEYS: dict[str, str] = {
    "sample_data_v2": "internship_map_sample_data_v2_migrated",
    "anchor_record_fixed": "internship_map_warhol_added",
    "remote_profiles_added": "internship_map_remote_profiles_added",
    "travel_time_backfilled": "internship_map_travel_time_migrated",
    "ratings_backfilled": "internship_map_rating_migrated",
    "narrative_backfilled": "internship_map_questions_dates_migrated",
}


class MigrationState(BaseModel):
    sample_data_v2: bool = False
    anchor_record_fixed: bool = False
    remote_profiles_added: bool = False
    travel_time_backfilled: bool = False
    ratings_backfilled: bool = False
    narrative_backfilled: bool = False


class MigrationStateStore:
    """Loads and saves MigrationState through a key-value backend."""

    def __init__(self, backend: KeyValueBackend, key: str = DEFAULT_STATE_KEY):
        self._backend = backend
        self._key = key

    def load(self) -> MigrationState:
        """
        Current flags.

        Unreadable or corrupt state yields all-False flags, which makes every
        step re-check its data instead of skipping it.
        """
        try:
            raw = self._backend.get(self._key)
        except StorageError as e:
            logger.error(f"Error reading migration state: {e}")
            return MigrationState()

        if raw is None:
            return self._load_legacy()

        try:
            return MigrationState.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Discarding corrupt migration state: {e}")
            return MigrationState()

    def _load_legacy(self) -> MigrationState:
        flags = {}
        for field_name, legacy_key in LEGACY_FLAG_KEYS.items():
            try:
                flags[field_name] = self._backend.get(legacy_key) == "true"
            except StorageError as e:
                logger.error(f"Error reading legacy flag {legacy_key}: {e}")
                flags[field_name] = False
        state = MigrationState(**flags)
        if any(flags.values()):
            logger.info(
                "Imported legacy migration flags: "
                + ", ".join(name for name, value in flags.items() if value)
            )
        return state

    def save(self, state: MigrationState) -> bool:
        try:
            self._backend.set(self._key, state.model_dump_json())
            return True
        except StorageError as e:
            logger.error(f"Error saving migration state: {e}")
            return False
