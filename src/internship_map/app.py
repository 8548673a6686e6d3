"""
Application service.

Owns the in-memory working copy of the profile array and keeps it in step
with the store: boot runs the migration, and every mutating call persists
first and only then updates the working copy.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Iterable

import httpx
from loguru import logger

from .config import AppConfig
from .core.exceptions import ProfileValidationError, StorageError
from .core.interfaces import AddressCandidate, KeyValueBackend
from .core.models import Coordinates, StudentProfile, TravelTime, create_profile, utcnow
from .filtering import FilterCriteria, FilterResult, filter_profiles
from .geo.area import is_target_area
from .geo.providers import ProviderChain, build_geocoder_chain
from .geo.routing import TravelTimeCalculator, build_travel_time_calculator
from .geo.search import AddressSearchSession
from .importers.csv_import import CsvImporter, CsvImportResult, address_from_text
from .migrations.engine import MigrationEngine, MigrationResult
from .migrations.state import MigrationStateStore
from .reference.dataset import ReferenceDataset
from .storage.backends import JsonFileBackend
from .storage.profile_store import ProfileStore
from .validation import ProfileForm, check_photo_count, encode_photo, validate_form

# (content, content type) as received from an upload
PhotoUpload = tuple[bytes, str]


class InternshipMapApp:
    def __init__(
        self,
        config: AppConfig | None = None,
        backend: KeyValueBackend | None = None,
        reference: ReferenceDataset | None = None,
        geocoder: ProviderChain | None = None,
        travel: TravelTimeCalculator | None = None,
        clock: Callable[[], datetime] = utcnow,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config or AppConfig()
        self._clock = clock

        storage_cfg = self.config.storage
        if backend is None:
            backend = JsonFileBackend(
                storage_cfg.data_dir, create_backup=storage_cfg.create_backup
            )
        self.store = ProfileStore(
            backend,
            key=storage_cfg.profiles_key,
            clock=clock,
            match_tolerance=self.config.migration.match_tolerance_deg,
        )
        self.state_store = MigrationStateStore(
            backend, key=storage_cfg.migration_state_key
        )
        self.reference = reference or ReferenceDataset.load(
            self.config.reference_data_path
        )

        geo = self.config.geo
        self.geocoder = geocoder or build_geocoder_chain(geo, http_client)
        self.travel = travel or build_travel_time_calculator(geo, http_client)
        self.search_session = AddressSearchSession(
            self.geocoder,
            min_chars=geo.search_min_chars,
            limit=geo.search_limit,
            debounce_seconds=geo.search_debounce_seconds,
        )
        self.importer = CsvImporter(
            self.store, self.geocoder, geo.area_keywords, clock=clock
        )

        self.profiles: list[StudentProfile] = []

    def boot(self) -> list[StudentProfile]:
        """Run the migration and load the reconciled profiles."""
        engine = MigrationEngine(
            self.store,
            self.reference,
            self.state_store,
            config=self.config.migration,
            clock=self._clock,
        )
        result: MigrationResult = engine.run()
        self.profiles = result.profiles
        if result.applied_steps:
            logger.info(f"Boot migration applied: {', '.join(result.applied_steps)}")
        logger.info(f"Loaded {len(self.profiles)} profiles")
        return list(self.profiles)

    async def _resolve_location(self, form: ProfileForm):
        if form.is_remote:
            return None, None

        if form.selected_address is not None and form.selected_coordinates is not None:
            address, coordinates = form.selected_address, form.selected_coordinates
        else:
            text = form.address_input or form.selected_address.full_address
            result = await self.geocoder.geocode(text)
            if not result.ok:
                raise ProfileValidationError(
                    "address", f"Could not geocode address: {text}"
                )
            address = form.selected_address or address_from_text(text)
            coordinates = result.data

        if not is_target_area(address, self.config.geo.area_keywords):
            raise ProfileValidationError(
                "address", "Please select an address in the Pittsburgh area."
            )
        return address, coordinates

    async def submit(
        self,
        form: ProfileForm | dict[str, Any],
        photos: Iterable[PhotoUpload] = (),
    ) -> StudentProfile:
        """
        Validate, locate and store a new profile.

        Photos stay on the in-memory profile only.

        Raises:
            ProfileValidationError: The submission was rejected
            StorageError: The profile could not be persisted; nothing changed
        """
        if not isinstance(form, ProfileForm):
            form = validate_form(form)

        uploads = list(photos)
        check_photo_count([], len(uploads))
        encoded = [encode_photo(content, content_type) for content, content_type in uploads]

        address, coordinates = await self._resolve_location(form)
        profile = create_profile(
            form.profile_data(address=address, coordinates=coordinates),
            clock=self._clock,
        )
        if encoded:
            profile = profile.model_copy(update={"photos": encoded})

        if self.config.persist_submissions and not self.store.save(profile):
            raise StorageError("Could not save profile", key=self.store.key)

        self.profiles.append(profile)
        logger.info(f"Added profile {profile.id} ({profile.internship_company})")
        return profile

    async def import_csv(self, text: str) -> CsvImportResult:
        """
        Raises:
            CsvFormatError: The file has no header or no data rows
        """
        result = await self.importer.import_text(text)
        self.profiles.extend(result.created)
        return result

    def delete_profile(self, profile_id: str) -> bool:
        """
        Returns:
            True if the profile was in the working copy

        Raises:
            StorageError: The deletion could not be persisted
        """
        if not self.store.delete_by_id(profile_id):
            raise StorageError(f"Could not delete profile {profile_id}", key=self.store.key)
        before = len(self.profiles)
        self.profiles = [p for p in self.profiles if p.id != profile_id]
        return len(self.profiles) != before

    def view(self, criteria: FilterCriteria | None = None) -> FilterResult:
        return filter_profiles(self.profiles, criteria or FilterCriteria())

    async def search_addresses(self, query: str) -> list[AddressCandidate] | None:
        return await self.search_session.search(query)

    async def suggest_travel_time(self, coordinates: Coordinates) -> TravelTime:
        return await self.travel.calculate(coordinates)
