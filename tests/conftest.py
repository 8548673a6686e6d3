"""
Internship map test fixtures.

A fixed clock, an in-memory backend, a small reference dataset and stub
geo providers, so no test touches the network or the real disk layout.
"""

from datetime import date, datetime, timezone

import pytest

from internship_map.config import AppConfig, MigrationConfig
from internship_map.core.interfaces import AddressCandidate
from internship_map.core.models import (
    Coordinates,
    InternshipAddress,
    StudentProfile,
    TravelTime,
)
from internship_map.geo.providers import ProviderChain
from internship_map.reference.dataset import ReferenceDataset
from internship_map.storage.backends import InMemoryBackend
from internship_map.storage.profile_store import ProfileStore

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
CREATED = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

ANCHOR_ID = "sample_3"
ANCHOR_COMPANY = "Andy Warhol Museum"


def build_profile(
    id: str = "profile_1",
    company: str = "Acme Works",
    lat: float = 40.44,
    lng: float = -79.99,
    remote: bool = False,
    **overrides,
) -> StudentProfile:
    """A complete, valid profile; any field can be overridden."""
    data = {
        "id": id,
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@example.com",
        "internship_company": company,
        "field": "coding",
        "internship_contact_name": "Sam Lee",
        "internship_site_email": "sam@example.org",
        "is_remote": remote,
        "start_date": date(2025, 1, 6),
        "end_date": date(2025, 5, 2),
        "question1_what_made_unique": "Real projects from day one.",
        "question2_meaningful_contribution": "Shipped the volunteer scheduler.",
        "question3_skills_learned": "Testing and code review.",
        "rating": 4,
        "rating_comment": "Good",
        "created_at": CREATED,
        "updated_at": CREATED,
    }
    if not remote:
        data["internship_address"] = InternshipAddress(
            street="1 Main St",
            city="Pittsburgh",
            state="PA",
            zip="15213",
            full_address="1 Main St, Pittsburgh, PA 15213",
        )
        data["coordinates"] = Coordinates(lat=lat, lng=lng)
        data["travel_time"] = TravelTime(driving=10, walking=30, bus=20)
    data.update(overrides)
    return StudentProfile(**data)


@pytest.fixture
def make_profile():
    return build_profile


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def store(backend, clock):
    return ProfileStore(backend, clock=clock)


@pytest.fixture
def reference_profiles():
    return [
        build_profile(
            "sample_1",
            "Carnegie Library",
            lat=40.4382,
            lng=-79.9226,
            field="library science",
            travel_time=TravelTime(driving=8, walking=30, bus=18),
            rating=5,
            rating_comment="Loved it",
        ),
        build_profile(
            "sample_2",
            "Hilltop Robotics Lab",
            lat=40.4100,
            lng=-79.9800,
            field="robotics",
            rating=4,
            rating_comment="Great",
        ),
        build_profile(
            ANCHOR_ID,
            ANCHOR_COMPANY,
            lat=40.4484,
            lng=-80.0025,
            field="art",
            travel_time=TravelTime(driving=14, walking=70, bus=32),
            rating=5,
            rating_comment="Inspiring",
        ),
        build_profile(
            "sample_4",
            "OpenBridge Code Collective",
            remote=True,
            rating=5,
            rating_comment="Flexible and fun",
        ),
    ]


@pytest.fixture
def reference(reference_profiles):
    return ReferenceDataset(reference_profiles)


@pytest.fixture
def migration_config():
    return MigrationConfig(anchor_id=ANCHOR_ID, anchor_company=ANCHOR_COMPANY)


@pytest.fixture
def app_config(migration_config):
    config = AppConfig(migration=migration_config)
    config.geo.search_debounce_seconds = 0
    return config


# ============================================================================
# Geo stubs
# ============================================================================


class StubGeoProvider:
    """Answers from a dict; unknown addresses fall back to ``default``."""

    def __init__(self, known=None, default=None, name="stub", available=True):
        self.name = name
        self._available = available
        self.known = dict(known or {})
        self.default = default
        self.geocoded: list[str] = []
        self.searched: list[str] = []

    @property
    def available(self) -> bool:
        return self._available

    async def geocode(self, address):
        self.geocoded.append(address)
        return self.known.get(address, self.default)

    async def search(self, query, limit):
        self.searched.append(query)
        coords = self.known.get(query, self.default)
        if coords is None:
            return []
        return [
            AddressCandidate(
                display=f"{query}, Pittsburgh, PA",
                address=InternshipAddress(
                    street=query,
                    city="Pittsburgh",
                    state="Pennsylvania",
                    full_address=f"{query}, Pittsburgh, PA",
                ),
                coordinates=coords,
            )
        ]


class StubTravelCalculator:
    def __init__(self, result=None):
        self.result = result or TravelTime(driving=12, walking=40, bus=0)
        self.destinations = []

    async def calculate(self, destination):
        self.destinations.append(destination)
        return self.result


@pytest.fixture
def geo_provider():
    return StubGeoProvider(default=Coordinates(lat=40.4433, lng=-79.9436))


@pytest.fixture
def geocoder(geo_provider):
    return ProviderChain([geo_provider], timeout=1.0)


@pytest.fixture
def travel_calculator():
    return StubTravelCalculator()

