"""
Interface definitions.

Protocols keep the profile store, the migration engine and the geo layer
independent of where bytes live and which web service answers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar, runtime_checkable

from .models import Coordinates, InternshipAddress

T = TypeVar("T")


@runtime_checkable
class KeyValueBackend(Protocol):
    """Durable string storage addressed by key (the browser's localStorage role)."""

    def get(self, key: str) -> str | None:
        """
        Read a value.

        Returns:
            The stored string, or None when the key is absent

        Raises:
            StorageError: The backend could not be read
        """
        ...

    def set(self, key: str, value: str) -> None:
        """
        Write a value, replacing any previous one.

        Raises:
            StorageError: The write failed
            StorageQuotaExceededError: The backend is full
        """
        ...

    def delete(self, key: str) -> None:
        """Remove a key; removing an absent key is not an error."""
        ...


@dataclass(frozen=True)
class AddressCandidate:
    """One address search suggestion."""

    display: str
    address: InternshipAddress
    coordinates: Coordinates


@dataclass(frozen=True)
class ProviderResult(Generic[T]):
    """
    Uniform answer from any external provider.

    ``data`` is None when the provider had nothing to offer, whether it
    failed, timed out or simply found no match.
    """

    data: T | None
    provider: str | None = None

    @property
    def ok(self) -> bool:
        return self.data is not None

    @classmethod
    def success(cls, data: T, provider: str) -> "ProviderResult[T]":
        return cls(data=data, provider=provider)

    @classmethod
    def no_result(cls, provider: str | None = None) -> "ProviderResult[T]":
        return cls(data=None, provider=provider)


@runtime_checkable
class GeoProvider(Protocol):
    """Geocoding and address search service."""

    name: str

    @property
    def available(self) -> bool:
        """False when the provider is not configured (e.g. missing token)."""
        ...

    async def geocode(self, address: str) -> Coordinates | None:
        """
        Resolve a free-form address to a coordinate.

        Returns:
            The best match, or None when nothing was found

        Raises:
            httpx.HTTPError: Transport or HTTP status failure
            ProviderError: The response could not be understood
        """
        ...

    async def search(self, query: str, limit: int) -> list[AddressCandidate]:
        """Up to ``limit`` suggestions, already filtered to the metro area."""
        ...


@runtime_checkable
class RouteProvider(Protocol):
    """Route duration service."""

    name: str

    async def duration_minutes(
        self, origin: Coordinates, destination: Coordinates, profile: str
    ) -> int | None:
        """
        Travel minutes for a routing profile ("driving", "walking").

        Returns:
            Whole minutes, or None when no route was found
        """
        ...
