"""
Core definitions: data models, exceptions and interfaces.
"""

from .exceptions import (
    CsvFormatError,
    InternshipMapError,
    MigrationError,
    ProfileValidationError,
    ProviderError,
    StorageError,
    StorageQuotaExceededError,
)
from .interfaces import KeyValueBackend
from .models import (
    INTERNSHIP_FIELDS,
    REFERENCE_ID_PREFIX,
    Coordinates,
    InternshipAddress,
    StudentProfile,
    TravelTime,
    create_profile,
)

__all__ = [
    # Models
    "INTERNSHIP_FIELDS",
    "REFERENCE_ID_PREFIX",
    "Coordinates",
    "InternshipAddress",
    "StudentProfile",
    "TravelTime",
    "create_profile",
    # Exceptions
    "InternshipMapError",
    "StorageError",
    "StorageQuotaExceededError",
    "MigrationError",
    "ProfileValidationError",
    "CsvFormatError",
    "ProviderError",
    # Interfaces
    "KeyValueBackend",
]
