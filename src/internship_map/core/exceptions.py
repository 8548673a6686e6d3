"""
Exception hierarchy for the internship map.

Storage and provider errors are recovered close to where they happen;
validation errors are reported back to whoever submitted the data.
"""


class InternshipMapError(Exception):
    """Base exception"""

    pass


class StorageError(InternshipMapError):
    """Key-value backend read/write failure"""

    def __init__(self, message: str, key: str | None = None):
        self.key = key
        super().__init__(message)


class StorageQuotaExceededError(StorageError):
    """Backend capacity exhausted"""

    pass


class MigrationError(InternshipMapError):
    """A migration step is malformed or missing"""

    def __init__(self, step: str, reason: str):
        self.step = step
        self.reason = reason
        super().__init__(f"Migration step '{step}' failed: {reason}")


class ProfileValidationError(InternshipMapError):
    """Submitted profile data rejected at the point of entry"""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"Validation error for '{field}': {message}")


class CsvFormatError(InternshipMapError):
    """CSV file cannot be processed as a whole"""

    pass


class ProviderError(InternshipMapError):
    """External geocoding / routing provider failure"""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"[{provider}] {message}")
