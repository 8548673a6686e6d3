"""
Storage module.

Key-value backends and the profile store built on top of them.
"""

from .backends import InMemoryBackend, JsonFileBackend
from .profile_store import ProfileStore

__all__ = [
    "InMemoryBackend",
    "JsonFileBackend",
    "ProfileStore",
]
