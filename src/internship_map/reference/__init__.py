"""
Reference data.

Bundled sample profiles and the matching rule that links stored records
back to them.
"""

from .dataset import ReferenceDataset
from .matching import find_reference_match

__all__ = [
    "ReferenceDataset",
    "find_reference_match",
]
