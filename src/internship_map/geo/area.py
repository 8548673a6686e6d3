"""Deployment area check (Pittsburgh)."""

from __future__ import annotations

from typing import Sequence

from ..core.models import InternshipAddress

AREA_KEYWORDS = ("pittsburgh", "pgh", "allegheny")


def is_target_area(
    address: InternshipAddress, keywords: Sequence[str] = AREA_KEYWORDS
) -> bool:
    """True when the city or full address mentions one of the area keywords."""
    full = address.full_address.lower()
    city = address.city.lower()
    return any(k in full or k in city for k in keywords)
