"""Record matching shared by the store reconciliation and every backfill step."""

from __future__ import annotations

from typing import Sequence

from loguru import logger

from ..core.models import StudentProfile

DEFAULT_TOLERANCE_DEG = 0.01


def find_reference_match(
    profile: StudentProfile,
    reference: Sequence[StudentProfile],
    tolerance: float = DEFAULT_TOLERANCE_DEG,
) -> StudentProfile | None:
    """
    Find the reference record a stored profile corresponds to.

    An exact id match wins. Otherwise the company names must be identical
    and, for a physical profile, the reference coordinates must lie within
    ``tolerance`` degrees on both axes. A remote profile has no coordinate
    to break ties with, so it only matches when exactly one reference
    record carries that company name and that record is remote too.

    Args:
        profile: Stored profile to match
        reference: Bundled reference profiles
        tolerance: Maximum |Δlat| and |Δlng| in degrees (exclusive)

    Returns:
        The matching reference profile, or None
    """
    for candidate in reference:
        if candidate.id == profile.id:
            return candidate

    same_company = [
        c for c in reference if c.internship_company == profile.internship_company
    ]
    if not same_company:
        return None

    if profile.coordinates is None:
        if len(same_company) == 1 and same_company[0].coordinates is None:
            return same_company[0]
        logger.debug(
            f"No unambiguous reference match for remote profile {profile.id} "
            f"({profile.internship_company})"
        )
        return None

    for candidate in same_company:
        if candidate.coordinates is not None and candidate.coordinates.is_near(
            profile.coordinates, tolerance
        ):
            return candidate
    return None
