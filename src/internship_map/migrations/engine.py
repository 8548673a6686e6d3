"""
Boot-time migration engine.

Brings the stored profile array up to the current schema. Steps are
registered in execution order; each one is guarded by a flag in
MigrationState plus, where it matters, a check of the data itself, so a lost
flag re-runs a step instead of skipping it forever. Steps only persist
records whose content actually changed, which keeps a second boot free of
writes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from loguru import logger

from ..config import MigrationConfig
from ..core.exceptions import MigrationError
from ..core.models import OPTIONAL_QUESTIONS, REQUIRED_QUESTIONS, StudentProfile, utcnow
from ..reference.dataset import ReferenceDataset
from ..reference.matching import find_reference_match
from ..storage.profile_store import ProfileStore
from .placeholders import placeholder_answers, resolve_dates
from .state import MigrationState, MigrationStateStore


@dataclass
class MigrationContext:
    """Working state handed from step to step."""

    store: ProfileStore
    reference: ReferenceDataset
    state: MigrationState
    config: MigrationConfig
    clock: Callable[[], datetime]
    profiles: list[StudentProfile] = field(default_factory=list)

    def match(self, profile: StudentProfile) -> StudentProfile | None:
        return find_reference_match(
            profile, self.reference.profiles, self.config.match_tolerance_deg
        )

    def append(self, profile: StudentProfile) -> None:
        self.profiles.append(profile)
        if not self.store.save(profile):
            logger.warning(f"Could not persist profile {profile.id}")

    def replace(self, index: int, updated: StudentProfile) -> bool:
        """
        Persist an updated record, then swap it into the working copy.

        A failed save leaves the working copy as it was, matching the store.
        """
        if not self.store.save(updated):
            logger.warning(f"Could not persist profile {updated.id}")
            return False
        self.profiles[index] = self.store.get_by_id(updated.id) or updated
        return True


MigrationStep = Callable[[MigrationContext], bool]


@dataclass
class MigrationResult:
    profiles: list[StudentProfile]
    applied_steps: list[str]


class MigrationEngine:
    """Runs the registered steps in order against a profile store."""

    # (name, step) in execution order
    _steps: list[tuple[str, MigrationStep]] = []

    @classmethod
    def register(cls, name: str) -> Callable[[MigrationStep], MigrationStep]:
        """
        Step registration decorator.

        Usage:
            @MigrationEngine.register("ratings")
            def backfill_ratings(ctx: MigrationContext) -> bool:
                ...
                return applied
        """

        def decorator(func: MigrationStep) -> MigrationStep:
            if any(existing == name for existing, _ in cls._steps):
                raise MigrationError(name, "step registered twice")
            cls._steps.append((name, func))
            return func

        return decorator

    @classmethod
    def step_names(cls) -> list[str]:
        return [name for name, _ in cls._steps]

    def __init__(
        self,
        store: ProfileStore,
        reference: ReferenceDataset,
        state_store: MigrationStateStore,
        config: MigrationConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._store = store
        self._reference = reference
        self._state_store = state_store
        self._config = config or MigrationConfig()
        self._clock = clock

    def run(self) -> MigrationResult:
        """
        Execute every step in order.

        Returns:
            The reconciled profiles (already persisted) and the names of the
            steps that changed something
        """
        ctx = MigrationContext(
            store=self._store,
            reference=self._reference,
            state=self._state_store.load(),
            config=self._config,
            clock=self._clock,
        )
        applied = []
        for name, step in self._steps:
            flags_before = ctx.state.model_dump()
            try:
                changed = step(ctx)
            except MigrationError:
                raise
            except Exception as e:
                raise MigrationError(name, str(e)) from e
            if changed:
                applied.append(name)
                logger.info(f"Migration step '{name}' applied")
            else:
                logger.debug(f"Migration step '{name}' skipped")
            if ctx.state.model_dump() != flags_before:
                self._state_store.save(ctx.state)

        return MigrationResult(profiles=list(ctx.profiles), applied_steps=applied)


# ============================================================================
# Steps (execution order = registration order)
# ============================================================================


@MigrationEngine.register("seed")
def seed_reference_data(ctx: MigrationContext) -> bool:
    """Seed an empty store, reconcile a populated one, drop duplicate ids."""
    seeded = ctx.store.seed_if_empty(ctx.reference.profiles)
    loaded = ctx.store.get_all()

    seen: set[str] = set()
    unique = []
    for profile in loaded:
        if profile.id in seen:
            continue
        seen.add(profile.id)
        unique.append(profile)
    ctx.profiles = unique

    if len(unique) != len(loaded):
        logger.warning(f"Dropping {len(loaded) - len(unique)} duplicate profile id(s)")
        ctx.store.replace_all(unique)
        return True
    return seeded


@MigrationEngine.register("replace_reference_set")
def replace_reference_set(ctx: MigrationContext) -> bool:
    """Swap every stored sample profile for the current reference set, whole."""
    if ctx.state.sample_data_v2 and ctx.state.anchor_record_fixed:
        return False

    user_profiles = [p for p in ctx.profiles if not p.is_reference]
    combined = user_profiles + ctx.reference.profiles
    ctx.profiles = combined
    if not ctx.store.replace_all(combined):
        logger.warning("Reference set replacement could not be persisted")
        return True

    ctx.state.sample_data_v2 = True
    ctx.state.anchor_record_fixed = True
    return True


@MigrationEngine.register("ensure_anchor")
def ensure_anchor_record(ctx: MigrationContext) -> bool:
    cfg = ctx.config
    if any(
        p.id == cfg.anchor_id or p.internship_company == cfg.anchor_company
        for p in ctx.profiles
    ):
        return False

    anchor = ctx.reference.find_anchor(cfg.anchor_id, cfg.anchor_company)
    if anchor is None:
        logger.warning(f"Anchor record {cfg.anchor_id} missing from reference data")
        return False
    ctx.append(anchor)
    return True


@MigrationEngine.register("add_remote_profiles")
def add_remote_profiles(ctx: MigrationContext) -> bool:
    if ctx.state.remote_profiles_added:
        return False

    present = {p.id for p in ctx.profiles}
    missing = [p for p in ctx.reference.remote() if p.id not in present]
    for profile in missing:
        ctx.append(profile)
    ctx.state.remote_profiles_added = True
    return bool(missing)


def _lacks_travel_time(profile: StudentProfile) -> bool:
    return not profile.is_remote and (
        profile.travel_time is None or profile.travel_time.is_unknown
    )


@MigrationEngine.register("travel_time")
def backfill_travel_time(ctx: MigrationContext) -> bool:
    """Copy the whole travel-time triple onto physical records that have none."""
    if ctx.state.travel_time_backfilled and not any(
        _lacks_travel_time(p) for p in ctx.profiles
    ):
        return False

    changed = False
    for index, profile in enumerate(ctx.profiles):
        if not _lacks_travel_time(profile):
            continue
        match = ctx.match(profile)
        if match is None or match.travel_time is None or match.travel_time.is_unknown:
            continue
        updated = profile.model_copy(update={"travel_time": match.travel_time})
        changed = ctx.replace(index, updated) or changed

    ctx.state.travel_time_backfilled = True
    return changed


@MigrationEngine.register("ratings")
def backfill_ratings(ctx: MigrationContext) -> bool:
    if ctx.state.ratings_backfilled and not any(p.lacks_rating() for p in ctx.profiles):
        return False

    changed = False
    for index, profile in enumerate(ctx.profiles):
        if not profile.lacks_rating():
            continue
        match = ctx.match(profile)
        if match is None:
            continue
        updates: dict[str, Any] = {}
        if not profile.rating and match.rating:
            updates["rating"] = match.rating
        if not profile.rating_comment and match.rating_comment:
            updates["rating_comment"] = match.rating_comment
        if updates:
            changed = ctx.replace(index, profile.model_copy(update=updates)) or changed

    ctx.state.ratings_backfilled = True
    return changed


@MigrationEngine.register("narrative")
def backfill_narrative(ctx: MigrationContext) -> bool:
    """Fill answers and dates from the reference match, else from placeholders."""
    if ctx.state.narrative_backfilled and not any(
        p.lacks_narrative() for p in ctx.profiles
    ):
        return False

    cfg = ctx.config
    today = ctx.clock().date()
    changed = False
    for index, profile in enumerate(ctx.profiles):
        if not profile.lacks_narrative():
            continue
        match = ctx.match(profile)

        updates: dict[str, Any] = {}
        if match is not None:
            for name in REQUIRED_QUESTIONS + OPTIONAL_QUESTIONS:
                if not getattr(profile, name) and getattr(match, name):
                    updates[name] = getattr(match, name)
        merged = profile.model_copy(update=updates)
        updates.update(placeholder_answers(merged))

        start, end = resolve_dates(
            profile.start_date,
            profile.end_date,
            today=today,
            offset_days=cfg.default_start_offset_days,
            duration_days=cfg.default_duration_days,
            fallback_start=match.start_date if match else None,
            fallback_end=match.end_date if match else None,
        )
        if start != profile.start_date:
            updates["start_date"] = start
        if end != profile.end_date:
            updates["end_date"] = end

        if updates:
            changed = ctx.replace(index, profile.model_copy(update=updates)) or changed

    ctx.state.narrative_backfilled = True
    return changed


@MigrationEngine.register("cleanup")
def remove_test_profiles(ctx: MigrationContext) -> bool:
    """Delete profiles whose first or last name carries a test marker."""
    markers = [m.lower() for m in ctx.config.cleanup_markers if m]
    kept = []
    removed = 0
    for profile in ctx.profiles:
        names = (profile.first_name.lower(), profile.last_name.lower())
        if any(marker in name for marker in markers for name in names):
            if not ctx.store.delete_by_id(profile.id):
                logger.warning(f"Could not delete test profile {profile.id}")
            removed += 1
        else:
            kept.append(profile)
    ctx.profiles = kept
    if removed:
        logger.info(f"Removed {removed} test profile(s)")
    return bool(removed)
