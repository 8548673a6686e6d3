"""
Boot-time migrations.

Flag-guarded, idempotent reconciliation steps applied to the stored profile
array on every start.
"""

from .engine import MigrationContext, MigrationEngine, MigrationResult
from .state import MigrationState, MigrationStateStore

__all__ = [
    "MigrationContext",
    "MigrationEngine",
    "MigrationResult",
    "MigrationState",
    "MigrationStateStore",
]
