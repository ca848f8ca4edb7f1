"""Migration phases, UTXO batching and the transaction pipeline."""

from mixin_migrate.migrate.pipeline import SettledTransaction, TransactionPipeline
from mixin_migrate.migrate.runner import (
    MigrationContext,
    MigrationReport,
    MigrationRunner,
    PhaseResult,
)

__all__ = [
    "MigrationContext",
    "MigrationReport",
    "MigrationRunner",
    "PhaseResult",
    "SettledTransaction",
    "TransactionPipeline",
]
