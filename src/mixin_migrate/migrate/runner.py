"""Migration runner — the four ordered, resumable phases of a run.

1. ``migrate_legacy_assets``  transfer every non-zero legacy balance
2. ``update_pin``             rotate the authorization secret to a key
3. ``migrate_to_safe``        activate safe custody with a new spend key
4. ``migrate_safe_assets``    spend every unspent safe output to the receiver

Every phase decides from current data whether it still has work to do, so
re-running after a crash picks up where the previous run stopped. Secrets
are written to the keystore right after each rotation. The first failure
aborts the run.
"""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from mixin_migrate.config.settings import DEFAULT_MEMO, MAX_SPEND_GROUP_COUNT
from mixin_migrate.errors.definitions import ErrInvalidSpendGroupCount, ErrReceiverInvalidId
from mixin_migrate.errors.migrate_errors import KeystoreError, KeystorePersistError
from mixin_migrate.keystore.store import save_keystore
from mixin_migrate.ledger.client import ledger_errors
from mixin_migrate.ledger.models import TransferInput
from mixin_migrate.migrate.batcher import (
    DEFAULT_PAGE_SIZE,
    group_by_asset,
    iter_unspent_utxos,
    spend_groups,
    sum_utxos,
)
from mixin_migrate.migrate.pipeline import PHASE as SAFE_ASSETS_PHASE
from mixin_migrate.migrate.pipeline import TransactionPipeline
from mixin_migrate.safe.address import MixAddress
from mixin_migrate.safe.keys import Key

if TYPE_CHECKING:
    from pathlib import Path

    from mixin_migrate.keystore.store import Keystore
    from mixin_migrate.ledger.client import LedgerClient
    from mixin_migrate.ledger.models import Snapshot
    from mixin_migrate.migrate.pipeline import SettledTransaction

logger = logging.getLogger(__name__)


class PhaseResult(enum.StrEnum):
    """Outcome of one phase."""

    DONE = "done"
    SKIPPED = "skipped"


@dataclass
class MigrationContext:
    """Everything a phase needs, passed explicitly to each phase.

    ``keystore`` is mutated in place by the rotation phases and written back
    to ``keystore_path`` after each mutation.
    """

    ledger: LedgerClient
    keystore: Keystore
    keystore_path: Path
    receiver_id: str
    spend_group_count: int = MAX_SPEND_GROUP_COUNT
    page_size: int = DEFAULT_PAGE_SIZE
    memo: str = DEFAULT_MEMO

    def __post_init__(self) -> None:
        if not 1 <= self.spend_group_count <= MAX_SPEND_GROUP_COUNT:
            raise ErrInvalidSpendGroupCount
        try:
            MixAddress.for_receiver(self.receiver_id)
        except ValueError as exc:
            raise ErrReceiverInvalidId from exc


@dataclass
class MigrationReport:
    """What a run did, phase by phase."""

    phases: dict[str, PhaseResult] = field(default_factory=dict)
    transfers: list[Snapshot] = field(default_factory=list)
    settled: list[SettledTransaction] = field(default_factory=list)


def _persist(ctx: MigrationContext, name: str, secret: str) -> None:
    """Write the keystore after rotating *name*; report divergence loudly."""
    try:
        save_keystore(ctx.keystore, ctx.keystore_path)
    except KeystorePersistError as exc:
        logger.critical(
            "keystore %s was NOT updated, restore %s manually: %s",
            ctx.keystore_path,
            name,
            secret,
        )
        msg = f"{exc.message}; new {name} exists only in memory"
        raise KeystorePersistError(msg, field=name, secret=secret) from exc


# ---------------------------------------------------------------------------
# Phases
# ---------------------------------------------------------------------------


async def migrate_legacy_assets(
    ctx: MigrationContext,
    report: MigrationReport | None = None,
) -> PhaseResult:
    """Transfer every non-zero legacy balance in full to the receiver."""
    phase = "migrate legacy assets"
    with ledger_errors("list legacy assets", phase=phase):
        assets = await ctx.ledger.read_assets()

    assets = [asset for asset in assets if not asset.balance.is_zero()]
    if not assets:
        logger.info("no legacy assets")
        return PhaseResult.SKIPPED

    logger.info("start migrating %d legacy assets", len(assets))
    for asset in assets:
        logger.info("migrating legacy asset %s %s", asset.balance, asset.symbol)
        transfer = TransferInput(
            asset_id=asset.asset_id,
            opponent_id=ctx.receiver_id,
            amount=asset.balance,
            trace_id=str(uuid.uuid4()),
            memo=ctx.memo,
        )
        with ledger_errors(f"transfer {asset.balance} {asset.symbol}", phase=phase):
            snapshot = await ctx.ledger.transfer(transfer, ctx.keystore.pin)
        logger.info(
            "migrated legacy asset %s %s snapshot %s",
            asset.balance,
            asset.symbol,
            snapshot.snapshot_id,
        )
        if report is not None:
            report.transfers.append(snapshot)

    logger.info("migrate legacy assets done")
    return PhaseResult.DONE


async def update_pin(ctx: MigrationContext) -> PhaseResult:
    """Rotate the authorization secret to a freshly generated key."""
    if Key.is_key(ctx.keystore.pin):
        logger.info("updated to tip pin already")
        return PhaseResult.SKIPPED

    logger.info("start update tip pin")
    key = Key.generate()
    with ledger_errors("modify pin", phase="update pin"):
        await ctx.ledger.modify_pin(ctx.keystore.pin, key.public())

    ctx.keystore.pin = str(key)
    _persist(ctx, "pin", ctx.keystore.pin)
    logger.info("update tip pin done")
    return PhaseResult.DONE


async def migrate_to_safe(ctx: MigrationContext) -> PhaseResult:
    """Activate safe custody with a freshly generated spend key."""
    if Key.is_key(ctx.keystore.spend_key):
        logger.info("migrated to safe already")
        return PhaseResult.SKIPPED

    logger.info("start migrate safe")
    spend_key = str(Key.generate())
    with ledger_errors("migrate safe", phase="migrate to safe"):
        await ctx.ledger.safe_migrate(spend_key, ctx.keystore.pin)

    ctx.keystore.spend_key = spend_key
    _persist(ctx, "spend_key", spend_key)
    logger.info("migrate safe done")
    return PhaseResult.DONE


async def migrate_safe_assets(
    ctx: MigrationContext,
    report: MigrationReport | None = None,
) -> PhaseResult:
    """Spend every unspent safe output to the receiver, one asset at a time."""
    phase = SAFE_ASSETS_PHASE
    with ledger_errors("list safe utxos", phase=phase):
        utxos = [u async for u in iter_unspent_utxos(ctx.ledger, page_size=ctx.page_size)]

    assets = group_by_asset(utxos)
    if not assets:
        logger.info("no safe assets")
        return PhaseResult.SKIPPED

    logger.info("start migrating %d safe assets", len(assets))
    try:
        spend_key = Key.from_string(ctx.keystore.spend_key)
    except ValueError as exc:
        msg = f"invalid spend key: {exc}"
        raise KeystoreError(msg) from exc

    pipeline = TransactionPipeline(ctx.ledger, ctx.receiver_id, spend_key, memo=ctx.memo)
    for asset_id, asset_utxos in assets.items():
        with ledger_errors(f"read safe asset {asset_id}", phase=phase):
            asset = await ctx.ledger.safe_read_asset(asset_id)

        total = sum_utxos(asset_utxos)
        logger.info(
            "migrating safe asset %s %s (%d outputs)", total, asset.symbol, len(asset_utxos)
        )
        for group in spend_groups(asset_utxos, ctx.spend_group_count):
            settled = await pipeline.settle(group)
            logger.info(
                "settled %d outputs, %s %s, request %s",
                settled.inputs,
                settled.amount,
                asset.symbol,
                settled.request_id,
            )
            if report is not None:
                report.settled.append(settled)
        logger.info("migrated safe asset %s %s", total, asset.symbol)

    logger.info("migrate safe assets done")
    return PhaseResult.DONE


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


class MigrationRunner:
    """Runs the four phases in order against one :class:`MigrationContext`."""

    def __init__(self, ctx: MigrationContext) -> None:
        self._ctx = ctx

    @property
    def context(self) -> MigrationContext:
        return self._ctx

    async def run(self) -> MigrationReport:
        """Execute every phase; the first failure propagates and ends the run."""
        ctx = self._ctx
        report = MigrationReport()
        report.phases["migrate legacy assets"] = await migrate_legacy_assets(ctx, report)
        report.phases["update pin"] = await update_pin(ctx)
        report.phases["migrate to safe"] = await migrate_to_safe(ctx)
        report.phases[SAFE_ASSETS_PHASE] = await migrate_safe_assets(ctx, report)
        return report
