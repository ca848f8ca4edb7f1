"""Transaction pipeline — settle one spend group as one safe transaction.

Steps, each depending on the previous one:

1. build an unsigned transaction spending the group to the receiver
2. file it as a transaction request under the group's deterministic id
3. take the signing views from the request
4. sign locally with the spend key
5. submit the signed transaction under the same request id

A group is final once step 5 succeeds; there is nothing to undo after it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from mixin_migrate.config.settings import DEFAULT_MEMO
from mixin_migrate.ledger.client import ledger_errors
from mixin_migrate.ledger.models import SafeTransactionBuilder, TransactionOutput
from mixin_migrate.migrate.batcher import sum_utxos
from mixin_migrate.safe.address import MixAddress

if TYPE_CHECKING:
    from collections.abc import Sequence
    from decimal import Decimal

    from mixin_migrate.ledger.client import LedgerClient
    from mixin_migrate.ledger.models import SafeUtxo
    from mixin_migrate.safe.keys import Key

logger = logging.getLogger(__name__)

PHASE = "migrate safe assets"


@dataclass(frozen=True)
class SettledTransaction:
    """A spend group accepted by the ledger."""

    request_id: str
    asset_id: str
    amount: Decimal
    inputs: int
    transaction_hash: str = ""


class TransactionPipeline:
    """Builds, signs and submits the transaction for each spend group.

    Args:
        ledger: Ledger client used for every step.
        receiver_id: User id the group's full amount is paid to.
        spend_key: Safe spend key of the migrated wallet.
        memo: Memo attached to each transaction.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        receiver_id: str,
        spend_key: Key,
        *,
        memo: str = DEFAULT_MEMO,
    ) -> None:
        self._ledger = ledger
        self._address = MixAddress.for_receiver(receiver_id)
        self._spend_key = spend_key
        self._memo = memo

    async def settle(self, group: Sequence[SafeUtxo]) -> SettledTransaction:
        """Spend every output of *group* in one transaction to the receiver.

        Raises:
            ValueError: If *group* is empty or mixes assets.
            TransactionError: If any step fails; the error names the step.
        """
        if not group:
            msg = "spend group is empty"
            raise ValueError(msg)
        if len({utxo.asset_id for utxo in group}) != 1:
            msg = "spend group mixes assets"
            raise ValueError(msg)

        builder = SafeTransactionBuilder(utxos=list(group), memo=self._memo)
        amount = sum_utxos(group)
        output = TransactionOutput(address=self._address, amount=amount)

        with ledger_errors("make safe transaction", phase=PHASE, step="make"):
            tx = await self._ledger.make_transaction(builder, [output])
        with ledger_errors("dump transaction", phase=PHASE, step="dump"):
            raw = tx.dump()

        with ledger_errors("create transaction request", phase=PHASE, step="request"):
            request = await self._ledger.create_transaction_request(builder.hint, raw)

        # All inputs belong to the one wallet key, a single signature at index 0
        with ledger_errors("sign transaction", phase=PHASE, step="sign"):
            self._ledger.sign_transaction(tx, self._spend_key, request.views, 0)
        with ledger_errors("dump transaction", phase=PHASE, step="dump"):
            signed_raw = tx.dump()

        with ledger_errors("submit transaction request", phase=PHASE, step="submit"):
            submitted = await self._ledger.submit_transaction_request(
                request.request_id, signed_raw
            )

        logger.debug(
            "settled %d %s inputs as request %s", len(group), builder.asset_id, request.request_id
        )
        return SettledTransaction(
            request_id=submitted.request_id or request.request_id,
            asset_id=builder.asset_id,
            amount=amount,
            inputs=len(group),
            transaction_hash=submitted.transaction_hash,
        )
