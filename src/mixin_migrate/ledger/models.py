"""Ledger data models — legacy assets, safe outputs, transaction requests.

Data classes for the values exchanged with the ledger client. Amounts are
``Decimal`` end to end.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mixin_migrate.safe.address import MixAddress

# Namespace for request ids derived from spend groups
_HINT_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_DNS, "mixin-migrate")


# ---------------------------------------------------------------------------
# Legacy custody
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LegacyAsset:
    """A balance held under the legacy custody model."""

    asset_id: str
    balance: Decimal
    symbol: str = ""


@dataclass(frozen=True)
class TransferInput:
    """A legacy transfer of ``amount`` of ``asset_id`` to ``opponent_id``."""

    asset_id: str
    opponent_id: str
    amount: Decimal
    trace_id: str
    memo: str = ""


@dataclass(frozen=True)
class Snapshot:
    """Ledger record of an accepted legacy transfer."""

    snapshot_id: str
    asset_id: str = ""
    amount: Decimal = Decimal(0)
    trace_id: str = ""


# ---------------------------------------------------------------------------
# Safe custody
# ---------------------------------------------------------------------------


class UtxoState(enum.StrEnum):
    """Spend state of a safe output."""

    UNSPENT = "unspent"
    SIGNED = "signed"
    SPENT = "spent"


@dataclass(frozen=True)
class SafeUtxo:
    """An unspent output under safe custody.

    Attributes:
        output_id: Ledger id of the output.
        asset_id: Asset the output holds.
        amount: Output amount.
        sequence: Ledger-assigned, strictly increasing; pagination cursor.
        state: Spend state.
        transaction_hash: Hash of the transaction that created the output.
        output_index: Index of the output in that transaction.
    """

    output_id: str
    asset_id: str
    amount: Decimal
    sequence: int
    state: UtxoState = UtxoState.UNSPENT
    transaction_hash: str = ""
    output_index: int = 0


@dataclass(frozen=True)
class ListUtxoOption:
    """Query for one page of safe outputs."""

    offset: int = 0
    limit: int = 500
    order: str = "ASC"
    state: UtxoState = UtxoState.UNSPENT


@dataclass(frozen=True)
class SafeAsset:
    """Safe asset metadata."""

    asset_id: str
    symbol: str = ""
    name: str = ""


@dataclass(frozen=True)
class TransactionOutput:
    """A transaction output paying ``amount`` to ``address``."""

    address: MixAddress
    amount: Decimal


@dataclass
class SafeTransactionBuilder:
    """Inputs and metadata of a safe transaction before it is built.

    ``hint`` doubles as the transaction request id. It is derived from the
    ordered output ids, so rebuilding the same spend group yields the same
    request id.
    """

    utxos: list[SafeUtxo]
    memo: str = ""
    hint: str = field(init=False)

    def __post_init__(self) -> None:
        if not self.utxos:
            msg = "transaction builder requires at least one input"
            raise ValueError(msg)
        names = ",".join(utxo.output_id for utxo in self.utxos)
        self.hint = str(uuid.uuid5(_HINT_NAMESPACE, names))

    @property
    def asset_id(self) -> str:
        return self.utxos[0].asset_id


@dataclass(frozen=True)
class TransactionRequest:
    """Ledger response to a transaction request create or submit call.

    Attributes:
        request_id: The request id the transaction is filed under.
        raw_transaction: Hex of the transaction as the ledger holds it.
        views: Signing views issued by the ledger (create only).
        transaction_hash: Hash of the transaction.
        state: Request state as reported by the ledger.
    """

    request_id: str
    raw_transaction: str = ""
    views: list[str] = field(default_factory=list)
    transaction_hash: str = ""
    state: str = ""
