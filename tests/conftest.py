"""Shared test fixtures for the mixin-migrate test suite."""

from __future__ import annotations

import hashlib
import json
import uuid
from dataclasses import replace
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import pytest

from mixin_migrate.ledger.models import (
    LegacyAsset,
    SafeAsset,
    SafeUtxo,
    Snapshot,
    TransactionRequest,
    UtxoState,
)

if TYPE_CHECKING:
    from pathlib import Path

    from mixin_migrate.ledger.models import (
        ListUtxoOption,
        SafeTransactionBuilder,
        TransactionOutput,
        TransferInput,
    )
    from mixin_migrate.safe.keys import Key

SELF_ID = "6b8a3c3e-7a14-4f3b-9d0e-2c1f5a6b7c8d"
RECEIVER_ID = "0f4c2b9a-1d3e-4a5b-8c7d-9e0f1a2b3c4d"
LEGACY_PIN = "123456"

# ---------------------------------------------------------------------------
# In-memory ledger
# ---------------------------------------------------------------------------


class FakeTransaction:
    """Transaction built by :class:`FakeLedger`; dumps to hex-encoded JSON."""

    def __init__(self, builder: SafeTransactionBuilder, outputs: list[TransactionOutput]) -> None:
        self.builder = builder
        self.outputs = outputs
        self.signatures: list[tuple[int, str, tuple[str, ...]]] = []

    def dump(self) -> str:
        body = {
            "hint": self.builder.hint,
            "memo": self.builder.memo,
            "inputs": [u.output_id for u in self.builder.utxos],
            "outputs": [
                {"members": list(o.address.members), "amount": str(o.amount)}
                for o in self.outputs
            ],
            "signatures": [[i, pub] for i, pub, _ in self.signatures],
        }
        return json.dumps(body, sort_keys=True).encode().hex()


class FakeLedger:
    """Ledger double that keeps balances and outputs in memory.

    Transfers zero the legacy balance, submitted transactions mark their
    inputs spent, so a second run over the same ledger finds nothing to do.
    Names listed in ``fail_on`` raise ``RuntimeError`` when called.
    """

    def __init__(self) -> None:
        self.assets: list[LegacyAsset] = []
        self.utxos: list[SafeUtxo] = []
        self.safe_assets: dict[str, SafeAsset] = {}
        self.pin = LEGACY_PIN
        self.pin_public_key = ""
        self.spend_key = ""
        self.calls: list[str] = []
        self.transfers: list[tuple[TransferInput, str]] = []
        self.list_options: list[ListUtxoOption] = []
        self.transactions: list[FakeTransaction] = []
        self.requests: dict[str, str] = {}
        self.submitted: list[tuple[str, str]] = []
        self.fail_on: set[str] = set()
        self.closed = False

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            msg = f"{name} unavailable"
            raise RuntimeError(msg)

    async def read_assets(self) -> list[LegacyAsset]:
        self._call("read_assets")
        return list(self.assets)

    async def transfer(self, transfer: TransferInput, pin: str) -> Snapshot:
        self._call("transfer")
        self.transfers.append((transfer, pin))
        self.assets = [
            replace(a, balance=Decimal(0)) if a.asset_id == transfer.asset_id else a
            for a in self.assets
        ]
        return Snapshot(
            snapshot_id=str(uuid.uuid4()),
            asset_id=transfer.asset_id,
            amount=transfer.amount,
            trace_id=transfer.trace_id,
        )

    async def modify_pin(self, old_pin: str, new_public_key: str) -> None:
        self._call("modify_pin")
        if old_pin != self.pin:
            msg = "invalid pin"
            raise RuntimeError(msg)
        self.pin_public_key = new_public_key

    async def safe_migrate(self, spend_key: str, pin: str) -> None:
        self._call("safe_migrate")
        self.spend_key = spend_key

    async def safe_list_utxos(self, option: ListUtxoOption) -> list[SafeUtxo]:
        self._call("safe_list_utxos")
        self.list_options.append(option)
        rows = sorted(
            (u for u in self.utxos if u.sequence >= option.offset and u.state == option.state),
            key=lambda u: u.sequence,
        )
        return rows[: option.limit]

    async def safe_read_asset(self, asset_id: str) -> SafeAsset:
        self._call("safe_read_asset")
        return self.safe_assets.get(asset_id, SafeAsset(asset_id=asset_id, symbol="XIN"))

    async def make_transaction(
        self,
        builder: SafeTransactionBuilder,
        outputs: list[TransactionOutput],
    ) -> FakeTransaction:
        self._call("make_transaction")
        tx = FakeTransaction(builder, outputs)
        self.transactions.append(tx)
        return tx

    async def create_transaction_request(
        self, request_id: str, raw_transaction: str
    ) -> TransactionRequest:
        self._call("create_transaction_request")
        self.requests[request_id] = raw_transaction
        return TransactionRequest(
            request_id=request_id,
            raw_transaction=raw_transaction,
            views=[f"view-{request_id}"],
        )

    def sign_transaction(
        self,
        tx: FakeTransaction,
        spend_key: Key,
        views: list[str],
        index: int,
    ) -> None:
        self._call("sign_transaction")
        tx.signatures.append((index, spend_key.public(), tuple(views)))

    async def submit_transaction_request(
        self, request_id: str, raw_transaction: str
    ) -> TransactionRequest:
        self._call("submit_transaction_request")
        self.submitted.append((request_id, raw_transaction))
        spent = {
            u.output_id
            for tx in self.transactions
            if tx.builder.hint == request_id
            for u in tx.builder.utxos
        }
        self.utxos = [
            replace(u, state=UtxoState.SPENT) if u.output_id in spent else u for u in self.utxos
        ]
        return TransactionRequest(
            request_id=request_id,
            raw_transaction=raw_transaction,
            transaction_hash=hashlib.sha256(raw_transaction.encode()).hexdigest(),
            state="spent",
        )

    async def close(self) -> None:
        self.closed = True


def make_utxos(
    asset_id: str,
    count: int,
    *,
    start: int = 1,
    amount: str = "1",
) -> list[SafeUtxo]:
    """Build *count* unspent outputs with consecutive sequence numbers."""
    return [
        SafeUtxo(
            output_id=str(uuid.uuid5(uuid.NAMESPACE_OID, f"{asset_id}:{seq}")),
            asset_id=asset_id,
            amount=Decimal(amount),
            sequence=seq,
            transaction_hash=hashlib.sha256(f"{asset_id}:{seq}".encode()).hexdigest(),
            output_index=0,
        )
        for seq in range(start, start + count)
    ]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def self_id() -> str:
    return SELF_ID


@pytest.fixture
def receiver_id() -> str:
    return RECEIVER_ID


@pytest.fixture
def fake_ledger() -> FakeLedger:
    """Provide an empty in-memory ledger with a legacy PIN."""
    return FakeLedger()


@pytest.fixture
def utxo_factory():
    """Provide :func:`make_utxos` to tests."""
    return make_utxos


@pytest.fixture
def keystore_data() -> dict[str, Any]:
    """A keystore document as it looks before any migration."""
    return {
        "client_id": SELF_ID,
        "session_id": "2f1e0d9c-8b7a-4655-9443-322110ffeedd",
        "private_key": "c2Vzc2lvbi1wcml2YXRlLWtleQ",
        "pin_token": "cGluLXRva2Vu",
        "scope": "FULL",
        "pin": LEGACY_PIN,
    }


@pytest.fixture
def keystore_file(tmp_path: Path, keystore_data: dict[str, Any]) -> Path:
    """Write ``keystore_data`` to a keystore file with 0600 permissions."""
    path = tmp_path / "keystore.json"
    path.write_text(json.dumps(keystore_data, indent=2), encoding="utf-8")
    path.chmod(0o600)
    return path
