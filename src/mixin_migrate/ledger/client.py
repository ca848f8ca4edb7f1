"""Ledger client capability — the operations a migration run calls.

The ledger itself (authentication, PIN encryption, transaction encoding and
signing, transport) lives outside this package. A concrete client is
plugged in through an import string, the same way an ASGI app factory is
named for a server::

    MIXIN_MIGRATE_LEDGER_FACTORY="my_ledger.client:from_keystore"

The factory is called with the loaded :class:`Keystore` and must return an
object satisfying :class:`LedgerClient`.
"""

from __future__ import annotations

import contextlib
import importlib
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from mixin_migrate.errors.migrate_errors import (
    ConfigError,
    LedgerError,
    MigrateError,
    TransactionError,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from mixin_migrate.keystore.store import Keystore
    from mixin_migrate.ledger.models import (
        LegacyAsset,
        ListUtxoOption,
        SafeAsset,
        SafeTransactionBuilder,
        SafeUtxo,
        Snapshot,
        TransactionOutput,
        TransactionRequest,
        TransferInput,
    )
    from mixin_migrate.safe.keys import Key


class SafeTransaction(Protocol):
    """A built safe transaction, signed in place by the ledger client."""

    def dump(self) -> str:
        """Hex encoding of the transaction in its current (signed or not) form."""
        ...


@runtime_checkable
class LedgerClient(Protocol):
    """Operations of the ledger used by the migration phases."""

    async def read_assets(self) -> list[LegacyAsset]:
        """List the wallet's legacy balances."""
        ...

    async def transfer(self, transfer: TransferInput, pin: str) -> Snapshot:
        """Transfer a legacy balance, authorized by *pin*."""
        ...

    async def modify_pin(self, old_pin: str, new_public_key: str) -> None:
        """Replace the authorization secret with the key behind *new_public_key*."""
        ...

    async def safe_migrate(self, spend_key: str, pin: str) -> None:
        """Activate safe custody with the private *spend_key*."""
        ...

    async def safe_list_utxos(self, option: ListUtxoOption) -> list[SafeUtxo]:
        """Return one page of the wallet's safe outputs."""
        ...

    async def safe_read_asset(self, asset_id: str) -> SafeAsset:
        """Read safe asset metadata."""
        ...

    async def make_transaction(
        self,
        builder: SafeTransactionBuilder,
        outputs: list[TransactionOutput],
    ) -> SafeTransaction:
        """Build an unsigned transaction spending the builder's inputs."""
        ...

    async def create_transaction_request(
        self, request_id: str, raw_transaction: str
    ) -> TransactionRequest:
        """File an unsigned transaction and receive its signing views."""
        ...

    def sign_transaction(
        self,
        tx: SafeTransaction,
        spend_key: Key,
        views: list[str],
        index: int,
    ) -> None:
        """Sign *tx* in place with *spend_key* using the ledger-issued *views*."""
        ...

    async def submit_transaction_request(
        self, request_id: str, raw_transaction: str
    ) -> TransactionRequest:
        """Submit the signed transaction under *request_id*."""
        ...

    async def close(self) -> None:
        """Release transport resources."""
        ...


def load_ledger_factory(spec: str) -> Callable[[Keystore], LedgerClient]:
    """Resolve a ``module:callable`` import string to a ledger factory.

    Raises:
        ConfigError: If the string is malformed or the target cannot be
            imported or is not callable.
    """
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        msg = f"invalid ledger factory {spec!r}, expected 'module:callable'"
        raise ConfigError(msg)
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        msg = f"import ledger factory module {module_name!r} failed: {exc}"
        raise ConfigError(msg) from exc

    target: object = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            msg = f"ledger factory {spec!r} not found"
            raise ConfigError(msg) from exc
    if not callable(target):
        msg = f"ledger factory {spec!r} is not callable"
        raise ConfigError(msg)
    return target


@contextlib.contextmanager
def ledger_errors(action: str, *, phase: str, step: str | None = None) -> Iterator[None]:
    """Wrap any failure of a ledger call into a :class:`LedgerError`.

    Errors already raised as :class:`MigrateError` pass through unchanged.
    With *step* set the error is a :class:`TransactionError`.
    """
    try:
        yield
    except MigrateError:
        raise
    except Exception as exc:
        msg = f"{action} failed: {exc}"
        if step is not None:
            raise TransactionError(msg, phase=phase, step=step) from exc
        raise LedgerError(msg, phase=phase) from exc
