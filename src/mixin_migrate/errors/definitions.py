"""Pre-built error instances for the fixed failure cases of a run."""

from __future__ import annotations

from mixin_migrate.errors.migrate_errors import ConfigError, ValidationError

# -- Configuration ---------------------------------------------------------

ErrKeystorePathRequired = ConfigError("keystore path is required", code="keystore-path-required")
ErrInvalidSpendGroupCount = ConfigError(
    "invalid spend group count", code="invalid-spend-group-count"
)
ErrLedgerFactoryRequired = ConfigError(
    "ledger factory is required (module:callable)", code="ledger-factory-required"
)

# -- Receiver validation ---------------------------------------------------

ErrReceiverRequired = ValidationError("receiver id is required", code="receiver-required")
ErrReceiverNotMessengerUser = ValidationError(
    "receiver is not a mixin messenger user", code="receiver-not-messenger-user"
)
ErrReceiverIsSelf = ValidationError("receiver is self", code="receiver-is-self")
ErrReceiverInvalidId = ValidationError(
    "receiver id is not a valid uuid", code="receiver-invalid-id"
)
