"""MigrateError — base exception class and the error taxonomy of a migration run."""

from __future__ import annotations


class MigrateError(Exception):
    """Base error for all migration failures.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code string.
    """

    def __init__(self, message: str, *, code: str = "migrate-error") -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class ConfigError(MigrateError):
    """Bad flags or settings, detected before any network call."""

    def __init__(self, message: str, *, code: str = "config-error") -> None:
        super().__init__(message, code=code)


class KeystoreError(MigrateError):
    """The keystore file could not be read or parsed."""

    def __init__(self, message: str, *, code: str = "keystore-error") -> None:
        super().__init__(message, code=code)


class KeystorePersistError(KeystoreError):
    """The keystore could not be rewritten after a secret rotation.

    When raised from a rotation the in-memory secret no longer matches the
    one on disk. ``field`` and ``secret`` carry the unsaved value so the
    operator can restore the keystore by hand.
    """

    def __init__(
        self,
        message: str,
        *,
        field: str = "",
        secret: str = "",
    ) -> None:
        super().__init__(message, code="keystore-persist-error")
        self.field = field
        self.secret = secret


class ValidationError(MigrateError):
    """The run inputs are well-formed but not acceptable (e.g. bad receiver)."""

    def __init__(self, message: str, *, code: str = "validation-error") -> None:
        super().__init__(message, code=code)


class IdentityLookupError(MigrateError):
    """The receiver identity lookup failed."""

    def __init__(self, message: str, *, status_code: int = 0) -> None:
        super().__init__(message, code="identity-lookup-error")
        self.status_code = status_code


class LedgerError(MigrateError):
    """A ledger call failed during a migration phase."""

    def __init__(self, message: str, *, phase: str, code: str = "ledger-error") -> None:
        super().__init__(message, code=code)
        self.phase = phase


class TransactionError(LedgerError):
    """One step of settling a spend group failed."""

    def __init__(self, message: str, *, phase: str, step: str) -> None:
        super().__init__(message, phase=phase, code="transaction-error")
        self.step = step
