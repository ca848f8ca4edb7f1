"""Keystore record — load from and persist to the JSON keystore file.

The keystore holds the wallet's session credentials plus the two secrets
rotated by a migration run: ``pin`` (the transaction-authorization secret)
and ``spend_key`` (absent until safe custody is activated). The file is
read once at startup and atomically replaced right after every rotation.
"""

from __future__ import annotations

import contextlib
import json
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mixin_migrate.errors.migrate_errors import KeystoreError, KeystorePersistError

# Credential fields written back only when non-empty
_OPTIONAL_FIELDS = (
    "app_id",
    "server_public_key",
    "session_private_key",
    "private_key",
    "pin_token",
    "scope",
)
_KNOWN_FIELDS = frozenset(("client_id", "session_id", "pin", "spend_key", *_OPTIONAL_FIELDS))


@dataclass
class Keystore:
    """The mutable credential record of the migrated wallet.

    Attributes:
        client_id: Wallet identity (user id).
        session_id: Session the credentials belong to.
        pin: Authorization secret; a legacy PIN until rotated, then a key.
        spend_key: Safe spend key; empty until safe custody is activated.
        extra: Unknown fields, written back untouched.
    """

    client_id: str
    session_id: str
    pin: str
    spend_key: str = ""
    app_id: str = ""
    server_public_key: str = ""
    session_private_key: str = ""
    private_key: str = ""
    pin_token: str = ""
    scope: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Keystore:
        """Create a Keystore from the decoded JSON document.

        Raises:
            KeystoreError: If a required field is missing or not a string.
        """
        client_id = data.get("client_id") or data.get("app_id")
        values: dict[str, Any] = {"client_id": client_id}
        for name in ("session_id", "pin"):
            values[name] = data.get(name)
        for name, value in values.items():
            if not isinstance(value, str) or not value:
                msg = f"keystore field {name!r} is missing"
                raise KeystoreError(msg)
        for name in ("spend_key", *_OPTIONAL_FIELDS):
            value = data.get(name) or ""
            if not isinstance(value, str):
                msg = f"keystore field {name!r} must be a string"
                raise KeystoreError(msg)
            values[name] = value
        values["extra"] = {k: v for k, v in data.items() if k not in _KNOWN_FIELDS}
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the keystore JSON layout."""
        data: dict[str, Any] = {
            "client_id": self.client_id,
            "session_id": self.session_id,
        }
        for name in _OPTIONAL_FIELDS:
            value = getattr(self, name)
            if value:
                data[name] = value
        data.update(self.extra)
        data["pin"] = self.pin
        if self.spend_key:
            data["spend_key"] = self.spend_key
        return data


def load_keystore(path: str | Path) -> Keystore:
    """Read and parse the keystore at *path*.

    Raises:
        KeystoreError: If the file cannot be read or is not a valid keystore.
    """
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"read keystore {p} failed: {exc}"
        raise KeystoreError(msg) from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        msg = f"decode keystore {p} failed: {exc}"
        raise KeystoreError(msg) from exc

    if not isinstance(data, dict):
        msg = f"keystore {p} is not a JSON object"
        raise KeystoreError(msg)
    return Keystore.from_dict(data)


def save_keystore(keystore: Keystore, path: str | Path) -> None:
    """Atomically replace the existing keystore file at *path*.

    The document is written to a temporary file in the same directory,
    given the original file's permission bits, fsynced and then renamed over
    *path*. A failure at any point leaves the previous document intact.

    Raises:
        KeystorePersistError: If the keystore cannot be written or replaced.
    """
    p = Path(path)
    payload = json.dumps(keystore.to_dict(), indent=2) + "\n"
    try:
        fd, tmp_path = tempfile.mkstemp(dir=str(p.parent), prefix=f".{p.name}.", suffix=".tmp")
    except OSError as exc:
        msg = f"save keystore {p} failed: {exc}"
        raise KeystorePersistError(msg) from exc

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        shutil.copymode(p, tmp_path)
        os.replace(tmp_path, p)
    except OSError as exc:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        msg = f"save keystore {p} failed: {exc}"
        raise KeystorePersistError(msg) from exc
