"""Ed25519 key material for the PIN and the safe spend key.

A key is stored in the keystore as the 64-character hex encoding of a
32-byte little-endian scalar ``s`` in ``[1, l)``, where ``l`` is the order of
the Ed25519 base point. The public key is ``s*G`` in the RFC 8032 point
encoding. The stored bytes are the scalar itself, not an RFC 8032 seed
that is hashed and clamped before use.

Whether a stored secret parses as such a key is the signal that the
corresponding rotation has already happened: a legacy six-digit PIN or an
empty spend key never does.

Point arithmetic is delegated to ``ecdsa``.
"""

from __future__ import annotations

import secrets
from typing import Self

from ecdsa import Ed25519

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_CURVE = Ed25519
_CURVE_ORDER = _CURVE.order
_CURVE_GEN = _CURVE.generator

_KEY_SIZE = 32
# Uniform bytes reduced mod the group order; 64 bytes keep the bias negligible
_SEED_SIZE = 64


class Key:
    """A private Ed25519 scalar with hex string encoding."""

    __slots__ = ("_scalar",)

    def __init__(self, scalar: int) -> None:
        if not 0 < scalar < _CURVE_ORDER:
            msg = "key scalar out of range"
            raise ValueError(msg)
        self._scalar = scalar

    @classmethod
    def generate(cls) -> Self:
        """Generate a fresh random key from 64 uniform bytes reduced mod l."""
        while True:
            seed = secrets.token_bytes(_SEED_SIZE)
            scalar = int.from_bytes(seed, "little") % _CURVE_ORDER
            if scalar:
                return cls(scalar)

    @classmethod
    def from_string(cls, value: str) -> Self:
        """Parse a hex-encoded private key.

        Raises:
            ValueError: If *value* is not the hex encoding of a 32-byte
                canonical non-zero scalar.
        """
        try:
            raw = bytes.fromhex(value)
        except ValueError as exc:
            msg = "key is not valid hex"
            raise ValueError(msg) from exc
        if len(raw) != _KEY_SIZE:
            msg = f"invalid key length: {len(raw)}"
            raise ValueError(msg)
        scalar = int.from_bytes(raw, "little")
        if scalar >= _CURVE_ORDER:
            msg = "key is not a canonical scalar"
            raise ValueError(msg)
        if scalar == 0:
            msg = "key is zero"
            raise ValueError(msg)
        return cls(scalar)

    @classmethod
    def is_key(cls, value: str | None) -> bool:
        """Return True if *value* parses as a private key."""
        if not value:
            return False
        try:
            cls.from_string(value)
        except ValueError:
            return False
        return True

    def public(self) -> str:
        """Hex encoding of the public point ``s*G``."""
        point = _CURVE_GEN * self._scalar
        return bytes(point.to_bytes()).hex()

    def __str__(self) -> str:
        return self._scalar.to_bytes(_KEY_SIZE, "little").hex()

    def __repr__(self) -> str:
        return f"Key(public={self.public()})"
