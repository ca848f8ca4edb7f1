"""Receiver identity lookup — resolve a user id to its public profile.

Async HTTP client for a public user directory:
- GET /users/<user_id>  ->  {"data": {"user_id", "identity_number", "full_name", ...}}

Used once per run to make sure the receiver is a real messenger user before
anything is moved.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from mixin_migrate.errors.definitions import (
    ErrReceiverInvalidId,
    ErrReceiverIsSelf,
    ErrReceiverNotMessengerUser,
)
from mixin_migrate.errors.migrate_errors import IdentityLookupError
from mixin_migrate.safe.address import MixAddress

# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------


def _to_int(value: Any) -> int:
    """Lenient integer conversion; anything unparsable counts as 0."""
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class User:
    """Public profile of a user."""

    user_id: str
    identity_number: int
    full_name: str = ""

    @property
    def is_messenger_user(self) -> bool:
        # Bots and network-only identities carry identity number 0
        return self.identity_number != 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        return cls(
            user_id=data.get("user_id", ""),
            identity_number=_to_int(data.get("identity_number")),
            full_name=data.get("full_name", ""),
        )


def check_receiver(receiver: User, *, self_id: str) -> None:
    """Reject receivers the wallet must not migrate to.

    Raises:
        ValidationError: If the receiver cannot be paid to or is not an
            acceptable recipient of the migration.
    """
    try:
        MixAddress.for_receiver(receiver.user_id)
    except ValueError as exc:
        raise ErrReceiverInvalidId from exc
    if not receiver.is_messenger_user:
        raise ErrReceiverNotMessengerUser
    if receiver.user_id == self_id:
        raise ErrReceiverIsSelf


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class UserLookupClient:
    """Async HTTP client for the user directory.

    Usage::

        lookup = UserLookupClient("https://echo.yiplee.com")
        await lookup.connect()
        try:
            user = await lookup.get_user(user_id)
        finally:
            await lookup.close()
    """

    def __init__(self, base_url: str, *, timeout: float = 30.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Accept": "application/json"},
            timeout=self._timeout,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get_user(self, user_id: str) -> User:
        """Fetch the public profile of *user_id*.

        Raises:
            IdentityLookupError: On transport errors, non-200 responses or a
                body without a user profile.
        """
        client = self._ensure_connected()
        try:
            response = await client.get(f"/users/{user_id}")
        except httpx.HTTPError as exc:
            msg = f"lookup user {user_id} failed: {exc}"
            raise IdentityLookupError(msg) from exc

        if response.status_code != 200:
            msg = f"lookup user {user_id} failed ({response.status_code}): {response.text}"
            raise IdentityLookupError(msg, status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            msg = f"lookup user {user_id} returned invalid JSON"
            raise IdentityLookupError(msg, status_code=response.status_code) from exc

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict) or not data.get("user_id"):
            msg = f"lookup user {user_id} returned no user"
            raise IdentityLookupError(msg, status_code=response.status_code)
        return User.from_dict(data)

    def _ensure_connected(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "UserLookupClient is not connected, call connect() first"
            raise IdentityLookupError(msg)
        return self._client
