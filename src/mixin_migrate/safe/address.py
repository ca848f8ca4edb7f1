"""MixAddress — the multisig recipient of a safe transaction output.

Only the members and threshold are modelled here; turning them into the
ledger's address encoding is done by the ledger client.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class MixAddress:
    """A set of member identities of which ``threshold`` must sign to spend.

    Attributes:
        members: Member user ids (UUID strings), in the order given.
        threshold: Number of member signatures required.
    """

    members: tuple[str, ...]
    threshold: int

    def __post_init__(self) -> None:
        if not self.members:
            msg = "mix address requires at least one member"
            raise ValueError(msg)
        for member in self.members:
            try:
                uuid.UUID(member)
            except ValueError as exc:
                msg = f"mix address member {member!r} is not a uuid"
                raise ValueError(msg) from exc
        if not 1 <= self.threshold <= len(self.members):
            msg = f"invalid threshold {self.threshold} for {len(self.members)} members"
            raise ValueError(msg)

    @classmethod
    def for_receiver(cls, receiver_id: str) -> MixAddress:
        """Single-member address spendable by *receiver_id* alone."""
        return cls(members=(receiver_id,), threshold=1)
