"""UTXO batcher — enumerate, group by asset, and split into spend groups."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from mixin_migrate.config.settings import MAX_SPEND_GROUP_COUNT
from mixin_migrate.ledger.models import ListUtxoOption, UtxoState

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable, Iterator, Sequence

    from mixin_migrate.ledger.client import LedgerClient
    from mixin_migrate.ledger.models import SafeUtxo

DEFAULT_PAGE_SIZE = 500


async def iter_unspent_utxos(
    ledger: LedgerClient,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> AsyncIterator[SafeUtxo]:
    """Yield every unspent safe output of the wallet, in sequence order.

    Pages are requested in ascending sequence order starting at offset 0;
    after each page the offset moves past the highest sequence seen, so
    outputs created mid-enumeration are neither skipped nor repeated. An
    empty page ends the enumeration.
    """
    offset = 0
    while True:
        option = ListUtxoOption(
            offset=offset,
            limit=page_size,
            order="ASC",
            state=UtxoState.UNSPENT,
        )
        page = await ledger.safe_list_utxos(option)
        if not page:
            return
        for utxo in page:
            offset = max(offset, utxo.sequence + 1)
            if utxo.state != UtxoState.UNSPENT:
                continue
            yield utxo


def group_by_asset(utxos: Iterable[SafeUtxo]) -> dict[str, list[SafeUtxo]]:
    """Partition *utxos* by asset id.

    Relative order is preserved within each asset; the returned mapping
    iterates in asset id order.
    """
    groups: dict[str, list[SafeUtxo]] = {}
    for utxo in utxos:
        groups.setdefault(utxo.asset_id, []).append(utxo)
    return {asset_id: groups[asset_id] for asset_id in sorted(groups)}


def spend_groups(utxos: Sequence[SafeUtxo], limit: int) -> Iterator[list[SafeUtxo]]:
    """Split one asset's outputs into consecutive chunks of at most *limit*.

    Raises:
        ValueError: If *limit* is outside 1..256.
    """
    if not 1 <= limit <= MAX_SPEND_GROUP_COUNT:
        msg = f"spend group limit must be within 1..{MAX_SPEND_GROUP_COUNT}, got {limit}"
        raise ValueError(msg)
    for idx in range(0, len(utxos), limit):
        yield list(utxos[idx : idx + limit])


def sum_utxos(utxos: Iterable[SafeUtxo]) -> Decimal:
    """Exact decimal sum of the outputs' amounts."""
    total = Decimal(0)
    for utxo in utxos:
        total += utxo.amount
    return total
