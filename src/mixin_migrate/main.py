"""Command-line entry point for a migration run.

    mixin-migrate --key keystore.json <receiver user id>

Loads the keystore, validates the receiver, asks for confirmation and then
runs every migration phase. Exits non-zero on the first failure.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pydantic

from mixin_migrate.config.settings import MigrateConfig
from mixin_migrate.errors.definitions import (
    ErrInvalidSpendGroupCount,
    ErrKeystorePathRequired,
    ErrLedgerFactoryRequired,
    ErrReceiverRequired,
)
from mixin_migrate.errors.migrate_errors import ConfigError, MigrateError
from mixin_migrate.identity.lookup import UserLookupClient, check_receiver
from mixin_migrate.keystore.store import load_keystore
from mixin_migrate.ledger.client import load_ledger_factory
from mixin_migrate.migrate.runner import MigrationContext, MigrationReport, MigrationRunner

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

logger = logging.getLogger("mixin_migrate")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mixin-migrate",
        description="Migrate a wallet's legacy and safe assets to another user.",
    )
    parser.add_argument("receiver", nargs="?", help="receiver user id")
    parser.add_argument("--key", dest="keystore_path", help="keystore path")
    parser.add_argument(
        "--group", dest="spend_group_count", type=int, help="spend group count (1-256)"
    )
    parser.add_argument("--config", dest="config_path", help="YAML config file")
    parser.add_argument("--ledger", dest="ledger_factory", help="ledger factory module:callable")
    parser.add_argument("-y", "--yes", action="store_true", help="skip the confirmation prompt")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def load_config(args: argparse.Namespace) -> MigrateConfig:
    """Build the run configuration; flags win over env vars and YAML.

    Raises:
        ConfigError: If a setting is invalid or a required one is missing.
    """
    overrides: dict[str, Any] = {}
    for name in ("config_path", "keystore_path", "spend_group_count", "ledger_factory"):
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = value
    if args.verbose:
        overrides["log_level"] = "DEBUG"

    try:
        config = MigrateConfig(**overrides)
    except pydantic.ValidationError as exc:
        if any(err["loc"] and err["loc"][0] == "spend_group_count" for err in exc.errors()):
            raise ErrInvalidSpendGroupCount from exc
        msg = f"invalid configuration: {exc}"
        raise ConfigError(msg) from exc

    if not config.keystore_path:
        raise ErrKeystorePathRequired
    if not config.ledger_factory:
        raise ErrLedgerFactoryRequired
    return config


def confirm_continue(prompt: Callable[[str], str] = input) -> bool:
    """Ask the operator to confirm; only an explicit yes continues."""
    try:
        answer = prompt("Continue [y/N]: ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


async def run(
    config: MigrateConfig,
    receiver_id: str,
    *,
    assume_yes: bool = False,
    prompt: Callable[[str], str] = input,
) -> MigrationReport | None:
    """Validate the receiver and run the migration.

    Returns:
        The run report, or None if the operator declined.
    """
    keystore_path = Path(config.keystore_path)
    keystore = load_keystore(keystore_path)
    factory = load_ledger_factory(config.ledger_factory)

    lookup = UserLookupClient(config.lookup_url, timeout=config.lookup_timeout)
    await lookup.connect()
    try:
        receiver = await lookup.get_user(receiver_id)
    finally:
        await lookup.close()

    check_receiver(receiver, self_id=keystore.client_id)

    logger.info("migrate assets to %s(%s)", receiver.full_name, receiver.user_id)
    if not assume_yes and not confirm_continue(prompt):
        logger.info("aborted, nothing migrated")
        return None

    ledger = factory(keystore)
    try:
        ctx = MigrationContext(
            ledger=ledger,
            keystore=keystore,
            keystore_path=keystore_path,
            receiver_id=receiver.user_id,
            spend_group_count=config.spend_group_count,
            page_size=config.utxo_page_size,
            memo=config.memo,
        )
        report = await MigrationRunner(ctx).run()
    finally:
        await ledger.close()

    logger.info(
        "migration finished: %d legacy transfers, %d safe transactions",
        len(report.transfers),
        len(report.settled),
    )
    return report


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if not args.receiver:
            raise ErrReceiverRequired
        config = load_config(args)
        logging.getLogger().setLevel(config.log_level.value)
        asyncio.run(run(config, args.receiver, assume_yes=args.yes))
    except MigrateError as exc:
        logger.error("%s (%s)", exc.message, exc.code)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.error("interrupted")
        sys.exit(130)


if __name__ == "__main__":
    main()
