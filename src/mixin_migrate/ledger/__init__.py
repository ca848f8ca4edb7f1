"""Ledger capability — client protocol and data models."""

from mixin_migrate.ledger.client import LedgerClient, ledger_errors, load_ledger_factory

__all__ = ["LedgerClient", "ledger_errors", "load_ledger_factory"]
