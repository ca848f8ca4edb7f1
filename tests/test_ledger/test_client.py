"""Tests for ledger factory loading and ledger error wrapping."""

from __future__ import annotations

import pytest

from mixin_migrate.errors.migrate_errors import (
    ConfigError,
    LedgerError,
    MigrateError,
    TransactionError,
)
from mixin_migrate.ledger.client import LedgerClient, ledger_errors, load_ledger_factory

# ---------------------------------------------------------------------------
# load_ledger_factory
# ---------------------------------------------------------------------------


class TestLoadLedgerFactory:
    def test_resolves_callable(self) -> None:
        factory = load_ledger_factory("json:loads")
        assert factory("[1]") == [1]

    def test_resolves_dotted_attribute(self) -> None:
        factory = load_ledger_factory("decimal:Decimal.from_float")
        assert callable(factory)

    @pytest.mark.parametrize("spec", ["", "json", ":loads", "json:"])
    def test_malformed(self, spec: str) -> None:
        with pytest.raises(ConfigError, match="expected 'module:callable'"):
            load_ledger_factory(spec)

    def test_missing_module(self) -> None:
        with pytest.raises(ConfigError, match="import ledger factory module"):
            load_ledger_factory("no_such_module_for_ledger:create")

    def test_missing_attribute(self) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_ledger_factory("json:no_such_factory")

    def test_not_callable(self) -> None:
        with pytest.raises(ConfigError, match="not callable"):
            load_ledger_factory("math:pi")


# ---------------------------------------------------------------------------
# ledger_errors
# ---------------------------------------------------------------------------


class TestLedgerErrors:
    def test_wraps_with_phase(self) -> None:
        with pytest.raises(LedgerError, match="list legacy assets failed: boom") as info:
            with ledger_errors("list legacy assets", phase="migrate legacy assets"):
                raise RuntimeError("boom")
        assert info.value.phase == "migrate legacy assets"
        assert isinstance(info.value.__cause__, RuntimeError)

    def test_step_gives_transaction_error(self) -> None:
        with pytest.raises(TransactionError) as info:
            with ledger_errors("sign transaction", phase="migrate safe assets", step="sign"):
                raise ValueError("bad view")
        assert info.value.step == "sign"

    def test_migrate_errors_pass_through(self) -> None:
        original = MigrateError("already described")
        with pytest.raises(MigrateError) as info:
            with ledger_errors("anything", phase="p"):
                raise original
        assert info.value is original

    def test_no_error(self) -> None:
        with ledger_errors("noop", phase="p"):
            pass


class TestLedgerClientProtocol:
    def test_fake_ledger_satisfies_protocol(self, fake_ledger) -> None:
        assert isinstance(fake_ledger, LedgerClient)
