"""Unit tests for the in-memory token ledger."""
from __future__ import annotations

import pytest

from flashlev.simulation import (
    InMemoryLedger,
    InsufficientAllowance,
    InsufficientBalance,
    UnknownToken,
)


@pytest.fixture()
def ledger() -> InMemoryLedger:
    ledger = InMemoryLedger()
    ledger.register("USDC", 6)
    ledger.mint("USDC", "alice", 100)
    return ledger


class TestBalances:
    def test_mint(self, ledger: InMemoryLedger) -> None:
        assert ledger.balance_of("USDC", "alice") == 100
        ledger.mint("USDC", "alice", 5)
        assert ledger.balance_of("USDC", "alice") == 105

    def test_unknown_holder_has_zero(self, ledger: InMemoryLedger) -> None:
        before = ledger.snapshot()
        assert ledger.balance_of("USDC", "nobody") == 0
        assert ledger.balance_of("DAI", "nobody") == 0
        assert ledger.snapshot() == before

    def test_transfer(self, ledger: InMemoryLedger) -> None:
        ledger.transfer("USDC", "alice", "bob", 40)
        assert ledger.balance_of("USDC", "alice") == 60
        assert ledger.balance_of("USDC", "bob") == 40

    def test_transfer_insufficient(self, ledger: InMemoryLedger) -> None:
        with pytest.raises(InsufficientBalance):
            ledger.transfer("USDC", "alice", "bob", 101)

    def test_transfer_negative(self, ledger: InMemoryLedger) -> None:
        with pytest.raises(ValueError):
            ledger.transfer("USDC", "alice", "bob", -1)

    def test_burn(self, ledger: InMemoryLedger) -> None:
        ledger.burn("USDC", "alice", 30)
        assert ledger.balance_of("USDC", "alice") == 70
        with pytest.raises(InsufficientBalance):
            ledger.burn("USDC", "alice", 71)

    def test_unknown_token(self, ledger: InMemoryLedger) -> None:
        with pytest.raises(UnknownToken):
            ledger.decimals("DAI")
        with pytest.raises(UnknownToken):
            ledger.mint("DAI", "alice", 1)

    def test_register_rejects_negative_decimals(self, ledger: InMemoryLedger) -> None:
        with pytest.raises(ValueError):
            ledger.register("BAD", -1)


class TestAllowances:
    def test_transfer_from_spends_allowance(self, ledger: InMemoryLedger) -> None:
        ledger.approve("USDC", "alice", "pool", 50)
        ledger.transfer_from("USDC", "pool", "alice", "pool", 30)
        assert ledger.balance_of("USDC", "pool") == 30
        assert ledger.allowance("USDC", "alice", "pool") == 20

    def test_transfer_from_without_allowance(self, ledger: InMemoryLedger) -> None:
        with pytest.raises(InsufficientAllowance):
            ledger.transfer_from("USDC", "pool", "alice", "pool", 1)

    def test_approve_overwrites(self, ledger: InMemoryLedger) -> None:
        ledger.approve("USDC", "alice", "pool", 50)
        ledger.approve("USDC", "alice", "pool", 0)
        assert ledger.allowance("USDC", "alice", "pool") == 0

    def test_allowance_is_per_token(self, ledger: InMemoryLedger) -> None:
        ledger.register("WETH", 18)
        ledger.approve("USDC", "alice", "pool", 50)
        assert ledger.allowance("WETH", "alice", "pool") == 0


class TestSnapshot:
    def test_restore(self, ledger: InMemoryLedger) -> None:
        state = ledger.snapshot()
        ledger.transfer("USDC", "alice", "bob", 40)
        ledger.approve("USDC", "alice", "bob", 5)
        ledger.restore(state)
        assert ledger.balance_of("USDC", "alice") == 100
        assert ledger.balance_of("USDC", "bob") == 0
        assert ledger.allowance("USDC", "alice", "bob") == 0

    def test_snapshot_is_independent(self, ledger: InMemoryLedger) -> None:
        state = ledger.snapshot()
        ledger.mint("USDC", "alice", 1)
        ledger.restore(state)
        ledger.mint("USDC", "alice", 1)
        ledger.restore(state)
        assert ledger.balance_of("USDC", "alice") == 100
