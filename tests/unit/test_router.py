"""Unit tests for the simulated swap router."""
from __future__ import annotations

import pytest

from flashlev.oracles import StaticPriceOracle
from flashlev.simulation import (
    InMemoryLedger,
    RouterError,
    SimulatedSwapRouter,
    build_swap_instruction,
)
from tests.conftest import ROUTER, USDC, USDC_UNIT, WETH, WETH_UNIT

TRADER = "0xtrader"


class TestQuote:
    def test_weth_to_usdc(self, router: SimulatedSwapRouter) -> None:
        # 2000 USDC less 30 bps
        assert router.quote(WETH, USDC, WETH_UNIT) == 1_994 * USDC_UNIT

    def test_usdc_to_weth(self, router: SimulatedSwapRouter) -> None:
        assert router.quote(USDC, WETH, 2_394 * USDC_UNIT) == 1_193_409_000_000_000_000

    def test_invalid_fee(self, ledger: InMemoryLedger, oracle: StaticPriceOracle) -> None:
        with pytest.raises(ValueError):
            SimulatedSwapRouter(ROUTER, ledger, oracle, fee_bps=10_000)


class TestSwap:
    def test_fills_instruction(self, router: SimulatedSwapRouter, ledger: InMemoryLedger) -> None:
        ledger.mint(WETH, TRADER, WETH_UNIT)
        ledger.approve(WETH, TRADER, ROUTER, WETH_UNIT)
        instruction = router.build_quoted_instruction(WETH, USDC, WETH_UNIT)

        result = router.swap(instruction, sender=TRADER)

        assert result == (1_994 * USDC_UNIT, WETH_UNIT)
        assert ledger.balance_of(WETH, TRADER) == 0
        assert ledger.balance_of(USDC, TRADER) == 1_994 * USDC_UNIT

    def test_silent_router_returns_none(
        self, ledger: InMemoryLedger, oracle: StaticPriceOracle
    ) -> None:
        router = SimulatedSwapRouter(ROUTER, ledger, oracle, reports_amounts=False)
        ledger.mint(USDC, ROUTER, USDC_UNIT)
        ledger.mint(WETH, TRADER, WETH_UNIT)
        ledger.approve(WETH, TRADER, ROUTER, WETH_UNIT)
        instruction = build_swap_instruction(WETH, USDC, WETH_UNIT, USDC_UNIT)
        assert router.swap(instruction, sender=TRADER) is None
        assert ledger.balance_of(USDC, TRADER) == USDC_UNIT

    def test_missing_allowance(self, router: SimulatedSwapRouter, ledger: InMemoryLedger) -> None:
        ledger.mint(WETH, TRADER, WETH_UNIT)
        with pytest.raises(RouterError):
            router.swap(build_swap_instruction(WETH, USDC, WETH_UNIT, 1), sender=TRADER)

    def test_malformed_instruction(self, router: SimulatedSwapRouter) -> None:
        with pytest.raises(RouterError):
            router.swap(b"\x00garbage", sender=TRADER)

    def test_zero_input(self, router: SimulatedSwapRouter) -> None:
        with pytest.raises(RouterError):
            router.swap(build_swap_instruction(WETH, USDC, 0, 1), sender=TRADER)
