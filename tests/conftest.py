"""Shared test fixtures: an in-memory market with USDC collateral and WETH debt."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from flashlev.oracles import StaticPriceOracle
from flashlev.simulation import InMemoryLedger, SimulatedLendingPool, SimulatedSwapRouter
from flashlev.vault import LeverageVault, VaultSettings

OPERATOR = "0x00000000000000000000000000000000000000a1"
STRANGER = "0x00000000000000000000000000000000000000b2"
VAULT = "0x00000000000000000000000000000000000000c3"
POOL = "0x00000000000000000000000000000000000000d4"
ROUTER = "0x00000000000000000000000000000000000000e5"
ORACLE = "0x00000000000000000000000000000000000000f6"

USDC = "USDC"
WETH = "WETH"

USDC_UNIT = 10**6
WETH_UNIT = 10**18


# ---------------------------------------------------------------------------
# Market fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def ledger() -> InMemoryLedger:
    ledger = InMemoryLedger()
    ledger.register(USDC, 6)
    ledger.register(WETH, 18)
    return ledger


@pytest.fixture()
def oracle() -> StaticPriceOracle:
    return StaticPriceOracle(ORACLE, {USDC: 1 * 10**8, WETH: 2000 * 10**8})


@pytest.fixture()
def pool(ledger: InMemoryLedger, oracle: StaticPriceOracle) -> SimulatedLendingPool:
    pool = SimulatedLendingPool(POOL, ledger, oracle, flash_loan_premium_bps=5)
    pool.add_reserve(USDC, ltv=8000, liquidation_threshold=8500)
    pool.add_reserve(WETH, ltv=8000, liquidation_threshold=8250)
    ledger.mint(USDC, POOL, 1_000_000 * USDC_UNIT)
    ledger.mint(WETH, POOL, 1_000 * WETH_UNIT)
    return pool


@pytest.fixture()
def router(ledger: InMemoryLedger, oracle: StaticPriceOracle) -> SimulatedSwapRouter:
    router = SimulatedSwapRouter(ROUTER, ledger, oracle, fee_bps=30)
    ledger.mint(USDC, ROUTER, 1_000_000 * USDC_UNIT)
    ledger.mint(WETH, ROUTER, 1_000 * WETH_UNIT)
    return router


@pytest.fixture()
def settings(oracle: StaticPriceOracle) -> VaultSettings:
    return VaultSettings(operator=OPERATOR, flash_loan_fee_bps=5, price_oracle=oracle)


@pytest.fixture()
def vault(
    settings: VaultSettings,
    pool: SimulatedLendingPool,
    router: SimulatedSwapRouter,
    ledger: InMemoryLedger,
) -> LeverageVault:
    return LeverageVault(VAULT, settings, pool, router, ledger)


@pytest.fixture()
def funded_operator(ledger: InMemoryLedger) -> int:
    """Give the operator 1000 USDC approved to the vault; returns the amount."""
    amount = 1_000 * USDC_UNIT
    ledger.mint(USDC, OPERATOR, amount)
    ledger.approve(USDC, OPERATOR, VAULT, amount)
    return amount


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    vault:
      operator: "0xOPERATOR"
      flash_loan_fee_bps: 5
      addresses:
        pool: "0xPOOL"
        router: "0xROUTER"
        oracle: "0xORACLE"
    markets:
      usdc:
        address: "0xUSDC"
        decimals: 6
        ltv: 8000
        liquidation_threshold: 8500
        pyth_feed: "0xaaa"
      WETH:
        address: "0xWETH"
        decimals: 18
        ltv: 8000
        liquidation_threshold: 8250
        pyth_feed: "0xbbb"
    price_oracle:
      provider: pyth
      pyth:
        hermes_url: "https://hermes.example.com"
        timeout: 5
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
