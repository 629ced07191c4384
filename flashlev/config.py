"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .constants import BASIS_POINTS, DEFAULT_FLASH_LOAN_FEE_BPS, LTV_PRECISION

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VaultConfig:
    operator: str = ""
    flash_loan_fee_bps: int = DEFAULT_FLASH_LOAN_FEE_BPS
    pool: str = ""
    router: str = ""
    oracle: str = ""


@dataclass(frozen=True)
class MarketConfig:
    address: str = ""
    decimals: int = 18
    ltv: int = 0
    liquidation_threshold: int = 0
    pyth_feed: str = ""


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    timeout: int = 10


@dataclass(frozen=True)
class PriceOracleConfig:
    provider: str = "pyth"
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class AppConfig:
    vault: VaultConfig = field(default_factory=VaultConfig)
    markets: dict[str, MarketConfig] = field(default_factory=dict)
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)

    def pyth_feeds(self) -> dict[str, str]:
        """Token address → Pyth feed id, for markets that have a feed."""
        return {m.address: m.pyth_feed for m in self.markets.values() if m.pyth_feed}


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_vault(raw: dict[str, Any]) -> VaultConfig:
    addresses = raw.get("addresses", {})
    return VaultConfig(
        operator=raw.get("operator", ""),
        flash_loan_fee_bps=int(raw.get("flash_loan_fee_bps", DEFAULT_FLASH_LOAN_FEE_BPS)),
        pool=addresses.get("pool", ""),
        router=addresses.get("router", ""),
        oracle=addresses.get("oracle", ""),
    )


def _build_markets(raw: dict[str, Any]) -> dict[str, MarketConfig]:
    markets: dict[str, MarketConfig] = {}
    for symbol, cfg in raw.items():
        markets[symbol.upper()] = MarketConfig(
            address=cfg.get("address", ""),
            decimals=int(cfg.get("decimals", 18)),
            ltv=int(cfg.get("ltv", 0)),
            liquidation_threshold=int(cfg.get("liquidation_threshold", 0)),
            pyth_feed=cfg.get("pyth_feed", ""),
        )
    return markets


def _build_price_oracle(raw: dict[str, Any]) -> PriceOracleConfig:
    pyth_raw = raw.get("pyth", {})
    return PriceOracleConfig(
        provider=raw.get("provider", "pyth"),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            timeout=int(pyth_raw.get("timeout", PythConfig.timeout)),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        vault=_build_vault(raw.get("vault", {})),
        markets=_build_markets(raw.get("markets", {})),
        price_oracle=_build_price_oracle(raw.get("price_oracle", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.vault.operator:
        raise ValueError("Vault operator address must be configured")

    if not 0 <= cfg.vault.flash_loan_fee_bps < BASIS_POINTS:
        raise ValueError(
            f"Flash loan fee must be below {BASIS_POINTS} bps, "
            f"got {cfg.vault.flash_loan_fee_bps}"
        )

    for symbol, market in cfg.markets.items():
        if not market.address:
            raise ValueError(f"Market '{symbol}' has no address")
        if market.decimals < 0:
            raise ValueError(f"Market '{symbol}' has negative decimals")
        if not 0 <= market.ltv < LTV_PRECISION:
            raise ValueError(f"Market '{symbol}' has ltv outside [0, {LTV_PRECISION})")
        if not market.ltv <= market.liquidation_threshold <= LTV_PRECISION:
            raise ValueError(
                f"Market '{symbol}' liquidation threshold must be between ltv and {LTV_PRECISION}"
            )
