"""Unit tests for config loading, env interpolation, and validation."""
from __future__ import annotations

from pathlib import Path

import pytest

from flashlev.config import AppConfig, MarketConfig, _interpolate_env, load_config
from tests.conftest import SAMPLE_YAML


class TestInterpolateEnv:
    def test_simple_substitution(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_VAR", "hello")
        assert _interpolate_env("${MY_VAR}") == "hello"

    def test_missing_var_becomes_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NONEXISTENT_VAR_XYZ", raising=False)
        assert _interpolate_env("${NONEXISTENT_VAR_XYZ}") == ""

    def test_nested(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OP", "0xabc")
        result = _interpolate_env({"vault": {"operator": "${OP}"}, "list": ["${OP}", 1]})
        assert result == {"vault": {"operator": "0xabc"}, "list": ["0xabc", 1]}

    def test_non_string_passthrough(self) -> None:
        assert _interpolate_env(42) == 42
        assert _interpolate_env(None) is None


class TestLoadConfig:
    def test_loads_valid_yaml(self, sample_yaml_path: Path) -> None:
        cfg = load_config(sample_yaml_path)
        assert isinstance(cfg, AppConfig)
        assert cfg.vault.operator == "0xOPERATOR"
        assert cfg.vault.flash_loan_fee_bps == 5
        assert cfg.vault.pool == "0xPOOL"
        assert cfg.price_oracle.pyth.hermes_url == "https://hermes.example.com"
        assert cfg.price_oracle.pyth.timeout == 5

    def test_market_symbols_uppercased(self, sample_yaml_path: Path) -> None:
        cfg = load_config(sample_yaml_path)
        assert set(cfg.markets) == {"USDC", "WETH"}
        assert cfg.markets["USDC"] == MarketConfig(
            address="0xUSDC",
            decimals=6,
            ltv=8000,
            liquidation_threshold=8500,
            pyth_feed="0xaaa",
        )

    def test_pyth_feeds(self, sample_yaml_path: Path) -> None:
        cfg = load_config(sample_yaml_path)
        assert cfg.pyth_feeds() == {"0xUSDC": "0xaaa", "0xWETH": "0xbbb"}

    def test_operator_from_env(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TEST_FLASHLEV_OPERATOR", "0xfromenv")
        path = tmp_path / "c.yaml"
        path.write_text(SAMPLE_YAML.replace('"0xOPERATOR"', '"${TEST_FLASHLEV_OPERATOR}"'))
        assert load_config(path).vault.operator == "0xfromenv"

    def test_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "c.yaml"
        path.write_text('vault:\n  operator: "0x1"\n')
        cfg = load_config(path)
        assert cfg.vault.flash_loan_fee_bps == 5
        assert cfg.markets == {}
        assert cfg.price_oracle.provider == "pyth"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")


class TestValidation:
    def _write(self, tmp_path: Path, text: str) -> Path:
        path = tmp_path / "c.yaml"
        path.write_text(text)
        return path

    def test_empty_file_has_no_operator(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="operator"):
            load_config(self._write(tmp_path, ""))

    def test_fee_out_of_range(self, tmp_path: Path) -> None:
        text = SAMPLE_YAML.replace("flash_loan_fee_bps: 5", "flash_loan_fee_bps: 10000")
        path = self._write(tmp_path, text)
        with pytest.raises(ValueError, match="fee"):
            load_config(path)

    def test_market_without_address(self, tmp_path: Path) -> None:
        path = self._write(tmp_path, SAMPLE_YAML.replace('address: "0xUSDC"', 'address: ""'))
        with pytest.raises(ValueError, match="USDC"):
            load_config(path)

    def test_ltv_above_threshold(self, tmp_path: Path) -> None:
        text = SAMPLE_YAML.replace("liquidation_threshold: 8500", "liquidation_threshold: 7000")
        path = self._write(tmp_path, text)
        with pytest.raises(ValueError, match="liquidation threshold"):
            load_config(path)

    def test_ltv_out_of_range(self, tmp_path: Path) -> None:
        text = SAMPLE_YAML.replace(
            "ltv: 8000\n    liquidation_threshold: 8500",
            "ltv: 10000\n    liquidation_threshold: 10000",
        )
        path = self._write(tmp_path, text)
        with pytest.raises(ValueError, match="ltv"):
            load_config(path)
