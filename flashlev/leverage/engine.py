"""Leverage math engine — sizes opens and unwinds from live market data."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..errors import (
    AssetNotCollateralizable,
    InvalidPrice,
    OracleUnavailable,
    ZeroCollateral,
)
from ..interfaces.lending_pool import LendingPool
from ..interfaces.price_oracle import PriceOracle
from ..interfaces.token import TokenLedger
from ..models import LeverageQuote, OpenParams, UnwindParams
from . import formulas

if TYPE_CHECKING:
    from ..vault import VaultSettings

logger = logging.getLogger(__name__)


class LeverageEngine:
    """Computes flash-loan, borrow and withdrawal sizes.

    Holds no state of its own: the vault address identifies the aggregate
    position and the settings are passed into every call.
    """

    def __init__(self, pool: LendingPool, ledger: TokenLedger, vault_address: str) -> None:
        self._pool = pool
        self._ledger = ledger
        self._vault_address = vault_address

    # ------------------------------------------------------------------
    # Market data
    # ------------------------------------------------------------------

    @staticmethod
    def _require_oracle(settings: VaultSettings) -> PriceOracle:
        if settings.price_oracle is None:
            raise OracleUnavailable()
        return settings.price_oracle

    def resolve_price(self, token: str, price: int, settings: VaultSettings) -> int:
        """Return ``price`` or, when it is zero, the oracle's price for ``token``."""
        if price == 0:
            price = self._require_oracle(settings).get_price(token)
        if price <= 0:
            raise InvalidPrice(token)
        return price

    def max_leverage_for_asset(self, asset: str) -> int:
        ltv = self._pool.get_reserve_configuration_data(asset).ltv
        if ltv == 0:
            raise AssetNotCollateralizable(asset)
        return formulas.max_leverage(ltv)

    # ------------------------------------------------------------------
    # Sizing
    # ------------------------------------------------------------------

    def calculate_open_params(
        self, quote: LeverageQuote, settings: VaultSettings
    ) -> OpenParams:
        """Size the flash loan and the pool borrow for a leveraged open.

        Fails before anything is executed when the borrow could not cover
        the flash loan plus its fee.
        """
        if quote.collateral_amount <= 0:
            raise ZeroCollateral()

        collateral_price = self.resolve_price(
            quote.collateral_token, quote.collateral_price, settings
        )
        borrow_price = self.resolve_price(quote.borrow_token, quote.borrow_price, settings)
        ltv = self._pool.get_reserve_configuration_data(quote.collateral_token).ltv

        params = formulas.size_open(
            quote.collateral_amount,
            quote.desired_leverage,
            collateral_price,
            quote.collateral_decimals,
            borrow_price,
            quote.borrow_decimals,
            ltv,
            settings.flash_loan_fee_bps,
        )
        logger.debug(
            "Open sizing: leverage=%d ltv=%d flash=%d borrow=%d",
            quote.desired_leverage,
            ltv,
            params.flash_loan_amount,
            params.borrow_amount,
        )
        return params

    def outstanding_debt(self, debt_token: str) -> int:
        """Variable debt the vault owes in ``debt_token``."""
        tokens = self._pool.get_reserve_tokens_addresses(debt_token)
        return self._ledger.balance_of(tokens.variable_debt_token, self._vault_address)

    def calculate_unwind_params(
        self, collateral_token: str, borrow_token: str, settings: VaultSettings
    ) -> UnwindParams:
        """Size a full unwind: the whole debt and 105% of its collateral equivalent."""
        debt_amount = self.outstanding_debt(borrow_token)

        collateral_price = self.resolve_price(collateral_token, 0, settings)
        borrow_price = self.resolve_price(borrow_token, 0, settings)

        equivalent = formulas.convert(
            debt_amount,
            borrow_price,
            self._ledger.decimals(borrow_token),
            collateral_price,
            self._ledger.decimals(collateral_token),
        )
        collateral_to_withdraw = formulas.with_unwind_buffer(equivalent)

        logger.debug(
            "Unwind sizing: debt=%d equivalent=%d withdraw=%d",
            debt_amount,
            equivalent,
            collateral_to_withdraw,
        )
        return UnwindParams(
            collateral_to_withdraw=collateral_to_withdraw, debt_amount=debt_amount
        )

    def collateral_for_repaid_debt(
        self,
        collateral_token: str,
        debt_token: str,
        repaid: int,
        settings: VaultSettings,
    ) -> int:
        """Collateral released by repaying ``repaid`` debt, at the liquidation threshold."""
        threshold = self._pool.get_reserve_configuration_data(
            collateral_token
        ).liquidation_threshold
        return formulas.collateral_backing_debt(
            repaid,
            self.resolve_price(debt_token, 0, settings),
            self._ledger.decimals(debt_token),
            self.resolve_price(collateral_token, 0, settings),
            self._ledger.decimals(collateral_token),
            threshold,
        )
