"""In-memory Aave-style lending pool.

Positions live in the token ledger: supplying mints the reserve's aToken,
borrowing mints its variable debt token. Account figures are valued with the
pool's own price oracle in USD at 10^8.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from ..constants import BASIS_POINTS, HEALTH_FACTOR_ONE, MAX_UINT256, VARIABLE_RATE_MODE
from ..interfaces.flash_receiver import FlashLoanReceiver
from ..interfaces.price_oracle import PriceOracle
from ..models import AccountData, ReserveConfiguration, ReserveTokens
from .ledger import InMemoryLedger

logger = logging.getLogger(__name__)


class PoolError(Exception):
    pass


@dataclass(frozen=True)
class Reserve:
    asset: str
    config: ReserveConfiguration
    tokens: ReserveTokens


class SimulatedLendingPool:
    """Supply, borrow, repay, withdraw and simple flash loans over an InMemoryLedger."""

    def __init__(
        self,
        address: str,
        ledger: InMemoryLedger,
        oracle: PriceOracle,
        flash_loan_premium_bps: int = 5,
    ) -> None:
        self._address = address
        self._ledger = ledger
        self._oracle = oracle
        self.flash_loan_premium_bps = flash_loan_premium_bps
        self._reserves: dict[str, Reserve] = {}

    @property
    def address(self) -> str:
        return self._address

    # ------------------------------------------------------------------
    # Reserves
    # ------------------------------------------------------------------

    def add_reserve(
        self,
        asset: str,
        ltv: int,
        liquidation_threshold: int,
        usage_as_collateral_enabled: bool = True,
        borrowing_enabled: bool = True,
    ) -> Reserve:
        """List ``asset``; it must already be registered in the ledger."""
        if not 0 <= ltv <= liquidation_threshold <= BASIS_POINTS:
            raise ValueError(
                f"Invalid risk parameters for {asset}: ltv={ltv} threshold={liquidation_threshold}"
            )
        decimals = self._ledger.decimals(asset)
        tokens = ReserveTokens(
            a_token=f"a{asset}",
            stable_debt_token=f"stableDebt{asset}",
            variable_debt_token=f"variableDebt{asset}",
        )
        for token in (tokens.a_token, tokens.stable_debt_token, tokens.variable_debt_token):
            self._ledger.register(token, decimals)

        reserve = Reserve(
            asset=asset,
            config=ReserveConfiguration(
                decimals=decimals,
                ltv=ltv,
                liquidation_threshold=liquidation_threshold,
                usage_as_collateral_enabled=usage_as_collateral_enabled,
                borrowing_enabled=borrowing_enabled,
            ),
            tokens=tokens,
        )
        self._reserves[asset] = reserve
        return reserve

    def _reserve(self, asset: str) -> Reserve:
        try:
            return self._reserves[asset]
        except KeyError:
            raise PoolError(f"Asset {asset} is not listed") from None

    def get_reserve_configuration_data(self, asset: str) -> ReserveConfiguration:
        return self._reserve(asset).config

    def get_reserve_tokens_addresses(self, asset: str) -> ReserveTokens:
        return self._reserve(asset).tokens

    def available_liquidity(self, asset: str) -> int:
        return self._ledger.balance_of(asset, self._address)

    # ------------------------------------------------------------------
    # Account valuation
    # ------------------------------------------------------------------

    def _value(self, asset: str, amount: int) -> int:
        return amount * self._oracle.get_price(asset) // 10 ** self._ledger.decimals(asset)

    def _account(
        self,
        user: str,
        collateral_delta: dict[str, int] | None = None,
        debt_delta: dict[str, int] | None = None,
    ) -> AccountData:
        collateral_delta = collateral_delta or {}
        debt_delta = debt_delta or {}

        total_collateral = 0
        total_debt = 0
        weighted_ltv = 0
        weighted_threshold = 0

        for asset, reserve in self._reserves.items():
            supplied = self._ledger.balance_of(reserve.tokens.a_token, user)
            supplied += collateral_delta.get(asset, 0)
            owed = self._ledger.balance_of(reserve.tokens.variable_debt_token, user)
            owed += debt_delta.get(asset, 0)

            if supplied > 0 and reserve.config.usage_as_collateral_enabled:
                value = self._value(asset, supplied)
                total_collateral += value
                weighted_ltv += value * reserve.config.ltv
                weighted_threshold += value * reserve.config.liquidation_threshold
            if owed > 0:
                total_debt += self._value(asset, owed)

        ltv = weighted_ltv // total_collateral if total_collateral else 0
        threshold = weighted_threshold // total_collateral if total_collateral else 0
        borrow_capacity = weighted_ltv // BASIS_POINTS
        if total_debt == 0:
            health_factor = MAX_UINT256
        else:
            health_factor = weighted_threshold * HEALTH_FACTOR_ONE // (BASIS_POINTS * total_debt)

        return AccountData(
            total_collateral_base=total_collateral,
            total_debt_base=total_debt,
            available_borrows_base=max(0, borrow_capacity - total_debt),
            current_liquidation_threshold=threshold,
            ltv=ltv,
            health_factor=health_factor,
        )

    def get_user_account_data(self, user: str) -> AccountData:
        return self._account(user)

    # ------------------------------------------------------------------
    # Supply / borrow / repay / withdraw
    # ------------------------------------------------------------------

    def supply(self, asset: str, amount: int, on_behalf_of: str, *, sender: str) -> None:
        reserve = self._reserve(asset)
        if amount <= 0:
            raise PoolError("Supply amount must be positive")
        self._ledger.transfer_from(asset, self._address, sender, self._address, amount)
        self._ledger.mint(reserve.tokens.a_token, on_behalf_of, amount)
        logger.debug("supply %d %s for %s", amount, asset, on_behalf_of)

    def borrow(
        self,
        asset: str,
        amount: int,
        interest_rate_mode: int,
        on_behalf_of: str,
        *,
        sender: str,
    ) -> None:
        reserve = self._reserve(asset)
        if interest_rate_mode != VARIABLE_RATE_MODE:
            raise PoolError(f"Unsupported interest rate mode {interest_rate_mode}")
        if not reserve.config.borrowing_enabled:
            raise PoolError(f"Borrowing is disabled for {asset}")
        if sender != on_behalf_of:
            raise PoolError("Credit delegation is not supported")
        if amount <= 0:
            raise PoolError("Borrow amount must be positive")
        if amount > self.available_liquidity(asset):
            raise PoolError(f"Not enough {asset} liquidity to borrow {amount}")

        account = self._account(on_behalf_of)
        if self._value(asset, amount) > account.available_borrows_base:
            raise PoolError("Collateral cannot cover new borrow")

        self._ledger.transfer(asset, self._address, sender, amount)
        self._ledger.mint(reserve.tokens.variable_debt_token, on_behalf_of, amount)
        logger.debug("borrow %d %s for %s", amount, asset, on_behalf_of)

    def repay(
        self,
        asset: str,
        amount: int,
        interest_rate_mode: int,
        on_behalf_of: str,
        *,
        sender: str,
    ) -> int:
        """Repay up to ``amount``; returns the amount actually repaid."""
        reserve = self._reserve(asset)
        if interest_rate_mode != VARIABLE_RATE_MODE:
            raise PoolError(f"Unsupported interest rate mode {interest_rate_mode}")
        owed = self._ledger.balance_of(reserve.tokens.variable_debt_token, on_behalf_of)
        if owed == 0:
            raise PoolError(f"No {asset} debt to repay for {on_behalf_of}")
        if amount <= 0:
            raise PoolError("Repay amount must be positive")

        repaid = min(amount, owed)
        self._ledger.transfer_from(asset, self._address, sender, self._address, repaid)
        self._ledger.burn(reserve.tokens.variable_debt_token, on_behalf_of, repaid)
        logger.debug("repay %d %s for %s", repaid, asset, on_behalf_of)
        return repaid

    def withdraw(self, asset: str, amount: int, to: str, *, sender: str) -> int:
        """Withdraw ``amount`` (MAX_UINT256 for everything); returns the amount withdrawn."""
        reserve = self._reserve(asset)
        supplied = self._ledger.balance_of(reserve.tokens.a_token, sender)
        withdrawn = supplied if amount == MAX_UINT256 else amount
        if withdrawn <= 0:
            raise PoolError("Withdraw amount must be positive")
        if withdrawn > supplied:
            raise PoolError(f"{sender} supplied {supplied} of {asset}, cannot withdraw {withdrawn}")

        after = self._account(sender, collateral_delta={asset: -withdrawn})
        if after.health_factor < HEALTH_FACTOR_ONE:
            raise PoolError("Withdrawal would leave the position unhealthy")

        self._ledger.burn(reserve.tokens.a_token, sender, withdrawn)
        self._ledger.transfer(asset, self._address, to, withdrawn)
        logger.debug("withdraw %d %s to %s", withdrawn, asset, to)
        return withdrawn

    # ------------------------------------------------------------------
    # Flash loans
    # ------------------------------------------------------------------

    def flash_loan_simple(
        self,
        receiver: FlashLoanReceiver,
        asset: str,
        amount: int,
        params: bytes,
        referral_code: int = 0,
        *,
        sender: str,
    ) -> None:
        """Lend ``amount`` to ``receiver``, run its callback, then pull back loan and premium.

        Relies on the caller's unit of work to undo the loan if anything fails.
        """
        self._reserve(asset)
        if amount > self.available_liquidity(asset):
            raise PoolError(f"Not enough {asset} liquidity for a flash loan of {amount}")

        premium = amount * self.flash_loan_premium_bps // BASIS_POINTS
        self._ledger.transfer(asset, self._address, receiver.address, amount)
        logger.debug("flash loan %d %s to %s (premium %d)", amount, asset, receiver.address, premium)

        if not receiver.execute_operation(
            asset, amount, premium, sender, params, sender=self._address
        ):
            raise PoolError("Flash loan receiver returned false")

        self._ledger.transfer_from(
            asset, self._address, receiver.address, self._address, amount + premium
        )
