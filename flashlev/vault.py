"""Position entry point — the operator-gated surface of the leverage vault."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Iterable

from .codec import encode_params
from .constants import BASIS_POINTS, DEFAULT_FLASH_LOAN_FEE_BPS, ZERO_ADDRESS
from .errors import (
    FeeOutOfRange,
    InvalidAddress,
    Unauthorized,
    ZeroCollateral,
)
from .execution.orchestrator import FlashLoanOrchestrator, OrchestratorState
from .execution.swap import SwapExecutor
from .execution.unit_of_work import Stateful, Transaction
from .interfaces.lending_pool import LendingPool
from .interfaces.price_oracle import PriceOracle
from .interfaces.swap_router import SwapRouter
from .interfaces.token import TokenLedger
from .leverage import formulas
from .leverage.engine import LeverageEngine
from .models import (
    FlashLoanParams,
    LeverageQuote,
    OpenParams,
    OpenRequest,
    OperationKind,
    PositionCreated,
    PositionUnwound,
    UnwindParams,
    UnwindRequest,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VaultSettings:
    """Operator-controlled configuration, replaced wholesale by the setters."""

    operator: str
    flash_loan_fee_bps: int = DEFAULT_FLASH_LOAN_FEE_BPS
    price_oracle: PriceOracle | None = None


def _is_zero_address(address: str | None) -> bool:
    return not address or address.lower() == ZERO_ADDRESS


class LeverageVault:
    """Opens and unwinds one aggregate leveraged position through flash loans.

    ``ledger`` must be snapshot-able: every OPEN and UNWIND runs as one
    transaction over the ledger, the orchestrator and any ``participants``.
    """

    def __init__(
        self,
        address: str,
        settings: VaultSettings,
        pool: LendingPool,
        router: SwapRouter,
        ledger: TokenLedger,
        participants: Iterable[Stateful] = (),
    ) -> None:
        if _is_zero_address(address) or _is_zero_address(settings.operator):
            raise InvalidAddress("Vault and operator addresses must be set")
        if not 0 <= settings.flash_loan_fee_bps < BASIS_POINTS:
            raise FeeOutOfRange(settings.flash_loan_fee_bps)

        self.address = address
        self._settings = settings
        self._pool = pool
        self._ledger = ledger
        self.engine = LeverageEngine(pool, ledger, address)
        self.orchestrator = FlashLoanOrchestrator(
            address, pool, ledger, SwapExecutor(router, ledger), self.engine
        )
        self._participants: list[Stateful] = [ledger, self.orchestrator, *participants]

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def settings(self) -> VaultSettings:
        return self._settings

    @property
    def operator(self) -> str:
        return self._settings.operator

    @property
    def state(self) -> OrchestratorState:
        return self.orchestrator.state

    @property
    def events(self) -> tuple[PositionCreated | PositionUnwound, ...]:
        return tuple(self.orchestrator.events)

    def max_leverage(self, ltv: int) -> int:
        return formulas.max_leverage(ltv)

    def max_leverage_for_asset(self, asset: str) -> int:
        return self.engine.max_leverage_for_asset(asset)

    def calculate_open_params(self, quote: LeverageQuote) -> OpenParams:
        return self.engine.calculate_open_params(quote, self._settings)

    def calculate_unwind_params(self, collateral_token: str, borrow_token: str) -> UnwindParams:
        return self.engine.calculate_unwind_params(
            collateral_token, borrow_token, self._settings
        )

    # ------------------------------------------------------------------
    # Positions
    # ------------------------------------------------------------------

    def _only_operator(self, caller: str) -> None:
        if caller != self._settings.operator:
            raise Unauthorized(caller)

    def _request_flash_loan(self, asset: str, amount: int, params: FlashLoanParams) -> None:
        self.orchestrator.expect_loan(self._settings)
        logger.info("Requesting flash loan of %d %s (%s)", amount, asset, params.kind.name)
        self._pool.flash_loan_simple(
            self.orchestrator, asset, amount, encode_params(params), 0, sender=self.address
        )

    def _loan_settled(self) -> bool:
        return self.orchestrator.state is OrchestratorState.SETTLED

    def _run_atomic(self, name: str, action: Callable[[], None]) -> None:
        """Run ``action`` as one unit; it only commits if the flash loan callback settled."""
        try:
            with Transaction(self._participants, name=name, post_check=self._loan_settled):
                action()
        except Exception:
            self.orchestrator.mark_aborted()
            logger.error("%s aborted; all effects discarded", name)
            raise

    def create_position(
        self,
        flash_loan_token: str,
        flash_loan_amount: int,
        collateral_amount: int,
        borrow_token: str,
        borrow_amount: int,
        swap_instruction: bytes,
        min_return_amount: int,
        *,
        caller: str,
    ) -> None:
        """Open leverage: pull the operator's collateral, then flash-borrow the rest.

        The operator must have approved the vault for ``collateral_amount``.
        """
        self._only_operator(caller)
        if collateral_amount <= 0:
            raise ZeroCollateral()

        params = FlashLoanParams(
            kind=OperationKind.OPEN,
            requester=caller,
            request=OpenRequest(
                collateral_token=flash_loan_token,
                collateral_amount=collateral_amount,
                borrow_token=borrow_token,
                borrow_amount=borrow_amount,
                swap_instruction=swap_instruction,
                min_return_amount=min_return_amount,
            ),
        )

        def action() -> None:
            self._ledger.transfer_from(
                flash_loan_token, self.address, caller, self.address, collateral_amount
            )
            self._request_flash_loan(flash_loan_token, flash_loan_amount, params)

        self._run_atomic("create_position", action)

    def unwind_position(
        self,
        collateral_token: str,
        collateral_to_withdraw: int,
        debt_token: str,
        debt_amount: int,
        swap_instruction: bytes,
        min_return_amount: int,
        *,
        caller: str,
    ) -> None:
        """Repay ``debt_amount`` with a flash loan and release the collateral behind it."""
        self._only_operator(caller)

        params = FlashLoanParams(
            kind=OperationKind.UNWIND,
            requester=caller,
            request=UnwindRequest(
                collateral_token=collateral_token,
                collateral_to_withdraw=collateral_to_withdraw,
                debt_token=debt_token,
                debt_amount=debt_amount,
                swap_instruction=swap_instruction,
                min_return_amount=min_return_amount,
            ),
        )
        self._run_atomic(
            "unwind_position",
            lambda: self._request_flash_loan(debt_token, debt_amount, params),
        )

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def set_price_oracle(self, oracle: PriceOracle | None, *, caller: str) -> None:
        self._only_operator(caller)
        if oracle is None or _is_zero_address(oracle.address):
            raise InvalidAddress("Price oracle address must be set")
        self._settings = replace(self._settings, price_oracle=oracle)
        logger.info("Price oracle set to %s", oracle.address)

    def set_flash_loan_fee(self, fee_bps: int, *, caller: str) -> None:
        self._only_operator(caller)
        if not 0 <= fee_bps < BASIS_POINTS:
            raise FeeOutOfRange(fee_bps)
        self._settings = replace(self._settings, flash_loan_fee_bps=fee_bps)
        logger.info("Flash loan fee set to %d bps", fee_bps)

    def transfer_operator(self, new_operator: str, *, caller: str) -> None:
        self._only_operator(caller)
        if _is_zero_address(new_operator):
            raise InvalidAddress("New operator address must be set")
        self._settings = replace(self._settings, operator=new_operator)
        logger.info("Operator transferred from %s to %s", caller, new_operator)

    def recover_tokens(self, token: str, amount: int, to: str, *, caller: str) -> None:
        """Send stray tokens held by the vault to ``to``."""
        self._only_operator(caller)
        if _is_zero_address(to):
            raise InvalidAddress("Recipient address must be set")
        self._ledger.transfer(token, self.address, to, amount)
        logger.info("Recovered %d of %s to %s", amount, token, to)
