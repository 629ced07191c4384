"""Flash-loan orchestrator — the callback state machine behind OPEN and UNWIND.

The lending pool lends synchronously and calls ``execute_operation`` before
settling. Every step below runs inside the unit of work opened by the vault,
so any failure discards the whole sequence, the loan included.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..codec import decode_params
from ..constants import HEALTH_FACTOR_ONE, VARIABLE_RATE_MODE
from ..errors import (
    BorrowTokenResidueDetected,
    ForeignInitiator,
    InsufficientSwapProceeds,
    MalformedCallbackParams,
    UnauthorizedCallback,
    UnhealthyPosition,
)
from ..interfaces.lending_pool import LendingPool
from ..interfaces.token import TokenLedger
from ..leverage.engine import LeverageEngine
from ..models import (
    OpenRequest,
    OperationKind,
    PositionCreated,
    PositionUnwound,
    UnwindRequest,
)
from .swap import SwapExecutor

if TYPE_CHECKING:
    from ..vault import VaultSettings

logger = logging.getLogger(__name__)


class OrchestratorState(Enum):
    IDLE = "idle"
    LOAN_REQUESTED = "loan_requested"
    EXECUTING_OPEN = "executing_open"
    EXECUTING_UNWIND = "executing_unwind"
    SETTLED = "settled"
    ABORTED = "aborted"


class FlashLoanOrchestrator:
    """Receives flash loans requested by the vault and drives the pool and swaps."""

    def __init__(
        self,
        address: str,
        pool: LendingPool,
        ledger: TokenLedger,
        swapper: SwapExecutor,
        engine: LeverageEngine,
    ) -> None:
        self._address = address
        self._pool = pool
        self._ledger = ledger
        self._swapper = swapper
        self._engine = engine
        self.state = OrchestratorState.IDLE
        self.events: list[PositionCreated | PositionUnwound] = []
        self._settings: VaultSettings | None = None

    @property
    def address(self) -> str:
        return self._address

    # ------------------------------------------------------------------
    # Unit-of-work participation
    # ------------------------------------------------------------------

    def snapshot(self) -> Any:
        return (self.state, list(self.events), self._settings)

    def restore(self, state: Any) -> None:
        self.state, events, self._settings = state
        self.events = list(events)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def expect_loan(self, settings: VaultSettings) -> None:
        """Arm the callback for exactly one loan the vault is about to request."""
        self._settings = settings
        self.state = OrchestratorState.LOAN_REQUESTED

    def mark_aborted(self) -> None:
        self._settings = None
        self.state = OrchestratorState.ABORTED

    def execute_operation(
        self,
        asset: str,
        amount: int,
        premium: int,
        initiator: str,
        params: bytes,
        *,
        sender: str,
    ) -> bool:
        """Flash loan callback; returns True once repayment is approved."""
        if sender != self._pool.address:
            raise UnauthorizedCallback(f"Callback from {sender}, expected the pool")
        if initiator != self._address:
            raise ForeignInitiator(initiator)
        if self.state is not OrchestratorState.LOAN_REQUESTED or self._settings is None:
            raise UnauthorizedCallback("No flash loan is pending for this vault")

        decoded = decode_params(params)
        settings = self._settings
        self._settings = None

        logger.info(
            "Flash loan received: %s %d of %s (premium %d)",
            decoded.kind.name,
            amount,
            asset,
            premium,
        )

        request = decoded.request
        if decoded.kind is OperationKind.OPEN and isinstance(request, OpenRequest):
            self.state = OrchestratorState.EXECUTING_OPEN
            event = self._open(asset, amount, premium, request, decoded.requester)
        elif decoded.kind is OperationKind.UNWIND and isinstance(request, UnwindRequest):
            self.state = OrchestratorState.EXECUTING_UNWIND
            event = self._unwind(
                asset, amount, premium, request, decoded.requester, settings
            )
        else:
            raise MalformedCallbackParams(f"Unsupported operation {decoded.kind}")

        self.events.append(event)
        self.state = OrchestratorState.SETTLED
        return True

    # ------------------------------------------------------------------
    # Pool helpers
    # ------------------------------------------------------------------

    def _approve(self, token: str, spender: str, amount: int) -> None:
        self._ledger.approve(token, self._address, spender, amount)

    def _supply(self, asset: str, amount: int) -> None:
        self._approve(asset, self._pool.address, amount)
        self._pool.supply(asset, amount, self._address, sender=self._address)
        logger.info("Supplied %d of %s", amount, asset)

    def _swap(
        self,
        token_in: str,
        amount_in: int,
        token_out: str,
        instruction: bytes,
        minimum: int,
    ) -> int:
        self._approve(token_in, self._swapper.router_address, amount_in)
        received = self._swapper.execute(instruction, token_out, minimum, self._address)
        self._approve(token_in, self._swapper.router_address, 0)
        return received

    def _approve_repayment(self, asset: str, amount: int, premium: int) -> None:
        self._approve(asset, self._pool.address, amount + premium)

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def _open(
        self,
        asset: str,
        amount: int,
        premium: int,
        request: OpenRequest,
        requester: str,
    ) -> PositionCreated:
        supplied = amount + request.collateral_amount
        self._supply(asset, supplied)

        borrow_token = request.borrow_token
        balance_before_borrow = self._ledger.balance_of(borrow_token, self._address)
        self._pool.borrow(
            borrow_token,
            request.borrow_amount,
            VARIABLE_RATE_MODE,
            self._address,
            sender=self._address,
        )
        logger.info("Borrowed %d of %s", request.borrow_amount, borrow_token)

        proceeds = self._swap(
            borrow_token,
            request.borrow_amount,
            asset,
            request.swap_instruction,
            request.min_return_amount,
        )

        residue = self._ledger.balance_of(borrow_token, self._address) - balance_before_borrow
        if residue != 0:
            raise BorrowTokenResidueDetected(borrow_token, residue)

        repayment = amount + premium
        if proceeds < repayment:
            raise InsufficientSwapProceeds(proceeds, repayment)

        health_factor = self._pool.get_user_account_data(self._address).health_factor
        if health_factor <= HEALTH_FACTOR_ONE:
            raise UnhealthyPosition(health_factor)

        surplus = proceeds - repayment
        if surplus > 0:
            self._supply(asset, surplus)

        self._approve_repayment(asset, amount, premium)
        logger.info(
            "Position created: supplied %d of %s, borrowed %d of %s, surplus %d",
            supplied,
            asset,
            request.borrow_amount,
            borrow_token,
            surplus,
        )
        return PositionCreated(
            requester=requester,
            collateral_token=asset,
            supplied_amount=supplied + surplus,
            borrow_token=borrow_token,
            borrow_amount=request.borrow_amount,
            flash_loan_amount=amount,
            premium=premium,
        )

    def _unwind(
        self,
        asset: str,
        amount: int,
        premium: int,
        request: UnwindRequest,
        requester: str,
        settings: VaultSettings,
    ) -> PositionUnwound:
        self._approve(asset, self._pool.address, request.debt_amount)
        repaid = self._pool.repay(
            asset,
            request.debt_amount,
            VARIABLE_RATE_MODE,
            self._address,
            sender=self._address,
        )
        self._approve(asset, self._pool.address, 0)
        logger.info("Repaid %d of %s", repaid, asset)

        unspent = amount - repaid

        collateral_token = request.collateral_token
        collateral_before = self._ledger.balance_of(collateral_token, self._address)
        backing = self._engine.collateral_for_repaid_debt(
            collateral_token, asset, repaid, settings
        )
        withdrawn = self._pool.withdraw(
            collateral_token, backing, self._address, sender=self._address
        )
        logger.info(
            "Withdrew %d of %s (quoted swap input %d)",
            withdrawn,
            collateral_token,
            request.collateral_to_withdraw,
        )

        proceeds = self._swap(
            collateral_token,
            withdrawn,
            asset,
            request.swap_instruction,
            request.min_return_amount,
        )

        # Flash-loaned debt tokens the pool did not take back still count toward repayment
        available = proceeds + unspent
        repayment = amount + premium
        if available < repayment:
            raise InsufficientSwapProceeds(available, repayment)

        surplus = available - repayment
        if surplus > 0:
            self._supply(asset, surplus)

        leftover = self._ledger.balance_of(collateral_token, self._address) - collateral_before
        if leftover > 0:
            self._supply(collateral_token, leftover)

        self._approve_repayment(asset, amount, premium)
        logger.info(
            "Position unwound: repaid %d of %s, withdrew %d of %s, surplus %d, resupplied %d",
            repaid,
            asset,
            withdrawn,
            collateral_token,
            surplus,
            leftover,
        )
        return PositionUnwound(
            requester=requester,
            collateral_token=collateral_token,
            collateral_withdrawn=withdrawn,
            debt_token=asset,
            debt_repaid=repaid,
            flash_loan_amount=amount,
            premium=premium,
        )
