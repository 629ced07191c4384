"""Swap execution adapter — runs a pre-built router instruction and enforces an output floor."""
from __future__ import annotations

import logging

from ..errors import SlippageExceeded, SwapExecutionFailed
from ..interfaces.swap_router import SwapRouter
from ..interfaces.token import TokenLedger

logger = logging.getLogger(__name__)


class SwapExecutor:
    """Execute opaque swap instructions through a router.

    The route itself is never inspected; only the realised output is checked.
    """

    def __init__(self, router: SwapRouter, ledger: TokenLedger) -> None:
        self._router = router
        self._ledger = ledger

    @property
    def router_address(self) -> str:
        return self._router.address

    def execute(
        self,
        instruction: bytes,
        token_out: str,
        min_return_amount: int,
        sender: str,
    ) -> int:
        """Run ``instruction`` for ``sender`` and return the amount of ``token_out`` received."""
        balance_before = self._ledger.balance_of(token_out, sender)

        try:
            reported = self._router.swap(instruction, sender=sender)
        except Exception as e:
            logger.error("Router call failed: %s", e)
            raise SwapExecutionFailed(f"Router call failed: {e}") from e

        if reported is not None:
            amount_out, amount_in_used = reported
            logger.debug("Router reported out=%d in=%d", amount_out, amount_in_used)
        else:
            amount_out = self._ledger.balance_of(token_out, sender) - balance_before

        if amount_out < min_return_amount:
            raise SlippageExceeded(amount_out, min_return_amount)

        logger.info("Swap received %d of %s (min %d)", amount_out, token_out, min_return_amount)
        return amount_out
