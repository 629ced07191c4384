"""Atomic execution: unit of work, swap adapter and flash-loan orchestrator."""
from .orchestrator import FlashLoanOrchestrator, OrchestratorState
from .swap import SwapExecutor
from .unit_of_work import Transaction, TransactionError

__all__ = [
    "FlashLoanOrchestrator",
    "OrchestratorState",
    "SwapExecutor",
    "Transaction",
    "TransactionError",
]
