"""In-memory lending pool, swap router and token ledger."""
from .ledger import (
    InMemoryLedger,
    InsufficientAllowance,
    InsufficientBalance,
    TokenError,
    UnknownToken,
)
from .lending_pool import PoolError, SimulatedLendingPool
from .router import RouterError, SimulatedSwapRouter, build_swap_instruction

__all__ = [
    "InMemoryLedger",
    "InsufficientAllowance",
    "InsufficientBalance",
    "PoolError",
    "RouterError",
    "SimulatedLendingPool",
    "SimulatedSwapRouter",
    "TokenError",
    "UnknownToken",
    "build_swap_instruction",
]
