"""Protocol interfaces for the vault's external collaborators."""
from .flash_receiver import FlashLoanReceiver
from .lending_pool import LendingPool
from .price_oracle import PriceOracle
from .swap_router import SwapRouter
from .token import TokenLedger

__all__ = [
    "FlashLoanReceiver",
    "LendingPool",
    "PriceOracle",
    "SwapRouter",
    "TokenLedger",
]
