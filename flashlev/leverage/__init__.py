"""Leverage sizing: pure formulas and the market-aware engine."""
from .engine import LeverageEngine
from .formulas import max_leverage

__all__ = ["LeverageEngine", "max_leverage"]
