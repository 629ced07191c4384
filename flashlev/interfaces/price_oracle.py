"""Price oracle protocol — token to USD price at 10^8."""
from typing import Protocol


class PriceOracle(Protocol):
    """Abstract interface for per-token USD prices."""

    @property
    def address(self) -> str: ...

    def get_price(self, token: str) -> int: ...
