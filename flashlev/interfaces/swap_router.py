"""Swap router protocol — executes opaque, pre-built swap instructions."""
from typing import Protocol


class SwapRouter(Protocol):
    """Abstract interface for an aggregator router.

    ``swap`` may report ``(amount_out, amount_in_used)``; routers that do not
    report return None.
    """

    @property
    def address(self) -> str: ...

    def swap(self, instruction: bytes, *, sender: str) -> tuple[int, int] | None: ...
