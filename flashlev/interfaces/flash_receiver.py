"""Flash loan receiver protocol — the callback a lending pool invokes."""
from typing import Protocol


class FlashLoanReceiver(Protocol):
    """Contract surface invoked by the pool in the middle of a flash loan."""

    @property
    def address(self) -> str: ...

    def execute_operation(
        self,
        asset: str,
        amount: int,
        premium: int,
        initiator: str,
        params: bytes,
        *,
        sender: str,
    ) -> bool: ...
