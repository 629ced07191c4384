"""Token protocol — standard transfer/approve/balance/decimals semantics."""
from typing import Protocol


class TokenLedger(Protocol):
    """Balances and allowances for every token the vault touches."""

    def balance_of(self, token: str, holder: str) -> int: ...

    def allowance(self, token: str, owner: str, spender: str) -> int: ...

    def decimals(self, token: str) -> int: ...

    def transfer(self, token: str, sender: str, to: str, amount: int) -> None: ...

    def transfer_from(
        self, token: str, spender: str, owner: str, to: str, amount: int
    ) -> None: ...

    def approve(self, token: str, owner: str, spender: str, amount: int) -> None: ...
