"""In-memory multi-token ledger with ERC-20 transfer/approve semantics."""
from __future__ import annotations

import logging
from collections import defaultdict
from copy import deepcopy
from typing import Any

logger = logging.getLogger(__name__)


class TokenError(Exception):
    pass


class UnknownToken(TokenError):
    pass


class InsufficientBalance(TokenError):
    pass


class InsufficientAllowance(TokenError):
    pass


class InMemoryLedger:
    """Balances and allowances for any number of tokens, keyed by address."""

    def __init__(self) -> None:
        self._decimals: dict[str, int] = {}
        self._balances: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self._allowances: dict[tuple[str, str, str], int] = {}

    # ------------------------------------------------------------------
    # Unit-of-work participation
    # ------------------------------------------------------------------

    def snapshot(self) -> Any:
        balances = {token: dict(holders) for token, holders in self._balances.items()}
        return deepcopy((balances, self._allowances))

    def restore(self, state: Any) -> None:
        balances, allowances = state
        self._balances = defaultdict(lambda: defaultdict(int))
        for token, holders in balances.items():
            self._balances[token].update(holders)
        self._allowances = dict(allowances)

    # ------------------------------------------------------------------
    # Token registry
    # ------------------------------------------------------------------

    def register(self, token: str, decimals: int) -> None:
        if decimals < 0:
            raise ValueError(f"Invalid decimals for {token}: {decimals}")
        self._decimals[token] = decimals

    def decimals(self, token: str) -> int:
        try:
            return self._decimals[token]
        except KeyError:
            raise UnknownToken(f"Unknown token {token}") from None

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    def balance_of(self, token: str, holder: str) -> int:
        return self._balances.get(token, {}).get(holder, 0)

    def allowance(self, token: str, owner: str, spender: str) -> int:
        return self._allowances.get((token, owner, spender), 0)

    def mint(self, token: str, to: str, amount: int) -> None:
        self.decimals(token)
        if amount < 0:
            raise ValueError("Cannot mint a negative amount")
        self._balances[token][to] += amount

    def burn(self, token: str, holder: str, amount: int) -> None:
        balance = self.balance_of(token, holder)
        if amount > balance:
            raise InsufficientBalance(
                f"{holder} holds {balance} of {token}, cannot burn {amount}"
            )
        self._balances[token][holder] = balance - amount

    def transfer(self, token: str, sender: str, to: str, amount: int) -> None:
        self.decimals(token)
        if amount < 0:
            raise ValueError("Cannot transfer a negative amount")
        balance = self.balance_of(token, sender)
        if amount > balance:
            raise InsufficientBalance(
                f"{sender} holds {balance} of {token}, cannot send {amount}"
            )
        self._balances[token][sender] = balance - amount
        self._balances[token][to] += amount
        logger.debug("Transfer %d %s: %s -> %s", amount, token, sender, to)

    def approve(self, token: str, owner: str, spender: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("Cannot approve a negative amount")
        self._allowances[(token, owner, spender)] = amount

    def transfer_from(
        self, token: str, spender: str, owner: str, to: str, amount: int
    ) -> None:
        allowed = self.allowance(token, owner, spender)
        if amount > allowed:
            raise InsufficientAllowance(
                f"{spender} may move {allowed} of {owner}'s {token}, not {amount}"
            )
        self.transfer(token, owner, to, amount)
        self._allowances[(token, owner, spender)] = allowed - amount
