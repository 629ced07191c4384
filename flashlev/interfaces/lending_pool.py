"""Lending pool protocol — supply/borrow accounting and flash loans."""
from __future__ import annotations

from typing import Protocol

from ..models import AccountData, ReserveConfiguration, ReserveTokens
from .flash_receiver import FlashLoanReceiver


class LendingPool(Protocol):
    """Abstract interface for an Aave-style lending pool."""

    @property
    def address(self) -> str: ...

    def flash_loan_simple(
        self,
        receiver: FlashLoanReceiver,
        asset: str,
        amount: int,
        params: bytes,
        referral_code: int = 0,
        *,
        sender: str,
    ) -> None: ...

    def supply(
        self, asset: str, amount: int, on_behalf_of: str, *, sender: str
    ) -> None: ...

    def borrow(
        self,
        asset: str,
        amount: int,
        interest_rate_mode: int,
        on_behalf_of: str,
        *,
        sender: str,
    ) -> None: ...

    def repay(
        self,
        asset: str,
        amount: int,
        interest_rate_mode: int,
        on_behalf_of: str,
        *,
        sender: str,
    ) -> int: ...

    def withdraw(self, asset: str, amount: int, to: str, *, sender: str) -> int: ...

    def get_user_account_data(self, user: str) -> AccountData: ...

    def get_reserve_configuration_data(self, asset: str) -> ReserveConfiguration: ...

    def get_reserve_tokens_addresses(self, asset: str) -> ReserveTokens: ...
