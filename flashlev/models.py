"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class OperationKind(Enum):
    """Selects which branch a flash-loan callback executes."""

    OPEN = "open"
    UNWIND = "unwind"


@dataclass(frozen=True)
class OpenRequest:
    """Parameters for the OPEN branch; the flash loan is in ``collateral_token``."""

    collateral_token: str
    collateral_amount: int
    borrow_token: str
    borrow_amount: int
    swap_instruction: bytes
    min_return_amount: int


@dataclass(frozen=True)
class UnwindRequest:
    """Parameters for the UNWIND branch; the flash loan is in ``debt_token``."""

    collateral_token: str
    collateral_to_withdraw: int
    debt_token: str
    debt_amount: int
    swap_instruction: bytes
    min_return_amount: int


@dataclass(frozen=True)
class FlashLoanParams:
    """Decoded callback payload."""

    kind: OperationKind
    requester: str
    request: OpenRequest | UnwindRequest


@dataclass(frozen=True)
class LeverageQuote:
    """Inputs for sizing an open.

    ``desired_leverage`` is scaled by 10^4 (30000 = 3x). Prices are USD at
    10^8; a zero price is resolved from the oracle.
    """

    collateral_token: str
    borrow_token: str
    desired_leverage: int
    collateral_amount: int
    collateral_decimals: int
    borrow_decimals: int
    collateral_price: int = 0
    borrow_price: int = 0


@dataclass(frozen=True)
class OpenParams:
    flash_loan_amount: int
    borrow_amount: int


@dataclass(frozen=True)
class UnwindParams:
    collateral_to_withdraw: int
    debt_amount: int


@dataclass(frozen=True)
class ReserveConfiguration:
    """Risk parameters of a lending pool reserve (ltv/threshold in bps)."""

    decimals: int
    ltv: int
    liquidation_threshold: int
    usage_as_collateral_enabled: bool = True
    borrowing_enabled: bool = True


@dataclass(frozen=True)
class ReserveTokens:
    a_token: str
    stable_debt_token: str
    variable_debt_token: str


@dataclass(frozen=True)
class AccountData:
    """Aggregate account figures; base amounts are USD at 10^8."""

    total_collateral_base: int
    total_debt_base: int
    available_borrows_base: int
    current_liquidation_threshold: int
    ltv: int
    health_factor: int


@dataclass(frozen=True)
class PositionCreated:
    requester: str
    collateral_token: str
    supplied_amount: int
    borrow_token: str
    borrow_amount: int
    flash_loan_amount: int
    premium: int


@dataclass(frozen=True)
class PositionUnwound:
    requester: str
    collateral_token: str
    collateral_withdrawn: int
    debt_token: str
    debt_repaid: int
    flash_loan_amount: int
    premium: int
