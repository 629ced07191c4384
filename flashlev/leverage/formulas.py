"""Pure leverage arithmetic — no I/O.

All values are integers in fixed point: prices at 10^8, LTV and leverage at
10^4, token amounts in their smallest unit. Division truncates.
"""
from __future__ import annotations

from ..constants import (
    BASIS_POINTS,
    BORROW_SAFETY_MARGIN,
    LEVERAGE_PRECISION,
    LTV_PRECISION,
    UNWIND_SLIPPAGE_BUFFER,
)
from ..errors import (
    InsufficientRepaymentCapacity,
    InvalidLeverage,
    InvalidLtv,
    LeverageExceedsMaximum,
    ZeroCollateral,
)
from ..models import OpenParams


def max_leverage(ltv: int) -> int:
    """Highest leverage reachable by recursively borrowing at ``ltv``.

    max_leverage = LEVERAGE_PRECISION^2 / (LTV_PRECISION - ltv)

    Examples:
        8000 (80%) → 50000 (5x)
        5000 (50%) → 20000 (2x)
    """
    if ltv <= 0 or ltv >= LTV_PRECISION:
        raise InvalidLtv(ltv)
    return LEVERAGE_PRECISION * LEVERAGE_PRECISION // (LTV_PRECISION - ltv)


def flash_loan_for_leverage(collateral_amount: int, desired_leverage: int) -> int:
    """Capital needed on top of the user's own to reach ``desired_leverage``."""
    return collateral_amount * (desired_leverage - LEVERAGE_PRECISION) // LEVERAGE_PRECISION


def to_usd(amount: int, price: int, decimals: int) -> int:
    """Token amount → USD value at 10^8."""
    return amount * price // 10**decimals


def from_usd(value_usd: int, price: int, decimals: int) -> int:
    """USD value at 10^8 → token amount."""
    return value_usd * 10**decimals // price


def convert(
    amount: int,
    price_in: int,
    decimals_in: int,
    price_out: int,
    decimals_out: int,
) -> int:
    """Convert an amount of one token into the equivalent of another.

    Multiplies before dividing so no precision is lost through the
    intermediate USD value.
    """
    return amount * price_in * 10**decimals_out // (price_out * 10**decimals_in)


def safe_borrow_value(collateral_value_usd: int, ltv: int) -> int:
    """USD borrow size for a collateral value, under-borrowing by the safety margin."""
    return (
        collateral_value_usd * ltv * BORROW_SAFETY_MARGIN
        // (LTV_PRECISION * BASIS_POINTS)
    )


def apply_fee(amount: int, fee_bps: int) -> int:
    """Fee charged on ``amount`` at ``fee_bps`` basis points."""
    return amount * fee_bps // BASIS_POINTS


def with_unwind_buffer(amount: int) -> int:
    """Inflate ``amount`` by the unwind slippage buffer (5%)."""
    return amount * (BASIS_POINTS + UNWIND_SLIPPAGE_BUFFER) // BASIS_POINTS


def collateral_backing_debt(
    debt_amount: int,
    debt_price: int,
    debt_decimals: int,
    collateral_price: int,
    collateral_decimals: int,
    liquidation_threshold: int,
) -> int:
    """Collateral whose risk-adjusted value equals ``debt_amount``.

    collateral_value = debt_value * LTV_PRECISION / liquidation_threshold

    Withdrawing exactly this much after repaying the debt never lowers the
    health factor of a solvent position.
    """
    if liquidation_threshold <= 0 or liquidation_threshold > LTV_PRECISION:
        raise InvalidLtv(liquidation_threshold)
    return (
        debt_amount * debt_price * LTV_PRECISION * 10**collateral_decimals
        // (collateral_price * liquidation_threshold * 10**debt_decimals)
    )


def size_open(
    collateral_amount: int,
    desired_leverage: int,
    collateral_price: int,
    collateral_decimals: int,
    borrow_price: int,
    borrow_decimals: int,
    ltv: int,
    fee_bps: int,
) -> OpenParams:
    """Flash loan and borrow sizes for opening at ``desired_leverage``.

    1. flash_loan = collateral * (leverage - 1x) / 1x
    2. total_value_usd = (collateral + flash_loan) * price / 10^decimals
    3. borrow_value_usd = total_value_usd * ltv * safety_margin
    4. borrow = borrow_value_usd * 10^borrow_decimals / borrow_price

    The borrow, converted back into collateral, must repay the flash loan
    and its fee.
    """
    if collateral_amount <= 0:
        raise ZeroCollateral()
    if desired_leverage < LEVERAGE_PRECISION:
        raise InvalidLeverage(desired_leverage)

    maximum = max_leverage(ltv)
    if desired_leverage > maximum:
        raise LeverageExceedsMaximum(desired_leverage, maximum)

    flash_loan_amount = flash_loan_for_leverage(collateral_amount, desired_leverage)
    total_collateral = collateral_amount + flash_loan_amount

    total_value = to_usd(total_collateral, collateral_price, collateral_decimals)
    borrow_value = safe_borrow_value(total_value, ltv)
    borrow_amount = from_usd(borrow_value, borrow_price, borrow_decimals)

    covered = convert(
        borrow_amount, borrow_price, borrow_decimals, collateral_price, collateral_decimals
    )
    required = flash_loan_amount + apply_fee(flash_loan_amount, fee_bps)
    if covered < required:
        raise InsufficientRepaymentCapacity(covered, required)

    return OpenParams(flash_loan_amount=flash_loan_amount, borrow_amount=borrow_amount)
