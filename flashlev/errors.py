"""Error hierarchy for the leverage vault.

Every error aborts the unit of work it is raised in. The category classes
let callers handle a whole family (e.g. all solvency failures) at once.
"""
from __future__ import annotations


class LeverageError(Exception):
    """Base class for all vault errors."""


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class AuthorizationError(LeverageError):
    pass


class ValidationError(LeverageError):
    pass


class MarketDataError(LeverageError):
    pass


class SolvencyError(LeverageError):
    pass


class ExecutionError(LeverageError):
    pass


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


class Unauthorized(AuthorizationError):
    def __init__(self, caller: str) -> None:
        super().__init__(f"Caller {caller} is not the operator")
        self.caller = caller


class ForeignInitiator(AuthorizationError):
    def __init__(self, initiator: str) -> None:
        super().__init__(f"Flash loan was initiated by {initiator}, not this vault")
        self.initiator = initiator


class UnauthorizedCallback(AuthorizationError):
    pass


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class ZeroCollateral(ValidationError):
    def __init__(self) -> None:
        super().__init__("Collateral amount must be greater than zero")


class InvalidLtv(ValidationError):
    def __init__(self, ltv: int) -> None:
        super().__init__(f"Invalid LTV: {ltv}")
        self.ltv = ltv


class InvalidLeverage(ValidationError):
    def __init__(self, leverage: int) -> None:
        super().__init__(f"Leverage {leverage} is below 1x")
        self.leverage = leverage


class InvalidAddress(ValidationError):
    pass


class FeeOutOfRange(ValidationError):
    def __init__(self, fee_bps: int) -> None:
        super().__init__(f"Flash loan fee {fee_bps} bps is out of range")
        self.fee_bps = fee_bps


class MalformedCallbackParams(ValidationError):
    pass


# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------


class OracleUnavailable(MarketDataError):
    def __init__(self) -> None:
        super().__init__("Price oracle is not set")


class InvalidPrice(MarketDataError):
    def __init__(self, token: str) -> None:
        super().__init__(f"Invalid price for {token}")
        self.token = token


class PriceFeedNotFound(MarketDataError):
    def __init__(self, token: str) -> None:
        super().__init__(f"No price feed registered for {token}")
        self.token = token


class AssetNotCollateralizable(MarketDataError):
    def __init__(self, asset: str) -> None:
        super().__init__(f"Asset {asset} cannot be used as collateral")
        self.asset = asset


# ---------------------------------------------------------------------------
# Solvency
# ---------------------------------------------------------------------------


class LeverageExceedsMaximum(SolvencyError):
    def __init__(self, desired: int, maximum: int) -> None:
        super().__init__(f"Leverage {desired} exceeds maximum {maximum}")
        self.desired = desired
        self.maximum = maximum


class InsufficientRepaymentCapacity(SolvencyError):
    def __init__(self, available: int, required: int) -> None:
        super().__init__(
            f"Borrow covers {available} collateral units, {required} required"
        )
        self.available = available
        self.required = required


class UnhealthyPosition(SolvencyError):
    def __init__(self, health_factor: int) -> None:
        super().__init__(f"Health factor {health_factor} is not above 1.0")
        self.health_factor = health_factor


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class SwapExecutionFailed(ExecutionError):
    pass


class SlippageExceeded(ExecutionError):
    def __init__(self, received: int, minimum: int) -> None:
        super().__init__(f"Swap returned {received}, minimum is {minimum}")
        self.received = received
        self.minimum = minimum


class BorrowTokenResidueDetected(ExecutionError):
    def __init__(self, token: str, residue: int) -> None:
        super().__init__(f"Swap left {residue} of {token} unspent")
        self.token = token
        self.residue = residue


class InsufficientSwapProceeds(ExecutionError):
    def __init__(self, received: int, required: int) -> None:
        super().__init__(f"Swap proceeds {received} below repayment {required}")
        self.received = received
        self.required = required
