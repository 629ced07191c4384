"""Fixed-point precisions and protocol constants."""

BASIS_POINTS = 10_000
PRICE_PRECISION = 10**8
LTV_PRECISION = 10_000
LEVERAGE_PRECISION = 10_000

# Borrow 95% of what the pool's LTV would allow.
BORROW_SAFETY_MARGIN = 9_500

# Extra collateral released on unwind to absorb swap slippage (basis points).
UNWIND_SLIPPAGE_BUFFER = 500

# Health factors are reported with 18 decimals.
HEALTH_FACTOR_ONE = 10**18
MAX_UINT256 = 2**256 - 1

VARIABLE_RATE_MODE = 2

ZERO_ADDRESS = "0x" + "0" * 40

DEFAULT_FLASH_LOAN_FEE_BPS = 5
