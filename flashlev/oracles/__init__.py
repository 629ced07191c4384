"""Price oracle implementations."""
from .pyth import PythPriceOracle
from .static import StaticPriceOracle

__all__ = ["PythPriceOracle", "StaticPriceOracle"]
