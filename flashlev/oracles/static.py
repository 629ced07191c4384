"""Fixed-price oracle for simulations and tests."""
from __future__ import annotations

import logging

from ..errors import InvalidPrice, PriceFeedNotFound

logger = logging.getLogger(__name__)


class StaticPriceOracle:
    """Serves prices (USD at 10^8) registered up front."""

    def __init__(self, address: str, prices: dict[str, int] | None = None) -> None:
        self._address = address
        self._prices: dict[str, int] = {}
        for token, price in (prices or {}).items():
            self.set_price(token, price)

    @property
    def address(self) -> str:
        return self._address

    def set_price(self, token: str, price: int) -> None:
        if price < 0:
            raise InvalidPrice(token)
        self._prices[token] = price
        logger.debug("Price of %s set to %d", token, price)

    def get_price(self, token: str) -> int:
        try:
            return self._prices[token]
        except KeyError:
            raise PriceFeedNotFound(token) from None
