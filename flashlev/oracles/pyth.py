"""Pyth Network price oracle."""
import logging
import ssl

import aiohttp
import certifi

from ..config import PythConfig
from ..constants import PRICE_PRECISION
from ..errors import PriceFeedNotFound

logger = logging.getLogger(__name__)

_PRICE_EXPO = -8


def to_price_precision(price_raw: int, expo: int) -> int:
    """Rescale a Pyth ``price * 10^expo`` to an integer at 10^8."""
    shift = expo - _PRICE_EXPO
    if shift >= 0:
        return price_raw * 10**shift
    return price_raw // 10**-shift


class PythPriceOracle:
    """Token prices from Pyth Hermes, cached between refreshes.

    ``get_price`` never does I/O: call ``refresh`` to update the cache.
    """

    def __init__(self, address: str, config: PythConfig, feeds: dict[str, str]) -> None:
        self._address = address
        self.hermes_url = config.hermes_url
        self.timeout = config.timeout
        self.price_feeds = dict(feeds)
        self._prices: dict[str, int] = {}

    @property
    def address(self) -> str:
        return self._address

    def get_price(self, token: str) -> int:
        """Last fetched price for ``token`` at 10^8; zero until first refreshed."""
        if token not in self.price_feeds:
            raise PriceFeedNotFound(token)
        return self._prices.get(token, 0)

    async def refresh(self, tokens: list[str] | None = None) -> dict[str, int]:
        """Fetch current prices from Pyth Network.

        Args:
            tokens: Optional list of token addresses to fetch. If None, fetches
                    all configured feeds.
        """
        prices: dict[str, int] = {}

        feeds = self.price_feeds
        if tokens is not None:
            feeds = {k: v for k, v in self.price_feeds.items() if k in tokens}

        feed_ids = sorted(set(feeds.values()))
        if not feed_ids:
            return prices

        query_params = "&".join([f"ids[]={fid}" for fid in feed_ids])
        url = f"{self.hermes_url}?{query_params}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    url, timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status != 200:
                        logger.error(
                            "Error fetching prices from Pyth: HTTP %s", response.status
                        )
                        return prices

                    data = await response.json()

            # Feed ids come back without the 0x prefix
            id_to_tokens: dict[str, list[str]] = {}
            for token, feed_id in feeds.items():
                id_to_tokens.setdefault(feed_id.lower().removeprefix("0x"), []).append(token)

            for item in data.get("parsed", []):
                feed_id = str(item.get("id", "")).lower().removeprefix("0x")
                price_data = item.get("price", {})
                price = to_price_precision(
                    int(price_data.get("price", 0)), int(price_data.get("expo", 0))
                )
                for token in id_to_tokens.get(feed_id, []):
                    prices[token] = price

        except Exception as e:
            logger.error("Error fetching prices from Pyth: %s", e)
            return prices

        self._prices.update(prices)
        logger.info("Fetched prices from Pyth Network:")
        for token, price in sorted(prices.items()):
            logger.info("  %s: $%.4f", token, price / PRICE_PRECISION)

        return prices
