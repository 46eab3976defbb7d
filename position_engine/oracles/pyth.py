"""Pyth Network price source."""
from __future__ import annotations

import logging
import ssl

import aiohttp
import certifi

from ..config import PythConfig
from ..models import Asset
from ..valuation import WAD

logger = logging.getLogger(__name__)


class PriceUnavailable(LookupError):
    """No price has been fetched for the asset yet."""


def to_wad(price: int, expo: int) -> int:
    """Convert a Pyth ``price * 10^expo`` pair to an exact 1e18 integer."""
    shift = 18 + expo
    if shift >= 0:
        return price * 10**shift
    return price // 10**-shift


class PythPriceSource:
    """Serve the last prices fetched from the Pyth Hermes API.

    ``get_price`` never touches the network; call ``refresh`` to pull new
    prices. A failed refresh keeps the previous prices.
    """

    def __init__(self, config: PythConfig) -> None:
        self.hermes_url = config.hermes_url
        self.price_feeds = dict(config.feeds)
        self.timeout = config.timeout
        self._prices: dict[str, int] = {}

    def get_price(self, asset: Asset) -> int:
        try:
            return self._prices[asset.symbol]
        except KeyError:
            raise PriceUnavailable(f"No Pyth price fetched for {asset.symbol}") from None

    async def refresh(self) -> bool:
        """Fetch current prices for every configured feed.

        Returns True when the response was parsed, False on HTTP or network
        errors (which are logged).
        """
        feed_ids = list(set(self.price_feeds.values()))
        if not feed_ids:
            return False

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
                        return False

                    data = await response.json()
        except Exception as e:
            logger.error("Error fetching prices from Pyth: %s", e)
            return False

        id_to_symbols: dict[str, list[str]] = {}
        for symbol, feed_id in self.price_feeds.items():
            id_to_symbols.setdefault(feed_id.lower().removeprefix("0x"), []).append(symbol)

        for item in data.get("parsed", []):
            feed_id = str(item.get("id", "")).lower().removeprefix("0x")
            price_data = item.get("price", {})
            price = to_wad(int(price_data.get("price", 0)), int(price_data.get("expo", 0)))
            for symbol in id_to_symbols.get(feed_id, []):
                self._prices[symbol] = price

        logger.info("Fetched prices from Pyth Network:")
        for symbol, price in sorted(self._prices.items()):
            logger.info("  %s: $%.4f", symbol, price / WAD)
        return True
