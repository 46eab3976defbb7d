"""In-memory price source with manually set prices."""
from __future__ import annotations

from ..models import Asset


class StaticPriceSource:
    """Serve fixed USD prices (1e18 per whole unit), keyed by asset address."""

    def __init__(self, prices: dict[str, int] | None = None) -> None:
        self._prices = {k.lower(): v for k, v in (prices or {}).items()}

    def set_price(self, asset: Asset, price: int) -> None:
        self._prices[asset.address] = price

    def get_price(self, asset: Asset) -> int:
        try:
            return self._prices[asset.address]
        except KeyError:
            raise LookupError(f"No price configured for {asset.symbol}") from None
