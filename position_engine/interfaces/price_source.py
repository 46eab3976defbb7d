"""Price source protocol — USD price feed abstraction."""
from typing import Protocol

from ..models import Asset


class PriceSource(Protocol):
    """Supplies the USD price of one whole unit of an asset, 1e18 fixed-point."""

    def get_price(self, asset: Asset) -> int: ...
