"""In-memory lending markets and converters for dry runs and tests."""
from .converter import ConversionError, FixedRateConverter
from .market import InMemoryLendingMarket, InMemoryMarketRegistry

__all__ = [
    "ConversionError",
    "FixedRateConverter",
    "InMemoryLendingMarket",
    "InMemoryMarketRegistry",
]
