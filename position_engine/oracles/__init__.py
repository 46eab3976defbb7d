"""Price source implementations."""
from .pyth import PriceUnavailable, PythPriceSource
from .static import StaticPriceSource

__all__ = ["PriceUnavailable", "PythPriceSource", "StaticPriceSource"]
