"""Collaborator protocols consumed by the position engine."""
from .converter import Converter
from .lending_market import LendingMarket, MarketRegistry
from .price_source import PriceSource

__all__ = ["Converter", "LendingMarket", "MarketRegistry", "PriceSource"]
