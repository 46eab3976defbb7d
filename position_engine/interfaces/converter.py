"""Converter protocol — collateral to debt-asset exchange venue."""
from typing import Protocol

from ..models import Asset


class Converter(Protocol):
    """Quotes and executes exchanges from ``source`` into ``destination``.

    Exchange calls enforce their own slippage bounds and raise on breach.
    """

    @property
    def address(self) -> str: ...

    @property
    def source(self) -> Asset: ...

    @property
    def destination(self) -> Asset: ...

    def quote_exact_in(self, amount_in: int) -> int: ...

    def quote_exact_out(self, amount_out: int) -> int: ...

    def exchange_exact_in(self, amount_in: int, min_amount_out: int) -> int: ...

    def exchange_exact_out(self, amount_out: int, max_amount_in: int) -> int: ...
