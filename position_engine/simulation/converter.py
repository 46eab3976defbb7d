"""Fixed-rate converter between two assets."""
from __future__ import annotations

from ..models import Asset
from ..valuation import WAD


class ConversionError(Exception):
    """Exchange would breach the caller's slippage bound."""


class FixedRateConverter:
    """Exchange ``source`` for ``destination`` at a constant rate.

    ``rate`` is destination whole units per source whole unit, 1e18
    fixed-point. Both quote directions floor.
    """

    def __init__(
        self, address: str, source: Asset, destination: Asset, rate: int = 0
    ) -> None:
        self._address = address.lower()
        self._source = source
        self._destination = destination
        self.rate = rate

    @property
    def address(self) -> str:
        return self._address

    @property
    def source(self) -> Asset:
        return self._source

    @property
    def destination(self) -> Asset:
        return self._destination

    def quote_exact_in(self, amount_in: int) -> int:
        return (
            amount_in * self.rate * 10**self._destination.decimals
            // (10**self._source.decimals * WAD)
        )

    def quote_exact_out(self, amount_out: int) -> int:
        if self.rate == 0:
            raise ConversionError("converter has no rate")
        return (
            amount_out * 10**self._source.decimals * WAD
            // (self.rate * 10**self._destination.decimals)
        )

    def exchange_exact_in(self, amount_in: int, min_amount_out: int) -> int:
        amount_out = self.quote_exact_in(amount_in)
        if amount_out < min_amount_out:
            raise ConversionError(
                f"insufficient output: {amount_out} < minimum {min_amount_out}"
            )
        return amount_out

    def exchange_exact_out(self, amount_out: int, max_amount_in: int) -> int:
        amount_in = self.quote_exact_out(amount_out)
        if amount_in > max_amount_in:
            raise ConversionError(
                f"excessive input: {amount_in} > maximum {max_amount_in}"
            )
        return amount_in
