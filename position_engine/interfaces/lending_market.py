"""Lending market and market registry protocols."""
from typing import Protocol, Sequence

from ..models import Asset


class LendingMarket(Protocol):
    """Holds borrow balances for one debt asset.

    ``borrow`` and ``repay`` report success with a truthy return value; a
    falsy return or a raised exception both count as failure.
    """

    @property
    def address(self) -> str: ...

    @property
    def debt_asset(self) -> Asset: ...

    def current_borrow_balance(self, account: str) -> int: ...

    def borrow(self, account: str, amount: int) -> bool: ...

    def repay(self, account: str, amount: int) -> bool: ...

    def oracle_price(self) -> int: ...


class MarketRegistry(Protocol):
    """Tracks which markets an account has borrowed from."""

    def markets_of(self, account: str) -> Sequence[LendingMarket]: ...
