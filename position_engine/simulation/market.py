"""In-memory lending market and market registry."""
from __future__ import annotations

import logging

from ..models import Asset

logger = logging.getLogger(__name__)


class InMemoryMarketRegistry:
    """Remembers which markets each account has entered, in entry order."""

    def __init__(self) -> None:
        self._entered: dict[str, list[InMemoryLendingMarket]] = {}

    def enter(self, account: str, market: InMemoryLendingMarket) -> None:
        markets = self._entered.setdefault(account.lower(), [])
        if market not in markets:
            markets.append(market)

    def markets_of(self, account: str) -> list[InMemoryLendingMarket]:
        return list(self._entered.get(account.lower(), []))


class InMemoryLendingMarket:
    """Borrow balances for one debt asset, priced by a settable oracle price.

    ``oracle_price`` follows the market-oracle convention: USD per whole
    unit scaled by 1e36 / 10^decimals, so ``balance * price / 1e18`` is USD
    in 1e18 fixed-point.
    """

    def __init__(
        self,
        address: str,
        debt_asset: Asset,
        registry: InMemoryMarketRegistry,
        oracle_price: int = 0,
    ) -> None:
        self._address = address.lower()
        self._debt_asset = debt_asset
        self._registry = registry
        self._oracle_price = oracle_price
        self._balances: dict[str, int] = {}
        self.borrow_failed = False
        self.repay_failed = False

    @property
    def address(self) -> str:
        return self._address

    @property
    def debt_asset(self) -> Asset:
        return self._debt_asset

    def oracle_price(self) -> int:
        return self._oracle_price

    def set_oracle_price(self, price: int) -> None:
        self._oracle_price = price

    def current_borrow_balance(self, account: str) -> int:
        return self._balances.get(account.lower(), 0)

    def set_borrow_balance(self, account: str, amount: int) -> None:
        self._balances[account.lower()] = amount
        self._registry.enter(account, self)

    def borrow(self, account: str, amount: int) -> bool:
        if self.borrow_failed:
            return False
        key = account.lower()
        self._balances[key] = self._balances.get(key, 0) + amount
        self._registry.enter(account, self)
        logger.debug("%s borrowed %d from %s", key, amount, self._address)
        return True

    def repay(self, account: str, amount: int) -> bool:
        key = account.lower()
        balance = self._balances.get(key, 0)
        if self.repay_failed or amount > balance:
            return False
        self._balances[key] = balance - amount
        logger.debug("%s repaid %d to %s", key, amount, self._address)
        return True
