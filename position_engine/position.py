"""Collateralized debt position state and operations."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Sequence

from . import valuation
from .errors import (
    ArithmeticUnderflow,
    BorrowFailed,
    DestinationMismatch,
    EmptyConverter,
    LengthMismatch,
    LiquidateTooMuch,
    NotLiquidatable,
    RepayFailed,
    SeizeCollateralDenied,
    SourceMismatch,
    TooMuchCollateralNeeded,
    Undercollateralized,
)
from .interfaces import Converter, LendingMarket, MarketRegistry, PriceSource
from .models import Asset, LiquidationResult, RiskParameters, Transfer
from .roles import Role, RoleGuard

logger = logging.getLogger(__name__)


class Position:
    """One borrower's collateral backing debt across several lending markets.

    Operations are synchronous and all-or-nothing: a rejected call leaves
    local state untouched. Calls against one position must be serialized by
    the caller.
    """

    def __init__(
        self,
        address: str,
        roles: RoleGuard,
        registry: MarketRegistry,
        collateral: Asset,
        price_source: PriceSource,
        risk: RiskParameters,
        collateral_cap: int = 0,
    ) -> None:
        self._address = address.lower()
        self._roles = roles
        self._registry = registry
        self._collateral = collateral
        self._price_source = price_source
        self._risk = risk
        self._collateral_cap = collateral_cap
        self._holdings: dict[str, int] = {}
        self._converters: dict[str, Converter] = {}

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def address(self) -> str:
        return self._address

    @property
    def roles(self) -> RoleGuard:
        return self._roles

    @property
    def collateral(self) -> Asset:
        return self._collateral

    @property
    def risk(self) -> RiskParameters:
        return self._risk

    @property
    def price_source(self) -> PriceSource:
        return self._price_source

    @property
    def collateral_cap(self) -> int:
        return self._collateral_cap

    @property
    def collateral_balance(self) -> int:
        return self.balance_of(self._collateral)

    @property
    def converters(self) -> dict[str, Converter]:
        return dict(self._converters)

    def converter_for(self, market: LendingMarket | str) -> Converter | None:
        key = market if isinstance(market, str) else market.address
        return self._converters.get(key.lower())

    def balance_of(self, asset: Asset) -> int:
        return self._holdings.get(asset.address, 0)

    def markets(self) -> Sequence[LendingMarket]:
        return self._registry.markets_of(self._address)

    # ------------------------------------------------------------------
    # Valuation
    # ------------------------------------------------------------------

    def _collateral_price(self) -> int:
        return self._price_source.get_price(self._collateral)

    def effective_collateral_balance(self) -> int:
        return valuation.effective_collateral_balance(
            self.collateral_balance, self._collateral_cap
        )

    def collateral_usd(self) -> int:
        """Borrowing power: capped collateral value times the collateral factor."""
        return valuation.collateral_value_usd(
            self.effective_collateral_balance(),
            self._collateral.decimals,
            self._collateral_price(),
            self._risk.collateral_factor,
        )

    def liquidation_threshold_usd(self) -> int:
        """Debt level above which the position may be liquidated."""
        return valuation.collateral_value_usd(
            self.effective_collateral_balance(),
            self._collateral.decimals,
            self._collateral_price(),
            self._risk.liquidation_factor,
        )

    def hypothetical_collateral_usd(self, withdraw_amount: int) -> int:
        """Borrowing power left after withdrawing ``withdraw_amount``."""
        remaining = valuation.hypothetical_collateral_balance(
            self.collateral_balance, withdraw_amount, self._collateral_cap
        )
        return valuation.collateral_value_usd(
            remaining,
            self._collateral.decimals,
            self._collateral_price(),
            self._risk.collateral_factor,
        )

    def debt_usd(self) -> int:
        return sum(
            valuation.debt_value_usd(
                market.current_borrow_balance(self._address), market.oracle_price()
            )
            for market in self.markets()
        )

    def hypothetical_debt_usd(self, market: LendingMarket, borrow_amount: int) -> int:
        """Total debt if ``borrow_amount`` more were borrowed from ``market``."""
        if borrow_amount < 0:
            raise ArithmeticUnderflow(f"borrow amount must not be negative, got {borrow_amount}")

        total = 0
        counted = False
        for entered in self.markets():
            balance = entered.current_borrow_balance(self._address)
            if entered.address == market.address:
                balance += borrow_amount
                counted = True
            total += valuation.debt_value_usd(balance, entered.oracle_price())

        if not counted:
            balance = market.current_borrow_balance(self._address) + borrow_amount
            total += valuation.debt_value_usd(balance, market.oracle_price())
        return total

    def is_liquidatable(self) -> bool:
        return self.debt_usd() > self.liquidation_threshold_usd()

    def max_liquidatable_collateral(self) -> int:
        return valuation.max_liquidatable_collateral(
            self.effective_collateral_balance(), self._risk.close_factor
        )

    # ------------------------------------------------------------------
    # Holdings
    # ------------------------------------------------------------------

    def deposit(self, asset: Asset, amount: int) -> None:
        """Record ``amount`` of ``asset`` arriving at the position."""
        if amount < 0:
            raise ArithmeticUnderflow(f"deposit amount must not be negative, got {amount}")
        self._holdings[asset.address] = self.balance_of(asset) + amount
        logger.info("Deposited %d %s into %s", amount, asset.symbol, self._address)

    def _debit(self, asset: Asset, amount: int) -> None:
        held = self.balance_of(asset)
        if amount < 0 or amount > held:
            raise ArithmeticUnderflow(
                f"cannot take {amount} {asset.symbol}, position holds {held}"
            )
        self._holdings[asset.address] = held - amount

    @contextmanager
    def _restore_on_failure(self) -> Iterator[None]:
        """Undo local balance changes if a collaborator call raises."""
        saved = dict(self._holdings)
        try:
            yield
        except BaseException:
            self._holdings = saved
            raise

    # ------------------------------------------------------------------
    # Borrower operations
    # ------------------------------------------------------------------

    def borrow(self, caller: str, market: LendingMarket, amount: int) -> None:
        self._roles.require(Role.BORROWER, caller)
        self._borrow(market, amount)

    def borrow_max(self, caller: str, market: LendingMarket) -> int:
        """Borrow everything the collateral allows from ``market``.

        Returns the raw amount borrowed. Flooring means the resulting debt
        may fall short of the borrow limit by up to one price quantum.
        """
        self._roles.require(Role.BORROWER, caller)
        collateral_usd = self.collateral_usd()
        debt_usd = self.debt_usd()
        if debt_usd > collateral_usd:
            raise Undercollateralized("undercollateralized")

        amount = valuation.usd_to_raw(collateral_usd - debt_usd, market.oracle_price())
        self._borrow(market, amount)
        return amount

    def _borrow(self, market: LendingMarket, amount: int) -> None:
        if self.hypothetical_debt_usd(market, amount) > self.collateral_usd():
            raise Undercollateralized("undercollateralized")

        try:
            ok = market.borrow(self._address, amount)
        except Exception as e:
            logger.warning("Borrow from %s raised: %s", market.address, e)
            ok = False
        if not ok:
            raise BorrowFailed("borrow failed")

        logger.info(
            "Borrowed %d %s from %s", amount, market.debt_asset.symbol, market.address
        )

    def repay(self, caller: str, market: LendingMarket, amount: int) -> None:
        self._roles.require(Role.BORROWER, caller)
        self._repay(market, amount)

    def repay_full(self, caller: str, market: LendingMarket) -> int:
        """Repay the whole borrow balance in ``market``; returns the amount repaid."""
        self._roles.require(Role.BORROWER, caller)
        amount = market.current_borrow_balance(self._address)
        self._repay(market, amount)
        return amount

    def _repay(self, market: LendingMarket, amount: int) -> None:
        if amount < 0:
            raise ArithmeticUnderflow(f"repay amount must not be negative, got {amount}")

        try:
            ok = market.repay(self._address, amount)
        except Exception as e:
            logger.warning("Repay to %s raised: %s", market.address, e)
            ok = False
        if not ok:
            raise RepayFailed("repay failed")

        logger.info("Repaid %d %s to %s", amount, market.debt_asset.symbol, market.address)

    def withdraw(self, caller: str, amount: int) -> Transfer:
        """Send ``amount`` of collateral back to the borrower."""
        self._roles.require(Role.BORROWER, caller)
        if self.hypothetical_collateral_usd(amount) < self.debt_usd():
            raise Undercollateralized("undercollateralized")

        self._debit(self._collateral, amount)
        logger.info("Withdrew %d %s to borrower", amount, self._collateral.symbol)
        return Transfer(self._collateral, self._roles.borrower, amount)

    # ------------------------------------------------------------------
    # Executor operations
    # ------------------------------------------------------------------

    def seize(self, caller: str, asset: Asset, amount: int | None = None) -> Transfer:
        """Sweep a non-collateral token to the executor.

        Without ``amount`` the whole holding is taken.
        """
        self._roles.require(Role.EXECUTOR, caller)
        if asset.address == self._collateral.address:
            raise SeizeCollateralDenied("seize collateral not allow")

        if amount is None:
            amount = self.balance_of(asset)
        self._debit(asset, amount)
        logger.info("Seized %d %s to executor", amount, asset.symbol)
        return Transfer(asset, self._roles.executor, amount)

    def set_converter(
        self,
        caller: str,
        markets: Sequence[LendingMarket],
        converters: Sequence[Converter | None],
    ) -> None:
        """Register converters per market; every pair is validated before any is stored."""
        self._roles.require(Role.EXECUTOR, caller)
        if len(markets) != len(converters):
            raise LengthMismatch("length mismatch")

        staged: dict[str, Converter] = {}
        for market, converter in zip(markets, converters):
            if converter is None:
                raise EmptyConverter("empty converter")
            if converter.source != self._collateral:
                raise SourceMismatch("mismatch source token")
            if converter.destination != market.debt_asset:
                raise DestinationMismatch("mismatch destination token")
            staged[market.address.lower()] = converter

        self._converters.update(staged)
        for market_address, converter in staged.items():
            logger.info("Converter for %s set to %s", market_address, converter.address)

    def liquidate_with_exact_collateral_amount(
        self,
        caller: str,
        market: LendingMarket,
        collateral_amount: int,
        min_repay_amount: int,
    ) -> LiquidationResult:
        """Sell exactly ``collateral_amount`` and repay whatever it fetches."""
        converter = self._check_liquidation(caller, market)
        if collateral_amount > self.max_liquidatable_collateral():
            raise LiquidateTooMuch("liquidate too much")

        with self._restore_on_failure():
            self._debit(self._collateral, collateral_amount)
            repay_amount = converter.exchange_exact_in(collateral_amount, min_repay_amount)
            self._repay(market, repay_amount)

        return self._liquidated(market, collateral_amount, repay_amount)

    def liquidate_for_exact_repay_amount(
        self,
        caller: str,
        market: LendingMarket,
        repay_amount: int,
        max_collateral_amount: int,
    ) -> LiquidationResult:
        """Sell as much collateral as needed to repay exactly ``repay_amount``."""
        converter = self._check_liquidation(caller, market)
        collateral_needed = converter.quote_exact_out(repay_amount)
        if collateral_needed > max_collateral_amount:
            raise TooMuchCollateralNeeded("too much collateral needed")
        if collateral_needed > self.max_liquidatable_collateral():
            raise LiquidateTooMuch("liquidate too much")

        with self._restore_on_failure():
            # Hold back the full quote; the unused part is credited back below.
            self._debit(self._collateral, collateral_needed)
            collateral_used = converter.exchange_exact_out(repay_amount, collateral_needed)
            if collateral_used > collateral_needed:
                raise ArithmeticUnderflow(
                    f"converter used {collateral_used}, more than the quoted {collateral_needed}"
                )
            self._holdings[self._collateral.address] += collateral_needed - collateral_used
            self._repay(market, repay_amount)

        return self._liquidated(market, collateral_used, repay_amount)

    def _check_liquidation(self, caller: str, market: LendingMarket) -> Converter:
        self._roles.require(Role.EXECUTOR, caller)
        if not self.is_liquidatable():
            raise NotLiquidatable("not liquidatable")

        converter = self.converter_for(market)
        if converter is None:
            raise EmptyConverter("empty converter")
        return converter

    def _liquidated(
        self, market: LendingMarket, collateral_amount: int, repay_amount: int
    ) -> LiquidationResult:
        logger.info(
            "Liquidated %d %s for %d %s in %s",
            collateral_amount,
            self._collateral.symbol,
            repay_amount,
            market.debt_asset.symbol,
            market.address,
        )
        return LiquidationResult(market.address, collateral_amount, repay_amount)

    # ------------------------------------------------------------------
    # Governor operations
    # ------------------------------------------------------------------

    def set_price_source(self, caller: str, price_source: PriceSource) -> None:
        self._roles.require(Role.GOVERNOR, caller)
        self._price_source = price_source
        logger.info("Price source for %s updated", self._collateral.symbol)

    def set_collateral_cap(self, caller: str, cap: int) -> None:
        self._roles.require(Role.GOVERNOR, caller)
        if cap < 0:
            raise ArithmeticUnderflow(f"collateral cap must not be negative, got {cap}")
        self._collateral_cap = cap
        logger.info("Collateral cap set to %d", cap)
