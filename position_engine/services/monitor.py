"""Position monitoring service."""
from __future__ import annotations

import asyncio
import logging

from ..models import BorrowSnapshot, PositionSnapshot
from ..position import Position
from ..valuation import debt_value_usd, format_usd

logger = logging.getLogger(__name__)

STATUS_HEALTHY = "✅ Healthy"
STATUS_OVER_LIMIT = "⚠️ Over borrow limit"
STATUS_LIQUIDATABLE = "🚨 LIQUIDATABLE"


def take_snapshot(position: Position) -> PositionSnapshot:
    """Read every valuation of ``position`` once, without side effects."""
    borrowings: list[BorrowSnapshot] = []
    for market in position.markets():
        balance = market.current_borrow_balance(position.address)
        converter = position.converter_for(market)
        borrowings.append(
            BorrowSnapshot(
                market=market.address,
                symbol=market.debt_asset.symbol,
                borrow_balance=balance,
                debt_usd=debt_value_usd(balance, market.oracle_price()),
                converter=converter.address if converter is not None else "",
            )
        )

    return PositionSnapshot(
        address=position.address,
        collateral_symbol=position.collateral.symbol,
        collateral_balance=position.collateral_balance,
        effective_collateral_balance=position.effective_collateral_balance(),
        collateral_usd=position.collateral_usd(),
        liquidation_threshold_usd=position.liquidation_threshold_usd(),
        debt_usd=sum(b.debt_usd for b in borrowings),
        max_liquidatable_collateral=position.max_liquidatable_collateral(),
        borrowings=tuple(borrowings),
    )


def get_status(snapshot: PositionSnapshot) -> str:
    if snapshot.is_liquidatable:
        return STATUS_LIQUIDATABLE
    if snapshot.is_over_borrow_limit:
        return STATUS_OVER_LIMIT
    return STATUS_HEALTHY


def build_report(snapshot: PositionSnapshot) -> str:
    """Human-readable multi-line summary of a snapshot."""
    lines = [
        f"📊 Position {snapshot.address}",
        "",
        get_status(snapshot),
        "",
        f"Collateral: {snapshot.collateral_balance} {snapshot.collateral_symbol}"
        f" (counted: {snapshot.effective_collateral_balance})",
        f"Borrow limit: {format_usd(snapshot.collateral_usd)}",
        f"Liquidation threshold: {format_usd(snapshot.liquidation_threshold_usd)}",
        f"Debt: {format_usd(snapshot.debt_usd)}",
    ]
    for b in snapshot.borrowings:
        lines.append(f"  {b.symbol} @ {b.market}: {b.borrow_balance} — {format_usd(b.debt_usd)}")
    if snapshot.is_liquidatable:
        lines.append(
            f"Max seizable per call: {snapshot.max_liquidatable_collateral}"
            f" {snapshot.collateral_symbol}"
        )
    return "\n".join(lines)


class PositionMonitor:
    """Periodically values a position and reports its health."""

    def __init__(self, position: Position, check_interval_minutes: int = 15) -> None:
        self._position = position
        self._check_interval_minutes = check_interval_minutes

    async def _refresh_prices(self) -> None:
        refresh = getattr(self._position.price_source, "refresh", None)
        if refresh is None:
            return
        if not await refresh():
            logger.warning("Price refresh failed; valuing with last known prices")

    async def check(self) -> PositionSnapshot:
        """Refresh prices, value the position and log the result."""
        await self._refresh_prices()
        snapshot = take_snapshot(self._position)

        logger.info(
            "Position — %s · Collateral: %s  Threshold: %s  Debt: %s  Status: %s",
            snapshot.address,
            format_usd(snapshot.collateral_usd),
            format_usd(snapshot.liquidation_threshold_usd),
            format_usd(snapshot.debt_usd),
            get_status(snapshot),
        )
        if snapshot.is_liquidatable:
            logger.warning(
                "Position %s is liquidatable: debt %s exceeds threshold %s",
                snapshot.address,
                format_usd(snapshot.debt_usd),
                format_usd(snapshot.liquidation_threshold_usd),
            )
        return snapshot

    async def run_continuous(self, check_interval_minutes: int | None = None) -> None:
        """Run continuous monitoring loop."""
        interval = check_interval_minutes or self._check_interval_minutes
        logger.info(
            "Starting continuous monitoring (checking every %d minutes)", interval
        )

        while True:
            try:
                await self.check()
                await asyncio.sleep(interval * 60)
            except Exception as e:
                logger.error("Error in monitoring loop: %s", e)
                await asyncio.sleep(60)
