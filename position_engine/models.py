"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Asset:
    """A token identified by address, with its native decimal precision."""

    address: str
    symbol: str
    decimals: int

    def __post_init__(self) -> None:
        # Addresses compare case-insensitively.
        object.__setattr__(self, "address", self.address.lower())


@dataclass(frozen=True)
class RiskParameters:
    """Position ratios, each scaled to 1e18 (1e18 == 100%)."""

    collateral_factor: int
    liquidation_factor: int
    close_factor: int


@dataclass(frozen=True)
class Transfer:
    """Tokens paid out of the position."""

    asset: Asset
    recipient: str
    amount: int


@dataclass(frozen=True)
class LiquidationResult:
    """Outcome of a single liquidation call."""

    market: str
    collateral_seized: int
    debt_repaid: int


@dataclass(frozen=True)
class BorrowSnapshot:
    """Debt held in one market."""

    market: str
    symbol: str
    borrow_balance: int
    debt_usd: int
    converter: str = ""


@dataclass(frozen=True)
class PositionSnapshot:
    """Point-in-time valuation of a position (USD values are 1e18 fixed-point)."""

    address: str
    collateral_symbol: str
    collateral_balance: int
    effective_collateral_balance: int
    collateral_usd: int
    liquidation_threshold_usd: int
    debt_usd: int
    max_liquidatable_collateral: int
    borrowings: tuple[BorrowSnapshot, ...] = ()

    @property
    def is_liquidatable(self) -> bool:
        return self.debt_usd > self.liquidation_threshold_usd

    @property
    def is_over_borrow_limit(self) -> bool:
        return self.debt_usd > self.collateral_usd
