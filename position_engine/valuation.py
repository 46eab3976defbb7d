"""Pure fixed-point valuation functions with no I/O and no position state.

All USD values are integers scaled to 1e18. Every division floors:
collateral is never valued above its exact figure, and amounts derived
from a USD budget never exceed it.
"""
from __future__ import annotations

from .errors import ArithmeticUnderflow

WAD = 10**18


def _unsigned(value: int, name: str) -> int:
    if value < 0:
        raise ArithmeticUnderflow(f"{name} must not be negative, got {value}")
    return value


def value_usd(raw_amount: int, decimals: int, price: int) -> int:
    """Convert a raw token amount to USD.

    ``price`` is USD per one whole unit of the asset, 1e18 fixed-point:
        usd = raw_amount * price / 10^decimals
    """
    _unsigned(raw_amount, "raw_amount")
    return raw_amount * price // 10**decimals


def apply_factor(usd: int, factor: int) -> int:
    """Scale a USD value by a 1e18 ratio."""
    return usd * factor // WAD


def effective_collateral_balance(balance: int, cap: int) -> int:
    """Collateral counted for valuation; a cap of 0 means uncapped."""
    _unsigned(balance, "balance")
    if cap == 0:
        return balance
    return min(balance, cap)


def hypothetical_collateral_balance(balance: int, withdraw_amount: int, cap: int) -> int:
    """Effective collateral left after withdrawing ``withdraw_amount``."""
    _unsigned(withdraw_amount, "withdraw_amount")
    if withdraw_amount > balance:
        raise ArithmeticUnderflow(
            f"withdraw amount {withdraw_amount} exceeds collateral balance {balance}"
        )
    return effective_collateral_balance(balance - withdraw_amount, cap)


def collateral_value_usd(
    effective_balance: int,
    decimals: int,
    price: int,
    factor: int,
) -> int:
    """Factor-weighted USD value of an effective collateral balance."""
    return apply_factor(value_usd(effective_balance, decimals, price), factor)


def debt_value_usd(borrow_balance: int, oracle_price: int) -> int:
    """USD value of a market borrow balance.

    Market oracle prices are pre-scaled for the debt asset's decimals
    (1e36 / 10^decimals per whole unit), so a single 1e18 division
    yields 1e18 USD regardless of the asset.
    """
    _unsigned(borrow_balance, "borrow_balance")
    return borrow_balance * oracle_price // WAD


def usd_to_raw(usd: int, oracle_price: int) -> int:
    """Inverse of :func:`debt_value_usd`, flooring to whole raw units."""
    _unsigned(usd, "usd")
    if oracle_price <= 0:
        return 0
    return usd * WAD // oracle_price


def max_liquidatable_collateral(effective_balance: int, close_factor: int) -> int:
    """Most collateral one liquidation call may seize."""
    return close_factor * effective_balance // WAD


def format_usd(usd: int) -> str:
    """Render a 1e18 USD integer as ``$1,234.56`` (truncated to cents)."""
    cents = usd * 100 // WAD
    return f"${cents // 100:,}.{cents % 100:02d}"
