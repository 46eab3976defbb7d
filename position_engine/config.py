"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .valuation import WAD

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MonitorConfig:
    check_interval_minutes: int = 15


@dataclass(frozen=True)
class AssetConfig:
    address: str = ""
    symbol: str = ""
    decimals: int = 18


@dataclass(frozen=True)
class PositionConfig:
    """Position identity, roles and risk parameters.

    Ratios are stored as 1e18 integers; amounts are raw token units.
    """

    address: str = ""
    borrower: str = ""
    executor: str = ""
    governor: str = ""
    collateral: AssetConfig = field(default_factory=AssetConfig)
    collateral_factor: int = 0
    liquidation_factor: int = 0
    close_factor: int = 0
    collateral_cap: int = 0
    collateral_balance: int = 0


@dataclass(frozen=True)
class MarketConfig:
    address: str = ""
    asset: AssetConfig = field(default_factory=AssetConfig)
    usd_price: Decimal = Decimal(1)
    borrow_balance: int = 0
    # Debt-asset whole units per collateral whole unit, 1e18 fixed-point.
    converter_rate: int = 0

    @property
    def oracle_price(self) -> int:
        """USD price pre-scaled for the asset's decimals (1e36 / 10^decimals per unit)."""
        return int(self.usd_price * WAD * WAD) // 10**self.asset.decimals


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    feeds: dict[str, str] = field(default_factory=dict)
    timeout: int = 30


@dataclass(frozen=True)
class PriceSourceConfig:
    provider: str = "static"
    # USD per whole collateral unit, 1e18 fixed-point.
    static_price: int = 0
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class AppConfig:
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    position: PositionConfig = field(default_factory=PositionConfig)
    markets: tuple[MarketConfig, ...] = ()
    price_source: PriceSourceConfig = field(default_factory=PriceSourceConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _decimal(raw: Any, name: str) -> Decimal:
    try:
        return Decimal(str(raw))
    except InvalidOperation:
        raise ValueError(f"'{name}' is not a number: {raw!r}") from None


def _wad(raw: Any, name: str) -> int:
    """Parse a decimal written in YAML (``0.5``, ``"40000.25"``) into 1e18 units."""
    return int(_decimal(raw, name) * WAD)


def _build_monitor(raw: dict[str, Any]) -> MonitorConfig:
    return MonitorConfig(
        check_interval_minutes=int(raw.get("check_interval_minutes", 15)),
    )


def _build_asset(raw: dict[str, Any]) -> AssetConfig:
    return AssetConfig(
        address=str(raw.get("address", "")),
        symbol=str(raw.get("symbol", "")),
        decimals=int(raw.get("decimals", 18)),
    )


def _build_position(raw: dict[str, Any]) -> PositionConfig:
    return PositionConfig(
        address=str(raw.get("address", "")),
        borrower=str(raw.get("borrower", "")),
        executor=str(raw.get("executor", "")),
        governor=str(raw.get("governor", "")),
        collateral=_build_asset(raw.get("collateral", {})),
        collateral_factor=_wad(raw.get("collateral_factor", 0), "collateral_factor"),
        liquidation_factor=_wad(raw.get("liquidation_factor", 0), "liquidation_factor"),
        close_factor=_wad(raw.get("close_factor", 0), "close_factor"),
        collateral_cap=int(raw.get("collateral_cap", 0)),
        collateral_balance=int(raw.get("collateral_balance", 0)),
    )


def _build_markets(raw: list[dict[str, Any]]) -> tuple[MarketConfig, ...]:
    markets: list[MarketConfig] = []
    for m in raw:
        markets.append(
            MarketConfig(
                address=str(m.get("address", "")),
                asset=_build_asset(m.get("asset", {})),
                usd_price=_decimal(m.get("usd_price", 1), "usd_price"),
                borrow_balance=int(m.get("borrow_balance", 0)),
                converter_rate=_wad(m.get("converter_rate", 0), "converter_rate"),
            )
        )
    return tuple(markets)


def _build_price_source(raw: dict[str, Any]) -> PriceSourceConfig:
    pyth_raw = raw.get("pyth", {})
    return PriceSourceConfig(
        provider=raw.get("provider", "static"),
        static_price=_wad(raw.get("static_price", 0), "static_price"),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            feeds=dict(pyth_raw.get("feeds", {})),
            timeout=int(pyth_raw.get("timeout", 30)),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        monitor=_build_monitor(raw.get("monitor", {})),
        position=_build_position(raw.get("position", {})),
        markets=_build_markets(raw.get("markets", [])),
        price_source=_build_price_source(raw.get("price_source", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    pos = cfg.position
    for name in ("address", "borrower", "executor", "governor"):
        if not getattr(pos, name):
            raise ValueError(f"Position has no {name} address")
    if not pos.collateral.address:
        raise ValueError("Position collateral has no address")

    for name in ("collateral_factor", "liquidation_factor", "close_factor"):
        value = getattr(pos, name)
        if not 0 <= value <= WAD:
            raise ValueError(f"'{name}' must be between 0 and 1")
    if pos.liquidation_factor < pos.collateral_factor:
        raise ValueError("'liquidation_factor' must not be below 'collateral_factor'")
    if pos.collateral_cap < 0 or pos.collateral_balance < 0:
        raise ValueError("Collateral cap and balance must not be negative")

    seen: set[str] = set()
    for market in cfg.markets:
        if not market.address:
            raise ValueError(f"Market '{market.asset.symbol}' has no address")
        key = market.address.lower()
        if key in seen:
            raise ValueError(f"Duplicate market address '{market.address}'")
        seen.add(key)

    source = cfg.price_source
    if source.provider not in ("static", "pyth"):
        raise ValueError(f"Unknown price source provider '{source.provider}'")
    if source.provider == "pyth" and pos.collateral.symbol not in source.pyth.feeds:
        raise ValueError(
            f"No Pyth feed configured for collateral '{pos.collateral.symbol}'"
        )
