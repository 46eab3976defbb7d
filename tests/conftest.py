"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from decimal import Decimal
from pathlib import Path

import pytest

from position_engine.config import (
    AppConfig,
    AssetConfig,
    MarketConfig,
    MonitorConfig,
    PositionConfig,
    PriceSourceConfig,
    PythConfig,
)
from position_engine.models import Asset, RiskParameters
from position_engine.oracles import StaticPriceSource
from position_engine.position import Position
from position_engine.roles import RoleGuard
from position_engine.simulation import (
    FixedRateConverter,
    InMemoryLendingMarket,
    InMemoryMarketRegistry,
)

WAD = 10**18

BORROWER = "0x00000000000000000000000000000000000000c1"
EXECUTOR = "0x00000000000000000000000000000000000000c2"
GOVERNOR = "0x00000000000000000000000000000000000000c3"
STRANGER = "0x00000000000000000000000000000000000000ff"
POSITION = "0x00000000000000000000000000000000000000a1"

WBTC = Asset(address="0x00000000000000000000000000000000000000e1", symbol="WBTC", decimals=8)
USDT = Asset(address="0x00000000000000000000000000000000000000e2", symbol="USDT", decimals=6)
WETH = Asset(address="0x00000000000000000000000000000000000000e3", symbol="WETH", decimals=18)
TOKEN = Asset(address="0x00000000000000000000000000000000000000e4", symbol="TOKEN", decimals=18)

ONE_BTC = 10**8
BTC_PRICE = 40_000 * WAD
# USD per whole USDT pre-scaled for 6 decimals: 1e36 / 1e6.
USDT_ORACLE_PRICE = 10**30
WETH_ORACLE_PRICE = 2_000 * WAD


def usd(amount: str | int) -> int:
    """Whole-dollar (or decimal string) amount as a 1e18 integer."""
    return int(Decimal(str(amount)) * WAD)


# ---------------------------------------------------------------------------
# Collaborator fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def registry() -> InMemoryMarketRegistry:
    return InMemoryMarketRegistry()


@pytest.fixture()
def usdt_market(registry: InMemoryMarketRegistry) -> InMemoryLendingMarket:
    return InMemoryLendingMarket(
        "0x00000000000000000000000000000000000000b1", USDT, registry, USDT_ORACLE_PRICE
    )


@pytest.fixture()
def weth_market(registry: InMemoryMarketRegistry) -> InMemoryLendingMarket:
    return InMemoryLendingMarket(
        "0x00000000000000000000000000000000000000b2", WETH, registry, WETH_ORACLE_PRICE
    )


@pytest.fixture()
def price_source() -> StaticPriceSource:
    return StaticPriceSource({WBTC.address: BTC_PRICE})


@pytest.fixture()
def usdt_converter() -> FixedRateConverter:
    return FixedRateConverter("0x00000000000000000000000000000000000000d1", WBTC, USDT, 40_000 * WAD)


@pytest.fixture()
def weth_converter() -> FixedRateConverter:
    return FixedRateConverter("0x00000000000000000000000000000000000000d2", WBTC, WETH, 20 * WAD)


# ---------------------------------------------------------------------------
# Position fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def roles() -> RoleGuard:
    return RoleGuard(borrower=BORROWER, executor=EXECUTOR, governor=GOVERNOR)


@pytest.fixture()
def risk() -> RiskParameters:
    return RiskParameters(
        collateral_factor=WAD // 2,
        liquidation_factor=WAD * 3 // 4,
        close_factor=WAD // 2,
    )


@pytest.fixture()
def position(
    roles: RoleGuard,
    registry: InMemoryMarketRegistry,
    price_source: StaticPriceSource,
    risk: RiskParameters,
) -> Position:
    """Uncapped position holding 1 WBTC at $40,000."""
    p = Position(
        address=POSITION,
        roles=roles,
        registry=registry,
        collateral=WBTC,
        price_source=price_source,
        risk=risk,
    )
    p.deposit(WBTC, ONE_BTC)
    return p


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_app_config() -> AppConfig:
    return AppConfig(
        monitor=MonitorConfig(check_interval_minutes=5),
        position=PositionConfig(
            address=POSITION,
            borrower=BORROWER,
            executor=EXECUTOR,
            governor=GOVERNOR,
            collateral=AssetConfig(address=WBTC.address, symbol="WBTC", decimals=8),
            collateral_factor=WAD // 2,
            liquidation_factor=WAD * 3 // 4,
            close_factor=WAD // 2,
            collateral_cap=0,
            collateral_balance=ONE_BTC,
        ),
        markets=(
            MarketConfig(
                address="0x00000000000000000000000000000000000000b1",
                asset=AssetConfig(address=USDT.address, symbol="USDT", decimals=6),
                borrow_balance=5_000 * 10**6,
                converter_rate=40_000 * WAD,
            ),
        ),
        price_source=PriceSourceConfig(
            provider="static",
            static_price=BTC_PRICE,
            pyth=PythConfig(feeds={"WBTC": "abc123"}),
        ),
    )


SAMPLE_YAML = textwrap.dedent("""\
    monitor:
      check_interval_minutes: 5
    position:
      address: "0xPOSITION"
      borrower: "0xBORROWER"
      executor: "0xEXECUTOR"
      governor: "0xGOVERNOR"
      collateral: {address: "0xWBTC", symbol: WBTC, decimals: 8}
      collateral_factor: 0.5
      liquidation_factor: 0.75
      close_factor: 0.5
      collateral_cap: 50000000
      collateral_balance: 100000000
    markets:
      - address: "0xMARKET1"
        asset: {address: "0xUSDT", symbol: USDT, decimals: 6}
        usd_price: 1
        borrow_balance: 5000000000
        converter_rate: 40000
      - address: "0xMARKET2"
        asset: {address: "0xWETH", symbol: WETH, decimals: 18}
        usd_price: "2000"
    price_source:
      provider: static
      static_price: "40000"
      pyth:
        hermes_url: "https://hermes.example.com"
        feeds: {WBTC: "bbb"}
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
