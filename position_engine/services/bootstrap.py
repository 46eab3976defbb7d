"""Wire a position and simulated collaborators from configuration."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..config import AppConfig, AssetConfig
from ..interfaces import PriceSource
from ..models import Asset, RiskParameters
from ..oracles import PythPriceSource, StaticPriceSource
from ..position import Position
from ..roles import RoleGuard
from ..simulation import FixedRateConverter, InMemoryLendingMarket, InMemoryMarketRegistry

logger = logging.getLogger(__name__)


@dataclass
class Deployment:
    """A position together with the collaborators it was built with."""

    position: Position
    registry: InMemoryMarketRegistry
    price_source: PriceSource
    markets: dict[str, InMemoryLendingMarket] = field(default_factory=dict)


def _asset(cfg: AssetConfig) -> Asset:
    return Asset(address=cfg.address, symbol=cfg.symbol, decimals=cfg.decimals)


def _price_source(config: AppConfig, collateral: Asset) -> PriceSource:
    source_cfg = config.price_source
    if source_cfg.provider == "pyth":
        return PythPriceSource(source_cfg.pyth)
    return StaticPriceSource({collateral.address: source_cfg.static_price})


def build_position(config: AppConfig) -> Deployment:
    """Create a position with in-memory markets and converters."""
    pos_cfg = config.position
    collateral = _asset(pos_cfg.collateral)
    registry = InMemoryMarketRegistry()
    price_source = _price_source(config, collateral)

    position = Position(
        address=pos_cfg.address,
        roles=RoleGuard(
            borrower=pos_cfg.borrower,
            executor=pos_cfg.executor,
            governor=pos_cfg.governor,
        ),
        registry=registry,
        collateral=collateral,
        price_source=price_source,
        risk=RiskParameters(
            collateral_factor=pos_cfg.collateral_factor,
            liquidation_factor=pos_cfg.liquidation_factor,
            close_factor=pos_cfg.close_factor,
        ),
        collateral_cap=pos_cfg.collateral_cap,
    )
    if pos_cfg.collateral_balance:
        position.deposit(collateral, pos_cfg.collateral_balance)

    deployment = Deployment(position=position, registry=registry, price_source=price_source)
    routed_markets: list[InMemoryLendingMarket] = []
    converters: list[FixedRateConverter] = []

    for market_cfg in config.markets:
        debt_asset = _asset(market_cfg.asset)
        market = InMemoryLendingMarket(
            market_cfg.address, debt_asset, registry, market_cfg.oracle_price
        )
        if market_cfg.borrow_balance:
            market.set_borrow_balance(position.address, market_cfg.borrow_balance)
        deployment.markets[market.address] = market

        if market_cfg.converter_rate:
            routed_markets.append(market)
            converters.append(
                FixedRateConverter(
                    f"{market.address}:converter",
                    collateral,
                    debt_asset,
                    market_cfg.converter_rate,
                )
            )

    if routed_markets:
        position.set_converter(pos_cfg.executor, routed_markets, converters)

    logger.info(
        "Built position %s with %d market(s), %d converter(s)",
        position.address,
        len(deployment.markets),
        len(converters),
    )
    return deployment
