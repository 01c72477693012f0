from __future__ import annotations

"""Explicit wiring of the pricing engine components.

Everything stateful (caches, the reference rate) hangs off one Services
instance built per application, so tests can construct a fresh one with fake
providers instead of sharing process globals.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from tokenfees.core.config import Settings
from tokenfees.services.fees.conversion import ConversionEngine
from tokenfees.services.fees.policy import FeePolicy
from tokenfees.services.fees.volatility import VolatilityService, make_volatility_estimator
from tokenfees.services.market.base import MarketDataProvider, ReferenceRateProvider
from tokenfees.services.market.cache import Clock, utcnow
from tokenfees.services.market.price_service import PriceService
from tokenfees.services.market.providers import (
    make_market_data_provider,
    make_reference_rate_provider,
)
from tokenfees.services.market.reference_rate import ReferenceRate, ReferenceRateRefresher


@dataclass
class Services:
    settings: Settings
    policy: FeePolicy
    reference_rate: ReferenceRate
    refresher: ReferenceRateRefresher
    prices: PriceService
    volatility: VolatilityService
    conversion: ConversionEngine

    def start(self) -> None:
        if self.settings.reference_rate_enabled:
            self.refresher.start()

    def stop(self) -> None:
        self.refresher.stop()


def build_fee_policy(settings: Settings) -> FeePolicy:
    base, weight, cap = settings.fee_policy_params()
    return FeePolicy(
        base_fee=base,
        volatility_weight=weight,
        max_fee=cap,
        admin_fee=settings.admin_fee_fraction,
        default_spread_fee=settings.default_spread_fee_fraction,
    )


def build_services(
    settings: Settings,
    market_provider: Optional[MarketDataProvider] = None,
    rate_provider: Optional[ReferenceRateProvider] = None,
    clock: Clock = utcnow,
) -> Services:
    market_provider = market_provider or make_market_data_provider(settings.market_data_provider, settings)
    rate_provider = rate_provider or make_reference_rate_provider(settings.reference_rate_provider, settings)
    policy = build_fee_policy(settings)
    reference_rate = ReferenceRate(settings.default_reference_rate, clock=clock)
    prices = PriceService(
        market_provider, reference_rate, ttl_seconds=settings.price_cache_ttl_seconds, clock=clock
    )
    volatility = VolatilityService(
        market_provider,
        make_volatility_estimator(settings.volatility_estimator, prices=prices),
        policy,
        ttl_seconds=settings.volatility_cache_ttl_seconds,
        clock=clock,
    )
    return Services(
        settings=settings,
        policy=policy,
        reference_rate=reference_rate,
        refresher=ReferenceRateRefresher(
            rate_provider, reference_rate, interval_seconds=settings.reference_rate_refresh_seconds
        ),
        prices=prices,
        volatility=volatility,
        conversion=ConversionEngine(prices, volatility, policy, direction=settings.fee_direction, clock=clock),
    )


# FastAPI dependency helper
def get_services(request: Request) -> Services:
    return request.app.state.services
