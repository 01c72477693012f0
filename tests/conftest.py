from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from tokenfees.core.config import Settings
from tokenfees.core.errors import ErrorKind, PriceUnavailable
from tokenfees.services.container import build_services
from tokenfees.services.market.base import (
    MarketDataProvider,
    PricePoint,
    ReferenceRateProvider,
    SeriesSample,
)
from tokenfees.services.tokens import TokenRef

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FakeMarketProvider(MarketDataProvider):
    """In-memory provider that counts calls and can be told to fail."""

    name = "fake"

    def __init__(
        self,
        prices: Optional[Dict[str, float]] = None,
        series: Optional[Dict[str, List[float]]] = None,
        change_24h: Optional[Dict[str, float]] = None,
    ):
        self.prices = dict(prices or {"ethereum": 1800.0, "solana": 150.0})
        self.series = dict(series or {})
        self.change_24h = dict(change_24h or {})
        self.price_calls: List[str] = []
        self.series_calls: List[tuple] = []
        self.price_error: Optional[Exception] = None
        self.series_error: Optional[Exception] = None

    def fetch_current_price(self, token: TokenRef) -> PricePoint:
        self.price_calls.append(token.token_id)
        if self.price_error is not None:
            raise self.price_error
        if token.token_id not in self.prices:
            raise PriceUnavailable(f"Token {token.token_id} not found", ErrorKind.NOT_FOUND)
        return PricePoint(
            price=self.prices[token.token_id],
            as_of=T0,
            percent_change_24h=self.change_24h.get(token.token_id),
        )

    def fetch_price_series(self, token: TokenRef, window_days: int) -> List[SeriesSample]:
        self.series_calls.append((token.token_id, window_days))
        if self.series_error is not None:
            raise self.series_error
        if token.token_id not in self.series:
            raise PriceUnavailable(f"Token {token.token_id} not found", ErrorKind.NOT_FOUND)
        return [SeriesSample(T0 + timedelta(minutes=5 * i), p) for i, p in enumerate(self.series[token.token_id])]


class FakeRateProvider(ReferenceRateProvider):
    name = "fake-rate"

    def __init__(self, rate: float = 16000.0):
        self.rate = rate
        self.calls = 0
        self.error: Optional[Exception] = None

    def fetch_reference_rate(self) -> float:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.rate


def make_settings(**overrides) -> Settings:
    values = dict(
        market_data_provider="static",
        reference_rate_provider="static",
        reference_rate_enabled=False,
        default_reference_rate=15500.0,
    )
    values.update(overrides)
    settings = Settings(_env_file=None, **values)
    settings.init_post_load()
    return settings


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def provider() -> FakeMarketProvider:
    return FakeMarketProvider(series={"ethereum": [1800.0] * 10, "solana": [150.0] * 10})


@pytest.fixture
def rate_provider() -> FakeRateProvider:
    return FakeRateProvider()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def services(settings, provider, rate_provider, clock):
    return build_services(settings, market_provider=provider, rate_provider=rate_provider, clock=clock)
