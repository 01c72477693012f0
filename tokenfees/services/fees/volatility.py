from __future__ import annotations

"""Volatility estimation and the cached volatility service.

Two interchangeable estimators produce fractional daily volatility:

    series        percent changes between consecutive samples of a price
                  series, population std dev, annualized with
                  sqrt(365 * n_returns) and rescaled by 1/sqrt(365).
    daily-change  |24h percent change| / 100, scaled by sqrt(window_days)
                  for windows longer than one day.

The series annualization treats the whole window as one day of samples, so
a 7 day hourly series scales by sqrt(168) like a 1 day minute series would.
Published figures depend on this exact formula.
"""
import logging
import math
import statistics
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from tokenfees.core.errors import InvalidArgument, ServiceError, VolatilityUnavailable
from tokenfees.models.constants import DEFAULT_MARKET_TOKENS
from tokenfees.services.market.base import MarketDataProvider
from tokenfees.services.market.cache import Clock, TtlCache, utcnow
from tokenfees.services.market.price_service import PriceService
from tokenfees.services.tokens import TokenRef, resolve_token
from .policy import FeePolicy

logger = logging.getLogger("tokenfees.volatility")

MIN_WINDOW_DAYS = 1
MAX_WINDOW_DAYS = 30
DAYS_PER_YEAR = 365


@dataclass(frozen=True)
class VolatilityEstimate:
    token_id: str
    window_days: int
    window_description: str
    daily_volatility: float
    recommended_spread_fee_fraction: float
    computed_at: datetime
    estimator: str


@dataclass(frozen=True)
class AverageSpreadFee:
    tokens: List[str]
    window_description: str
    average_volatility: float
    recommended_spread_fee_fraction: float
    computed_at: datetime


def describe_window(window_days: int) -> str:
    return f"{window_days} day{'s' if window_days > 1 else ''}"


def validate_window(window_days: Any) -> int:
    if isinstance(window_days, bool) or not isinstance(window_days, int):
        raise InvalidArgument("Days parameter must be an integer between 1 and 30")
    if not MIN_WINDOW_DAYS <= window_days <= MAX_WINDOW_DAYS:
        raise InvalidArgument("Days parameter must be between 1 and 30")
    return window_days


def series_daily_volatility(prices: Sequence[float]) -> float:
    if len(prices) < 2:
        return 0.0
    returns = []
    for prev, cur in zip(prices, prices[1:]):
        if not (prev > 0 and cur > 0) or not math.isfinite(cur):
            raise VolatilityUnavailable("price series contains non-positive or non-finite prices")
        returns.append((cur - prev) / prev)
    sigma = math.sqrt(statistics.pvariance(returns))
    samples_per_day = len(returns)
    annualized = sigma * math.sqrt(DAYS_PER_YEAR * samples_per_day)
    return annualized / math.sqrt(DAYS_PER_YEAR)


def daily_change_volatility(percent_change_24h: Optional[float], window_days: int) -> float:
    if percent_change_24h is None or not math.isfinite(percent_change_24h):
        raise VolatilityUnavailable("provider did not report a 24h percent change")
    daily = abs(percent_change_24h) / 100
    return daily if window_days == 1 else daily * math.sqrt(window_days)


class VolatilityEstimator(ABC):
    name: str = "abstract"

    @abstractmethod
    def observe(self, provider: MarketDataProvider, token: TokenRef, window_days: int) -> Any:
        """Fetch whatever market data this estimator needs."""

    @abstractmethod
    def estimate(self, observation: Any, window_days: int) -> float:
        """Turn an observation into fractional daily volatility."""

    def measure(self, provider: MarketDataProvider, token: TokenRef, window_days: int) -> float:
        return self.estimate(self.observe(provider, token, window_days), window_days)


class SeriesVolatilityEstimator(VolatilityEstimator):
    name = "series"

    def observe(self, provider, token, window_days):
        return provider.fetch_price_series(token, window_days)

    def estimate(self, observation, window_days):
        return series_daily_volatility([sample.price for sample in observation])


class DailyChangeVolatilityEstimator(VolatilityEstimator):
    """Reads the 24h change off the current quote.

    With a PriceService attached the quote comes from the price cache, so a
    volatility miss does not cost a second provider call.
    """

    name = "daily-change"

    def __init__(self, prices: Optional[PriceService] = None):
        self._prices = prices

    def observe(self, provider, token, window_days):
        if self._prices is not None:
            return self._prices.get_price(token).percent_change_24h
        return provider.fetch_current_price(token).percent_change_24h

    def estimate(self, observation, window_days):
        return daily_change_volatility(observation, window_days)


_ESTIMATORS = {
    SeriesVolatilityEstimator.name: lambda prices: SeriesVolatilityEstimator(),
    DailyChangeVolatilityEstimator.name: DailyChangeVolatilityEstimator,
}


def make_volatility_estimator(kind: str, prices: Optional[PriceService] = None) -> VolatilityEstimator:
    factory = _ESTIMATORS.get(kind)
    if not factory:
        raise ValueError(f"Unknown volatility estimator '{kind}'")
    return factory(prices)


class VolatilityService:
    def __init__(
        self,
        provider: MarketDataProvider,
        estimator: VolatilityEstimator,
        policy: FeePolicy,
        ttl_seconds: float = 900,
        clock: Clock = utcnow,
    ):
        self._provider = provider
        self._estimator = estimator
        self._policy = policy
        self._clock = clock
        self._cache: TtlCache[tuple, VolatilityEstimate] = TtlCache(
            ttl_seconds, name="volatility_cache", clock=clock
        )

    @property
    def cache(self) -> TtlCache[tuple, VolatilityEstimate]:
        return self._cache

    @property
    def policy(self) -> FeePolicy:
        return self._policy

    def _compute(self, token: TokenRef, window_days: int) -> VolatilityEstimate:
        daily = self._estimator.measure(self._provider, token, window_days)
        return VolatilityEstimate(
            token_id=token.token_id,
            window_days=window_days,
            window_description=describe_window(window_days),
            daily_volatility=daily,
            recommended_spread_fee_fraction=self._policy.recommended_spread_fee(daily),
            computed_at=self._clock(),
            estimator=self._estimator.name,
        )

    def get_volatility(self, token: Union[TokenRef, str], window_days: int = 1) -> VolatilityEstimate:
        window_days = validate_window(window_days)
        ref = token if isinstance(token, TokenRef) else resolve_token(token)
        return self._cache.get_or_load(
            (ref, window_days), lambda: self._compute(ref, window_days)
        )

    def market_volatility(
        self, tokens: Optional[Iterable[str]] = None, window_days: int = 1
    ) -> Dict[str, VolatilityEstimate]:
        """Estimate several tokens; failures are logged and left out."""
        window_days = validate_window(window_days)
        results: Dict[str, VolatilityEstimate] = {}
        for raw in tokens or DEFAULT_MARKET_TOKENS:
            try:
                results[raw] = self.get_volatility(raw, window_days)
            except ServiceError as e:
                logger.warning("skipping %s: %s", raw, e, extra={"token": raw, "window_days": window_days})
        return results

    def average_spread_fee(self, tokens: Optional[Iterable[str]] = None, window_days: int = 1) -> AverageSpreadFee:
        token_list = list(tokens or DEFAULT_MARKET_TOKENS)
        results = self.market_volatility(token_list, window_days)
        if not results:
            raise VolatilityUnavailable("Failed to calculate volatility for any tokens")
        average = statistics.fmean(r.daily_volatility for r in results.values())
        return AverageSpreadFee(
            tokens=token_list,
            window_description=describe_window(window_days),
            average_volatility=average,
            recommended_spread_fee_fraction=self._policy.recommended_spread_fee(average),
            computed_at=self._clock(),
        )
