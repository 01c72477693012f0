from __future__ import annotations

"""Market data provider abstraction.

Providers are the only components that perform network I/O. Every failure is
surfaced as PriceUnavailable with a kind (NOT_FOUND, RATE_LIMITED, UPSTREAM);
callers above this layer never see transport exceptions.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from tokenfees.services.tokens import TokenRef


@dataclass(frozen=True)
class PricePoint:
    price: float  # quote currency (USD) per unit
    as_of: datetime
    percent_change_24h: Optional[float] = None  # e.g. -3.2 means -3.2%


@dataclass(frozen=True)
class SeriesSample:
    timestamp: datetime
    price: float


class MarketDataProvider(ABC):
    name: str = "abstract"

    @abstractmethod
    def fetch_current_price(self, token: TokenRef) -> PricePoint:
        """Return the latest USD price for token."""
        raise NotImplementedError

    @abstractmethod
    def fetch_price_series(self, token: TokenRef, window_days: int) -> List[SeriesSample]:
        """Return ordered (timestamp, price) samples covering window_days."""
        raise NotImplementedError


class ReferenceRateProvider(ABC):
    name: str = "abstract"

    @abstractmethod
    def fetch_reference_rate(self) -> float:
        """Return local currency (IDR) per 1 unit of quote currency (USD)."""
        raise NotImplementedError
