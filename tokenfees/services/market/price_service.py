from __future__ import annotations

"""Cached token price quotes.

Wraps a MarketDataProvider with a TtlCache keyed by the resolved TokenRef
(provider id plus display symbol), so BTC and WBTC keep separate quotes even
though both map to the same provider id. A miss or stale entry triggers
exactly one provider call for that caller; provider failures propagate as
PriceUnavailable and nothing is cached. The local currency price is fixed at
fetch time using the reference rate then current.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Union

from tokenfees.services.tokens import TokenRef, resolve_token
from .base import MarketDataProvider
from .cache import Clock, TtlCache, utcnow
from .reference_rate import ReferenceRate


@dataclass(frozen=True)
class TokenQuote:
    token_id: str
    display_symbol: str
    price_in_quote_currency: float
    price_in_local_currency: float
    observed_at: datetime
    percent_change_24h: float | None = None


class PriceService:
    def __init__(
        self,
        provider: MarketDataProvider,
        reference_rate: ReferenceRate,
        ttl_seconds: float = 300,
        clock: Clock = utcnow,
    ):
        self._provider = provider
        self._reference_rate = reference_rate
        self._cache: TtlCache[TokenRef, TokenQuote] = TtlCache(ttl_seconds, name="price_cache", clock=clock)

    @property
    def cache(self) -> TtlCache[TokenRef, TokenQuote]:
        return self._cache

    def _fetch(self, token: TokenRef) -> TokenQuote:
        point = self._provider.fetch_current_price(token)
        return TokenQuote(
            token_id=token.token_id,
            display_symbol=token.symbol,
            price_in_quote_currency=point.price,
            price_in_local_currency=point.price * self._reference_rate.value,
            observed_at=point.as_of,
            percent_change_24h=point.percent_change_24h,
        )

    def get_price(self, token: Union[TokenRef, str]) -> TokenQuote:
        ref = token if isinstance(token, TokenRef) else resolve_token(token)
        return self._cache.get_or_load(ref, lambda: self._fetch(ref))
