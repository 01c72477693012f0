from __future__ import annotations

"""Concrete market data providers and factories.

'static' returns fixed placeholder prices so the service runs offline and tests
stay deterministic; 'coingecko' and 'coinmarketcap' talk to the public APIs.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from tokenfees.core.config import Settings
from tokenfees.core.errors import ErrorKind, PriceUnavailable
from tokenfees.services.http_client import HttpError, build_url, get_json
from tokenfees.services.tokens import TokenRef
from .base import MarketDataProvider, PricePoint, ReferenceRateProvider, SeriesSample

logger = logging.getLogger("tokenfees.providers")

_STATIC_PRICES_USD: Dict[str, float] = {
    "ethereum": 1800.0,
    "bitcoin": 65000.0,
    "solana": 150.0,
    "tether": 1.0,
    "binancecoin": 580.0,
    "matic-network": 0.7,
    "pepe": 0.00001,
}

STATIC_REFERENCE_RATE = 15500.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def provider_error(err: HttpError, what: str, not_found_statuses=(404,)) -> PriceUnavailable:
    """Map a transport failure onto the PriceUnavailable taxonomy."""
    if err.status in not_found_statuses:
        return PriceUnavailable(f"{what} not found", ErrorKind.NOT_FOUND)
    if err.status == 429:
        return PriceUnavailable(
            f"rate limit exceeded while fetching {what}; retry later",
            ErrorKind.RATE_LIMITED,
        )
    return PriceUnavailable(f"failed to fetch {what}: {err}", ErrorKind.UPSTREAM)


def _positive_float(value: Any, what: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise PriceUnavailable(f"malformed price for {what}", ErrorKind.UPSTREAM) from None
    if number <= 0:
        raise PriceUnavailable(f"non-positive price for {what}", ErrorKind.UPSTREAM)
    return number


class StaticProvider(MarketDataProvider, ReferenceRateProvider):
    name = "static"

    def __init__(self, prices: Optional[Dict[str, float]] = None, reference_rate: float = STATIC_REFERENCE_RATE):
        self._prices = dict(prices if prices is not None else _STATIC_PRICES_USD)
        self._reference_rate = reference_rate

    def fetch_current_price(self, token: TokenRef) -> PricePoint:  # type: ignore[override]
        price = self._prices.get(token.token_id)
        if price is None:
            raise PriceUnavailable(f"Token {token.token_id} not found", ErrorKind.NOT_FOUND)
        return PricePoint(price=price, as_of=_utcnow(), percent_change_24h=0.0)

    def fetch_price_series(self, token: TokenRef, window_days: int) -> List[SeriesSample]:  # type: ignore[override]
        price = self.fetch_current_price(token).price
        end = _utcnow()
        hours = window_days * 24
        return [SeriesSample(end - timedelta(hours=hours - i), price) for i in range(hours + 1)]

    def fetch_reference_rate(self) -> float:  # type: ignore[override]
        return self._reference_rate


class CoinGeckoProvider(MarketDataProvider, ReferenceRateProvider):
    """CoinGecko public API (keyed by provider id, e.g. 'ethereum').

    market_chart granularity is chosen by CoinGecko: ~5 minute samples for a
    1 day window, hourly for 2-90 days.
    """

    name = "coingecko"

    def __init__(self, base_url: str, timeout: float = 10.0):
        self._base_url = base_url
        self._timeout = timeout

    def _get(self, path: str, params: Dict[str, Any], what: str) -> Dict[str, Any]:
        url = build_url(self._base_url, path, params)
        try:
            data = get_json(url, timeout=self._timeout)
        except HttpError as e:
            logger.warning("coingecko request failed: %s", e, extra={"provider": self.name})
            raise provider_error(e, what) from e
        if not isinstance(data, dict):
            raise PriceUnavailable(f"unexpected payload for {what}", ErrorKind.UPSTREAM)
        return data

    def fetch_current_price(self, token: TokenRef) -> PricePoint:  # type: ignore[override]
        data = self._get(
            "simple/price",
            {
                "ids": token.token_id,
                "vs_currencies": "usd",
                "include_24hr_change": "true",
                "include_last_updated_at": "true",
            },
            f"price for {token.token_id}",
        )
        entry = data.get(token.token_id)
        if not entry or "usd" not in entry:
            raise PriceUnavailable(f"Token {token.token_id} not found on CoinGecko", ErrorKind.NOT_FOUND)
        updated = entry.get("last_updated_at")
        as_of = datetime.fromtimestamp(updated, tz=timezone.utc) if updated else _utcnow()
        return PricePoint(
            price=_positive_float(entry["usd"], token.token_id),
            as_of=as_of,
            percent_change_24h=entry.get("usd_24h_change"),
        )

    def fetch_price_series(self, token: TokenRef, window_days: int) -> List[SeriesSample]:  # type: ignore[override]
        data = self._get(
            f"coins/{token.token_id}/market_chart",
            {"vs_currency": "usd", "days": str(window_days)},
            f"price history for {token.token_id}",
        )
        pairs = data.get("prices") or []
        if not isinstance(pairs, list):
            raise PriceUnavailable(f"malformed price history for {token.token_id}", ErrorKind.UPSTREAM)
        samples = []
        for pair in pairs:
            if not isinstance(pair, (list, tuple)) or len(pair) < 2 or not isinstance(pair[0], (int, float)):
                raise PriceUnavailable(f"malformed price history for {token.token_id}", ErrorKind.UPSTREAM)
            price = _positive_float(pair[1], token.token_id)
            samples.append(SeriesSample(datetime.fromtimestamp(pair[0] / 1000, tz=timezone.utc), price))
        return samples

    def fetch_reference_rate(self) -> float:  # type: ignore[override]
        data = self._get("simple/price", {"ids": "tether", "vs_currencies": "idr"}, "USDT/IDR rate")
        return _positive_float((data.get("tether") or {}).get("idr"), "USDT/IDR")


class CoinMarketCapProvider(MarketDataProvider, ReferenceRateProvider):
    """CoinMarketCap pro API (keyed by symbol, e.g. 'ETH').

    Has no free price-history endpoint, so it pairs with the daily-change
    volatility estimator.
    """

    name = "coinmarketcap"

    def __init__(self, base_url: str, api_key: Optional[str], timeout: float = 10.0):
        self._base_url = base_url
        self._api_key = api_key or ""
        self._timeout = timeout
        if not self._api_key:
            logger.warning("COINMARKETCAP_API_KEY is not set; CoinMarketCap calls may fail")

    def _quote(self, symbol: str, convert: str) -> Dict[str, Any]:
        url = build_url(
            self._base_url,
            "cryptocurrency/quotes/latest",
            {"symbol": symbol, "convert": convert},
        )
        try:
            data = get_json(url, headers={"X-CMC_PRO_API_KEY": self._api_key}, timeout=self._timeout)
        except HttpError as e:
            logger.warning("coinmarketcap request failed: %s", e, extra={"provider": self.name})
            # CMC answers 400 for unknown symbols
            raise provider_error(e, f"token {symbol}", not_found_statuses=(400, 404)) from e
        entry = (data.get("data") or {}).get(symbol)
        if isinstance(entry, list):  # v2-style payloads list matches per symbol
            entry = entry[0] if entry else None
        if not entry:
            raise PriceUnavailable(f"Token {symbol} not found on CoinMarketCap", ErrorKind.NOT_FOUND)
        quote = (entry.get("quote") or {}).get(convert)
        if not quote:
            raise PriceUnavailable(f"no {convert} quote for {symbol}", ErrorKind.UPSTREAM)
        return quote

    def fetch_current_price(self, token: TokenRef) -> PricePoint:  # type: ignore[override]
        quote = self._quote(token.symbol, "USD")
        as_of = _utcnow()
        if quote.get("last_updated"):
            try:
                as_of = datetime.fromisoformat(quote["last_updated"].replace("Z", "+00:00"))
            except ValueError:
                logger.debug("unparseable last_updated %r", quote["last_updated"])
        return PricePoint(
            price=_positive_float(quote.get("price"), token.symbol),
            as_of=as_of,
            percent_change_24h=quote.get("percent_change_24h"),
        )

    def fetch_price_series(self, token: TokenRef, window_days: int) -> List[SeriesSample]:  # type: ignore[override]
        raise PriceUnavailable(
            "CoinMarketCap provider does not serve price history; use the daily-change estimator",
            ErrorKind.UPSTREAM,
        )

    def fetch_reference_rate(self) -> float:  # type: ignore[override]
        quote = self._quote("USDT", "IDR")
        return _positive_float(quote.get("price"), "USDT/IDR")


def _make_static(settings: Settings) -> StaticProvider:
    return StaticProvider(reference_rate=settings.default_reference_rate)


def _make_coingecko(settings: Settings) -> CoinGeckoProvider:
    return CoinGeckoProvider(str(settings.coingecko_base_url), timeout=settings.http_timeout_seconds)


def _make_coinmarketcap(settings: Settings) -> CoinMarketCapProvider:
    return CoinMarketCapProvider(
        str(settings.coinmarketcap_base_url),
        settings.coinmarketcap_api_key,
        timeout=settings.http_timeout_seconds,
    )


_PROVIDER_REGISTRY = {
    "static": _make_static,
    "coingecko": _make_coingecko,
    "coinmarketcap": _make_coinmarketcap,
}


def make_market_data_provider(kind: str, settings: Settings) -> MarketDataProvider:
    factory = _PROVIDER_REGISTRY.get(kind)
    if not factory:
        raise ValueError(f"Unknown market data provider kind '{kind}'")
    return factory(settings)


def make_reference_rate_provider(kind: str, settings: Settings) -> ReferenceRateProvider:
    factory = _PROVIDER_REGISTRY.get(kind)
    if not factory:
        raise ValueError(f"Unknown reference rate provider kind '{kind}'")
    return factory(settings)
