import pytest

from conftest import FakeClock, FakeMarketProvider
from tokenfees.core.errors import ErrorKind, PriceUnavailable
from tokenfees.services.market.price_service import PriceService
from tokenfees.services.market.reference_rate import ReferenceRate


def make_service(provider, clock, rate=15500.0, ttl=300):
    return PriceService(provider, ReferenceRate(rate, clock=clock), ttl_seconds=ttl, clock=clock)


def test_quote_converts_with_reference_rate():
    clock = FakeClock()
    quote = make_service(FakeMarketProvider(prices={"ethereum": 1800.0}), clock).get_price("eth")
    assert quote.token_id == "ethereum"
    assert quote.display_symbol == "ETH"
    assert quote.price_in_quote_currency == 1800.0
    assert quote.price_in_local_currency == pytest.approx(27_900_000)


def test_cached_within_ttl_then_refetched():
    clock = FakeClock()
    provider = FakeMarketProvider(prices={"ethereum": 1800.0})
    svc = make_service(provider, clock)
    svc.get_price("eth")
    clock.advance(299)
    svc.get_price("ETH")
    svc.get_price("ethereum")
    assert provider.price_calls == ["ethereum"]

    provider.prices["ethereum"] = 1900.0
    clock.advance(1)
    assert svc.get_price("eth").price_in_quote_currency == 1900.0
    assert provider.price_calls == ["ethereum", "ethereum"]


def test_local_price_fixed_at_fetch_time():
    clock = FakeClock()
    provider = FakeMarketProvider(prices={"ethereum": 2.0})
    rate = ReferenceRate(15000.0, clock=clock)
    svc = PriceService(provider, rate, ttl_seconds=300, clock=clock)
    assert svc.get_price("eth").price_in_local_currency == 30000.0
    rate.publish(16000.0, source="test")
    assert svc.get_price("eth").price_in_local_currency == 30000.0
    clock.advance(300)
    assert svc.get_price("eth").price_in_local_currency == 32000.0


def test_failures_are_not_cached():
    clock = FakeClock()
    provider = FakeMarketProvider(prices={"ethereum": 1800.0})
    provider.price_error = PriceUnavailable("throttled", ErrorKind.RATE_LIMITED)
    svc = make_service(provider, clock)
    with pytest.raises(PriceUnavailable):
        svc.get_price("eth")
    assert len(svc.cache) == 0

    provider.price_error = None
    assert svc.get_price("eth").price_in_quote_currency == 1800.0
    assert len(provider.price_calls) == 2


def test_quotes_cached_per_symbol_sharing_a_provider_id():
    clock = FakeClock()
    provider = FakeMarketProvider(prices={"bitcoin": 65000.0})
    svc = make_service(provider, clock)
    assert svc.get_price("btc").display_symbol == "BTC"
    assert svc.get_price("wbtc").display_symbol == "WBTC"
    assert svc.get_price("btc").display_symbol == "BTC"
    assert provider.price_calls == ["bitcoin", "bitcoin"]
