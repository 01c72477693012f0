import math

import pytest

from conftest import FakeClock, FakeMarketProvider, make_settings
from tokenfees.core.errors import ErrorKind, InvalidArgument, PriceUnavailable
from tokenfees.services.container import build_services
from tokenfees.services.fees.conversion import (
    SPREAD_FROM_DEFAULT,
    SPREAD_FROM_OVERRIDE,
    SPREAD_FROM_VOLATILITY,
)


def engine_for(provider, **settings):
    services = build_services(make_settings(**settings), market_provider=provider, clock=FakeClock())
    return services.conversion


def test_eth_fee_scenario():
    provider = FakeMarketProvider(prices={"ethereum": 1800.0})
    fees = engine_for(provider).calculate_fees("eth", 1.0, 0.002)
    assert fees.token_id == "ethereum"
    assert fees.display_symbol == "ETH"
    assert fees.admin_fee_amount == pytest.approx(0.005)
    assert fees.spread_fee_amount == pytest.approx(0.002)
    assert fees.total_fee_amount == pytest.approx(0.007)
    assert fees.total_fee_fraction == pytest.approx(0.007)
    assert fees.amount_before_fees == 1.0
    assert fees.amount_after_fees == pytest.approx(0.993)
    assert fees.effective_rate == pytest.approx(27_900_000)
    assert fees.price_in_quote_currency == 1800.0
    assert fees.spread_fee_source == SPREAD_FROM_OVERRIDE
    assert fees.fee_direction == "deduct"


def test_target_amount():
    provider = FakeMarketProvider(prices={"ethereum": 1800.0})
    result = engine_for(provider).calculate_target_amount("eth", 1.0, 0.002)
    assert result.target_amount == pytest.approx(0.993 * 27_900_000)
    assert result.source_amount == 1.0


@pytest.mark.parametrize("amount", [0.0001, 0.5, 1.0, 3.25, 1234.5678])
@pytest.mark.parametrize("direction", ["deduct", "add"])
def test_round_trip_with_pinned_fee(amount, direction):
    provider = FakeMarketProvider(prices={"ethereum": 1800.0})
    engine = engine_for(provider, fee_direction=direction)
    forward = engine.calculate_target_amount("eth", amount, 0.0035)
    inverse = engine.calculate_source_amount("eth", forward.target_amount, 0.0035)
    assert inverse.source_amount == pytest.approx(amount, rel=1e-12)


def test_source_breakdown_describes_derived_amount():
    provider = FakeMarketProvider(prices={"ethereum": 1800.0})
    result = engine_for(provider).calculate_source_amount("eth", 1_000_000, 0.002)
    fees = result.fees
    assert fees.amount_before_fees == result.source_amount
    assert fees.spread_fee_fraction == 0.002
    assert fees.amount_after_fees * fees.effective_rate == pytest.approx(1_000_000)
    assert result.target_amount == 1_000_000


def test_add_direction_charges_on_top():
    provider = FakeMarketProvider(prices={"ethereum": 1800.0})
    fees = engine_for(provider, fee_direction="add").calculate_fees("eth", 1.0, 0.002)
    assert fees.amount_after_fees == pytest.approx(1.007)
    assert fees.fee_direction == "add"


@pytest.mark.parametrize("amount", [0, -1, -0.5, float("nan"), float("inf")])
def test_non_positive_amount_fails_before_provider_call(amount):
    provider = FakeMarketProvider()
    engine = engine_for(provider)
    with pytest.raises(InvalidArgument):
        engine.calculate_fees("eth", amount)
    with pytest.raises(InvalidArgument):
        engine.calculate_target_amount("eth", amount)
    with pytest.raises(InvalidArgument):
        engine.calculate_source_amount("eth", amount)
    assert provider.price_calls == []
    assert provider.series_calls == []


def test_negative_override_rejected():
    with pytest.raises(InvalidArgument):
        engine_for(FakeMarketProvider()).calculate_fees("eth", 1.0, -0.01)


def test_total_fee_of_100_percent_rejected_when_deducting():
    with pytest.raises(InvalidArgument):
        engine_for(FakeMarketProvider()).calculate_source_amount("eth", 1000.0, 0.999)


def test_spread_from_volatility_when_no_override():
    provider = FakeMarketProvider(prices={"ethereum": 1800.0}, series={"ethereum": [100.0, 110.0, 99.0]})
    fees = engine_for(provider).calculate_fees("eth", 2.0)
    expected_spread = min(0.002 + 0.1 * math.sqrt(2) * 0.5, 0.02)
    assert fees.spread_fee_fraction == pytest.approx(expected_spread)
    assert fees.spread_fee_source == SPREAD_FROM_VOLATILITY
    assert provider.series_calls == [("ethereum", 1)]


def test_volatility_failure_falls_back_to_default_spread(caplog):
    provider = FakeMarketProvider(prices={"ethereum": 1800.0})
    provider.series_error = PriceUnavailable("boom", ErrorKind.UPSTREAM)
    with caplog.at_level("WARNING", logger="tokenfees.conversion"):
        fees = engine_for(provider, default_spread_fee_fraction=0.0025).calculate_fees("eth", 1.0)
    assert fees.spread_fee_fraction == 0.0025
    assert fees.spread_fee_source == SPREAD_FROM_DEFAULT
    assert "default spread fee" in caplog.text


def test_price_failure_propagates():
    provider = FakeMarketProvider()
    provider.price_error = PriceUnavailable("throttled", ErrorKind.RATE_LIMITED)
    with pytest.raises(PriceUnavailable) as exc:
        engine_for(provider).calculate_fees("eth", 1.0, 0.002)
    assert exc.value.kind is ErrorKind.RATE_LIMITED
    assert exc.value.retryable
    assert exc.value.status_code == 429


def test_unknown_token_is_not_found():
    with pytest.raises(PriceUnavailable) as exc:
        engine_for(FakeMarketProvider()).calculate_target_amount("foocoin", 1.0, 0.002)
    assert exc.value.kind is ErrorKind.NOT_FOUND
    assert not exc.value.retryable


def test_inverse_reuses_cached_quote():
    provider = FakeMarketProvider(prices={"ethereum": 1800.0})
    engine = engine_for(provider)
    engine.calculate_target_amount("eth", 1.0, 0.002)
    engine.calculate_source_amount("eth", 1_000_000, 0.002)
    assert provider.price_calls == ["ethereum"]


def test_wrapped_and_native_symbols_keep_their_own_quotes():
    provider = FakeMarketProvider(prices={"bitcoin": 65000.0})
    engine = engine_for(provider)
    btc = engine.calculate_fees("btc", 1.0, 0.002)
    wbtc = engine.calculate_fees("wbtc", 1.0, 0.002)
    assert btc.token_id == wbtc.token_id == "bitcoin"
    assert btc.display_symbol == "BTC"
    assert wbtc.display_symbol == "WBTC"
    assert provider.price_calls == ["bitcoin", "bitcoin"]


def test_full_fee_rejected_in_breakdown_only_when_deducting():
    with pytest.raises(InvalidArgument):
        engine_for(FakeMarketProvider()).calculate_fees("eth", 1.0, 0.999)
    fees = engine_for(FakeMarketProvider(), fee_direction="add").calculate_fees("eth", 1.0, 0.995)
    assert fees.amount_after_fees == pytest.approx(2.0)


def test_malformed_price_history_falls_back_to_default_spread(monkeypatch):
    from tokenfees.services.market import providers

    def fake_get_json(url, **kwargs):
        if "market_chart" in url:
            return {"prices": [[1, 100.0], [2, None]]}
        return {"ethereum": {"usd": 1800.0}}

    monkeypatch.setattr(providers, "get_json", fake_get_json)
    provider = providers.CoinGeckoProvider("https://cg.example")
    fees = engine_for(provider).calculate_fees("eth", 1.0)
    assert fees.spread_fee_source == SPREAD_FROM_DEFAULT
    assert fees.spread_fee_fraction == 0.002
