"""Smoke script for the token price cache.

Demonstrates:
 1. First access triggers an underlying provider fetch.
 2. Subsequent access within TTL reuses the cached quote (same observed_at / stored_at).
 3. Forced refresh: invalidate the cached entries and fetch again.
 4. A fee breakdown and IDRX round trip computed from the cached quote.

Runs against the configured MARKET_DATA_PROVIDER (set it to 'static' to run offline).

NOTE: This is a lightweight diagnostic and not a formal test.
"""

from pprint import pprint

from tokenfees.core.config import get_settings
from tokenfees.services.container import build_services
from tokenfees.services.tokens import resolve_token

TOKENS = ("eth", "sol")


def run():
    svc = build_services(get_settings())
    prices = svc.prices
    out = {"initial": {}, "second": {}, "forced_refresh": {}, "conversion": {}}

    def snapshot(stage):
        for t in TOKENS:
            quote = prices.get_price(t)
            entry = prices.cache.peek(resolve_token(t))
            out[stage][t] = {
                "usd": quote.price_in_quote_currency,
                "idr": quote.price_in_local_currency,
                "stored_at": entry.stored_at.isoformat() if entry else None,
            }

    snapshot("initial")
    snapshot("second")

    for t in TOKENS:
        prices.cache.invalidate(resolve_token(t))

    snapshot("forced_refresh")

    forward = svc.conversion.calculate_target_amount("eth", 1.0)
    inverse = svc.conversion.calculate_source_amount("eth", forward.target_amount)
    out["conversion"] = {
        "idrx_for_1_eth": forward.target_amount,
        "spread_fee": forward.fees.spread_fee_fraction,
        "spread_source": forward.fees.spread_fee_source,
        "eth_for_that_idrx": inverse.source_amount,
    }

    pprint(out)


if __name__ == "__main__":
    run()
