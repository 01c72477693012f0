from __future__ import annotations

"""Fee breakdown and token <-> IDRX conversion.

Responsibilities:
    - Validate amounts before any provider call.
    - Resolve the spread fee: explicit override, else the 1-day volatility
      recommendation, else the policy default when volatility is unavailable
      (the only failure absorbed here; everything else propagates).
    - Forward:  target = amount_after_fees * effective_rate
    - Inverse:  source = target / (effective_rate * (1 -/+ total_fee_fraction))
      followed by a breakdown recomputed for `source` with the same pinned
      spread fee and the same quote, so the pair round-trips exactly up to
      floating point.

Fee direction:
    'deduct' (default) charges fees out of the amount (after = amount - fees);
    'add' charges them on top (after = amount + fees).
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple, Union

from tokenfees.core.errors import InvalidArgument, PriceUnavailable, VolatilityUnavailable
from tokenfees.services.market.cache import Clock, utcnow
from tokenfees.services.market.price_service import PriceService, TokenQuote
from tokenfees.services.tokens import TokenRef, resolve_token
from .policy import FeePolicy
from .volatility import VolatilityService

logger = logging.getLogger("tokenfees.conversion")

SPREAD_FROM_OVERRIDE = "override"
SPREAD_FROM_VOLATILITY = "volatility"
SPREAD_FROM_DEFAULT = "default"


@dataclass(frozen=True)
class FeeBreakdown:
    token_id: str
    display_symbol: str
    price_in_quote_currency: float
    price_in_local_currency: float
    admin_fee_fraction: float
    admin_fee_amount: float
    spread_fee_fraction: float
    spread_fee_amount: float
    total_fee_fraction: float
    total_fee_amount: float
    amount_before_fees: float
    amount_after_fees: float
    effective_rate: float
    computed_at: datetime
    spread_fee_source: str
    fee_direction: str


@dataclass(frozen=True)
class ConversionResult:
    source_amount: float
    target_amount: float
    fees: FeeBreakdown


def _require_positive(value: float, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgument(f"{what} must be a number")
    if not math.isfinite(value) or value <= 0:
        raise InvalidArgument(f"{what} must be greater than 0")
    return float(value)


class ConversionEngine:
    def __init__(
        self,
        prices: PriceService,
        volatility: VolatilityService,
        policy: FeePolicy,
        direction: str = "deduct",
        clock: Clock = utcnow,
    ):
        if direction not in ("deduct", "add"):
            raise ValueError(f"unknown fee direction '{direction}'")
        self._prices = prices
        self._volatility = volatility
        self._policy = policy
        self._direction = direction
        self._clock = clock

    @property
    def direction(self) -> str:
        return self._direction

    def _resolve_spread_fee(self, token: TokenRef, override: Optional[float]) -> Tuple[float, str]:
        if override is not None:
            if isinstance(override, bool) or not isinstance(override, (int, float)) or not math.isfinite(override) or override < 0:
                raise InvalidArgument("Custom spread fee must be a non-negative number")
            return float(override), SPREAD_FROM_OVERRIDE
        try:
            estimate = self._volatility.get_volatility(token, 1)
        except (VolatilityUnavailable, PriceUnavailable) as e:
            logger.warning(
                "using default spread fee %s: volatility unavailable (%s)",
                self._policy.default_spread_fee,
                e,
                extra={"token": token.token_id},
            )
            return self._policy.default_spread_fee, SPREAD_FROM_DEFAULT
        return estimate.recommended_spread_fee_fraction, SPREAD_FROM_VOLATILITY

    def _check_fee_fraction(self, total_fee_fraction: float) -> None:
        if self._direction == "deduct" and total_fee_fraction >= 1:
            raise InvalidArgument("total fee fraction must be below 100%")

    def _fee_factor(self, total_fee_fraction: float) -> float:
        self._check_fee_fraction(total_fee_fraction)
        if self._direction == "add":
            return 1 + total_fee_fraction
        return 1 - total_fee_fraction

    def _breakdown(self, quote: TokenQuote, amount: float, spread_fee: float, source: str) -> FeeBreakdown:
        admin_fee = self._policy.admin_fee
        total_fraction = self._policy.total_fee(spread_fee)
        self._check_fee_fraction(total_fraction)
        admin_amount = amount * admin_fee
        spread_amount = amount * spread_fee
        total_amount = admin_amount + spread_amount
        if self._direction == "add":
            after = amount + total_amount
        else:
            after = amount - total_amount
        return FeeBreakdown(
            token_id=quote.token_id,
            display_symbol=quote.display_symbol,
            price_in_quote_currency=quote.price_in_quote_currency,
            price_in_local_currency=quote.price_in_local_currency,
            admin_fee_fraction=admin_fee,
            admin_fee_amount=admin_amount,
            spread_fee_fraction=spread_fee,
            spread_fee_amount=spread_amount,
            total_fee_fraction=total_fraction,
            total_fee_amount=total_amount,
            amount_before_fees=amount,
            amount_after_fees=after,
            effective_rate=quote.price_in_local_currency,
            computed_at=self._clock(),
            spread_fee_source=source,
            fee_direction=self._direction,
        )

    def calculate_fees(
        self, token: Union[TokenRef, str], amount: float, spread_fee_override: Optional[float] = None
    ) -> FeeBreakdown:
        amount = _require_positive(amount, "Amount")
        ref = token if isinstance(token, TokenRef) else resolve_token(token)
        quote = self._prices.get_price(ref)
        spread_fee, source = self._resolve_spread_fee(ref, spread_fee_override)
        return self._breakdown(quote, amount, spread_fee, source)

    def calculate_target_amount(
        self, token: Union[TokenRef, str], amount: float, spread_fee_override: Optional[float] = None
    ) -> ConversionResult:
        fees = self.calculate_fees(token, amount, spread_fee_override)
        target = fees.amount_after_fees * fees.effective_rate
        return ConversionResult(source_amount=fees.amount_before_fees, target_amount=target, fees=fees)

    def calculate_source_amount(
        self, token: Union[TokenRef, str], target_amount: float, spread_fee_override: Optional[float] = None
    ) -> ConversionResult:
        target_amount = _require_positive(target_amount, "IDRX amount")
        ref = token if isinstance(token, TokenRef) else resolve_token(token)
        quote = self._prices.get_price(ref)
        spread_fee, source = self._resolve_spread_fee(ref, spread_fee_override)
        factor = self._fee_factor(self._policy.total_fee(spread_fee))
        source_amount = target_amount / (quote.price_in_local_currency * factor)
        # same quote and pinned spread fee so the breakdown describes source_amount exactly
        fees = self._breakdown(quote, source_amount, spread_fee, source)
        return ConversionResult(source_amount=source_amount, target_amount=target_amount, fees=fees)
