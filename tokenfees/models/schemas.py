from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tokenfees.services.fees.conversion import ConversionResult, FeeBreakdown
from tokenfees.services.fees.volatility import AverageSpreadFee, VolatilityEstimate
from tokenfees.services.market.price_service import TokenQuote
from tokenfees.services.money import format_currency, format_percent, format_token_amount
from tokenfees.services.tokens import token_logo_url


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TokenPriceOut(ApiModel):
    success: bool = True
    token: str
    token_symbol: str
    price_usd: float
    price_idr: float
    observed_at: datetime
    logo_url: Optional[str] = None
    price_idr_formatted: str
    price_usd_formatted: str

    @classmethod
    def from_quote(cls, quote: TokenQuote) -> "TokenPriceOut":
        return cls(
            token=quote.token_id,
            token_symbol=quote.display_symbol,
            price_usd=quote.price_in_quote_currency,
            price_idr=quote.price_in_local_currency,
            observed_at=quote.observed_at,
            logo_url=token_logo_url(quote.display_symbol),
            price_idr_formatted=format_currency(quote.price_in_local_currency, "IDR"),
            price_usd_formatted=format_currency(quote.price_in_quote_currency, "USD"),
        )


class FeeBreakdownOut(ApiModel):
    token: str
    token_symbol: str
    price_usd: float
    price_idr: float
    admin_fee_percentage: float
    admin_fee_amount: float
    spread_fee_percentage: float
    spread_fee_amount: float
    total_fee_percentage: float
    total_fee_amount: float
    amount_before_fees: float
    amount_after_fees: float
    exchange_rate: float
    computed_at: datetime
    spread_fee_source: str
    fee_direction: str
    logo_url: Optional[str] = None
    price_idr_formatted: str
    price_usd_formatted: str
    admin_fee_percentage_formatted: str
    spread_fee_percentage_formatted: str
    total_fee_percentage_formatted: str

    @classmethod
    def from_breakdown(cls, fees: FeeBreakdown) -> "FeeBreakdownOut":
        return cls(
            token=fees.token_id,
            token_symbol=fees.display_symbol,
            price_usd=fees.price_in_quote_currency,
            price_idr=fees.price_in_local_currency,
            admin_fee_percentage=fees.admin_fee_fraction,
            admin_fee_amount=fees.admin_fee_amount,
            spread_fee_percentage=fees.spread_fee_fraction,
            spread_fee_amount=fees.spread_fee_amount,
            total_fee_percentage=fees.total_fee_fraction,
            total_fee_amount=fees.total_fee_amount,
            amount_before_fees=fees.amount_before_fees,
            amount_after_fees=fees.amount_after_fees,
            exchange_rate=fees.effective_rate,
            computed_at=fees.computed_at,
            spread_fee_source=fees.spread_fee_source,
            fee_direction=fees.fee_direction,
            logo_url=token_logo_url(fees.display_symbol),
            price_idr_formatted=format_currency(fees.price_in_local_currency, "IDR"),
            price_usd_formatted=format_currency(fees.price_in_quote_currency, "USD"),
            admin_fee_percentage_formatted=format_percent(fees.admin_fee_fraction),
            spread_fee_percentage_formatted=format_percent(fees.spread_fee_fraction),
            total_fee_percentage_formatted=format_percent(fees.total_fee_fraction),
        )


class FeeCalculationOut(ApiModel):
    success: bool = True
    result: FeeBreakdownOut


class ConversionOut(ApiModel):
    success: bool = True
    token: str
    source_amount: float
    source_amount_formatted: str
    idrx_amount: float
    idrx_amount_formatted: str
    fees: FeeBreakdownOut

    @classmethod
    def from_result(cls, token: str, result: ConversionResult) -> "ConversionOut":
        return cls(
            token=token,
            source_amount=result.source_amount,
            source_amount_formatted=format_token_amount(result.source_amount, result.fees.display_symbol),
            idrx_amount=result.target_amount,
            idrx_amount_formatted=format_currency(result.target_amount, "IDR"),
            fees=FeeBreakdownOut.from_breakdown(result.fees),
        )


class VolatilityOut(ApiModel):
    success: bool = True
    token: str
    volatility: float
    recommended_spread_fee: float
    timeframe: str
    estimator: str
    computed_at: datetime
    volatility_percentage: str
    recommended_spread_fee_percentage: str

    @classmethod
    def from_estimate(cls, estimate: VolatilityEstimate) -> "VolatilityOut":
        return cls(
            token=estimate.token_id,
            volatility=estimate.daily_volatility,
            recommended_spread_fee=estimate.recommended_spread_fee_fraction,
            timeframe=estimate.window_description,
            estimator=estimate.estimator,
            computed_at=estimate.computed_at,
            volatility_percentage=format_percent(estimate.daily_volatility),
            recommended_spread_fee_percentage=format_percent(estimate.recommended_spread_fee_fraction),
        )


class MarketVolatilityOut(ApiModel):
    success: bool = True
    tokens: Dict[str, VolatilityOut]


class AverageSpreadFeeOut(ApiModel):
    success: bool = True
    tokens: List[str]
    average_volatility: float
    recommended_spread_fee: float
    average_volatility_percentage: str
    recommended_spread_fee_percentage: str
    timeframe: str
    computed_at: datetime

    @classmethod
    def from_average(cls, avg: AverageSpreadFee) -> "AverageSpreadFeeOut":
        return cls(
            tokens=avg.tokens,
            average_volatility=avg.average_volatility,
            recommended_spread_fee=avg.recommended_spread_fee_fraction,
            average_volatility_percentage=format_percent(avg.average_volatility),
            recommended_spread_fee_percentage=format_percent(avg.recommended_spread_fee_fraction),
            timeframe=avg.window_description,
            computed_at=avg.computed_at,
        )


class HealthOut(ApiModel):
    status: str = "ok"
    reference_rate: float
    reference_rate_source: str
    reference_rate_updated_at: datetime
    refresher_running: bool = Field(False, description="Background refresh thread alive")
