from __future__ import annotations

"""Volatility and spread fee endpoints.

`days` is validated by the volatility service (1..30) so the same rule and
error body apply whether the call comes over HTTP or from the engine.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from tokenfees.models.schemas import AverageSpreadFeeOut, MarketVolatilityOut, VolatilityOut
from tokenfees.services.container import Services, get_services

router = APIRouter(prefix="/api", tags=["volatility"])


def _split_tokens(tokens: Optional[str]) -> Optional[List[str]]:
    if not tokens:
        return None
    return [t.strip() for t in tokens.split(",") if t.strip()] or None


@router.get("/volatility/{token}", response_model=VolatilityOut, summary="Volatility and recommended spread fee")
def get_volatility(token: str, days: int = Query(1), svc: Services = Depends(get_services)):
    return VolatilityOut.from_estimate(svc.volatility.get_volatility(token, days))


# Alias kept for clients of the older spread-fee endpoint.
@router.get("/spread-fee/{token}", response_model=VolatilityOut, summary="Spread fee for a specific token")
def get_spread_fee(token: str, days: int = Query(1), svc: Services = Depends(get_services)):
    return VolatilityOut.from_estimate(svc.volatility.get_volatility(token, days))


@router.get("/market-volatility", response_model=MarketVolatilityOut, summary="Volatility for multiple tokens")
def market_volatility(
    tokens: Optional[str] = Query(None, description="Comma-separated tokens"),
    days: int = Query(1),
    svc: Services = Depends(get_services),
):
    results = svc.volatility.market_volatility(_split_tokens(tokens), days)
    return MarketVolatilityOut(tokens={k: VolatilityOut.from_estimate(v) for k, v in results.items()})


@router.get("/average-spread-fee", response_model=AverageSpreadFeeOut, summary="Average volatility and spread fee")
def average_spread_fee(
    tokens: Optional[str] = Query(None, description="Comma-separated tokens"),
    days: int = Query(1),
    svc: Services = Depends(get_services),
):
    return AverageSpreadFeeOut.from_average(svc.volatility.average_spread_fee(_split_tokens(tokens), days))
