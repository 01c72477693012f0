from __future__ import annotations

"""Fee calculation and IDRX conversion endpoints.

    - GET /api/calculate-fees   -> fee breakdown for `amount` of `token`
    - GET /api/calculate-idrx   -> IDRX received for `amount` of `token`
    - GET /api/calculate-source -> `token` amount needed to receive `idrxAmount`

Handlers are sync so FastAPI runs them in its threadpool; provider calls never
block the event loop.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from tokenfees.core.errors import InvalidArgument
from tokenfees.models.schemas import ConversionOut, FeeBreakdownOut, FeeCalculationOut
from tokenfees.services.container import Services, get_services

router = APIRouter(prefix="/api", tags=["fees"])


def _custom_spread(value: Optional[float], svc: Services) -> Optional[float]:
    if value is not None and value > svc.settings.max_custom_spread_fee:
        raise InvalidArgument(
            f"Custom spread fee must be between 0 and {svc.settings.max_custom_spread_fee}"
        )
    return value


@router.get("/calculate-fees", response_model=FeeCalculationOut, summary="Calculate fees for a token amount")
def calculate_fees(
    amount: float = Query(..., description="Amount of the source token"),
    token: str = Query("eth"),
    custom_spread_fee: Optional[float] = Query(None, alias="customSpreadFee", ge=0),
    svc: Services = Depends(get_services),
):
    fees = svc.conversion.calculate_fees(token, amount, _custom_spread(custom_spread_fee, svc))
    return FeeCalculationOut(result=FeeBreakdownOut.from_breakdown(fees))


@router.get("/calculate-idrx", response_model=ConversionOut, summary="Calculate IDRX amount from source token")
def calculate_idrx(
    amount: float = Query(..., description="Amount of the source token"),
    token: str = Query("eth"),
    custom_spread_fee: Optional[float] = Query(None, alias="customSpreadFee", ge=0),
    svc: Services = Depends(get_services),
):
    result = svc.conversion.calculate_target_amount(token, amount, _custom_spread(custom_spread_fee, svc))
    return ConversionOut.from_result(token, result)


@router.get(
    "/calculate-source",
    response_model=ConversionOut,
    summary="Calculate source token amount needed for a desired IDRX amount",
)
def calculate_source(
    idrx_amount: float = Query(..., alias="idrxAmount", description="Desired IDRX amount"),
    token: str = Query("eth"),
    custom_spread_fee: Optional[float] = Query(None, alias="customSpreadFee", ge=0),
    svc: Services = Depends(get_services),
):
    result = svc.conversion.calculate_source_amount(token, idrx_amount, _custom_spread(custom_spread_fee, svc))
    return ConversionOut.from_result(token, result)
