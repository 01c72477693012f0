from fastapi import APIRouter, Depends

from tokenfees.models.schemas import TokenPriceOut
from tokenfees.services.container import Services, get_services

router = APIRouter(prefix="/api", tags=["prices"])


@router.get("/token-price/{token}", response_model=TokenPriceOut, summary="Get token price in USD and IDR")
def get_token_price(token: str, svc: Services = Depends(get_services)):
    return TokenPriceOut.from_quote(svc.prices.get_price(token))


@router.get("/token-price", response_model=TokenPriceOut, include_in_schema=False)
def get_default_token_price(svc: Services = Depends(get_services)):
    return TokenPriceOut.from_quote(svc.prices.get_price("eth"))
