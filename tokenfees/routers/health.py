from fastapi import APIRouter, Depends

from tokenfees.models.schemas import HealthOut
from tokenfees.services.container import Services, get_services

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthOut)
def health(svc: Services = Depends(get_services)):
    snap = svc.reference_rate.snapshot()
    return HealthOut(
        reference_rate=snap.value,
        reference_rate_source=snap.source,
        reference_rate_updated_at=snap.updated_at,
        refresher_running=svc.refresher.running,
    )
