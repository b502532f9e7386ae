from fastapi import APIRouter, Depends, HTTPException

from groombook.dependencies.services import get_pricing_service
from groombook.schemas.pricing import PricingRequest, PricingResult
from groombook.services import PricingService
from groombook.services.exceptions import ServiceError

router = APIRouter()


@router.post("/quote", response_model=PricingResult)
async def quote(
    req: PricingRequest,
    service: PricingService = Depends(get_pricing_service),
):
    try:
        return await service.quote(req)
    except ServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
