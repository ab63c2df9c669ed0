"""Carpenter profile endpoints — identity, integrations and the credit store."""

from fastapi import APIRouter, Depends, HTTPException, status

from cockpit.application.schemas.profile import (
    CreditPackResponse,
    ProfileResponse,
    ProfileUpdate,
    PurchaseRequest,
    PurchaseResponse,
)
from cockpit.application.services import CarpenterProfileService
from cockpit.domain.exceptions import EntityNotFoundError, LocalStoreUnavailableError
from cockpit.infrastructure.dependencies import get_profile_service

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile(
    service: CarpenterProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    try:
        profile = await service.get_profile()
    except LocalStoreUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return ProfileResponse.model_validate(profile)


@router.put("", response_model=ProfileResponse)
async def update_profile(
    data: ProfileUpdate,
    service: CarpenterProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    try:
        profile = await service.save_profile(
            name=data.name,
            business_name=data.business_name,
            integrations=data.integrations,
        )
    except LocalStoreUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return ProfileResponse.model_validate(profile)


@router.get("/credit-packs", response_model=list[CreditPackResponse])
async def list_credit_packs(
    service: CarpenterProfileService = Depends(get_profile_service),
) -> list[CreditPackResponse]:
    return [CreditPackResponse.model_validate(p) for p in service.credit_packs()]


@router.post("/credits", response_model=PurchaseResponse)
async def purchase_credits(
    data: PurchaseRequest,
    service: CarpenterProfileService = Depends(get_profile_service),
) -> PurchaseResponse:
    """Simulated checkout — the pack's credits are added immediately."""
    try:
        total = await service.purchase_credits(data.pack_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except LocalStoreUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return PurchaseResponse(pack_id=data.pack_id, credits=total)
