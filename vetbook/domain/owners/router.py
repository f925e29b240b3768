"""Owner router - Registration and guest owner endpoints"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ...database import get_db
from ..appointments.schemas import MessageResponse
from .schemas import GuestOwnerCreate, OwnerRegistrationRequest, OwnerResponse, OwnerVerifyRequest
from .service import OwnerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/owners", tags=["Owners"])


def get_owner_service(db: Session = Depends(get_db)) -> OwnerService:
    """Dependency injection for OwnerService"""
    return OwnerService(db)


@router.post("/register", response_model=MessageResponse)
async def register_owner(
    data: OwnerRegistrationRequest,
    service: OwnerService = Depends(get_owner_service),
):
    """Start owner registration by emailing an OTP"""
    try:
        return await service.request_registration(data)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Unexpected error in register_owner: {str(e)}")
        logger.exception("Full error traceback:")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from e


@router.post("/verify-otp", response_model=OwnerResponse, status_code=201)
async def verify_owner(
    data: OwnerVerifyRequest,
    service: OwnerService = Depends(get_owner_service),
):
    """Complete registration with the emailed OTP"""
    try:
        return await service.verify_registration(data)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Unexpected error in verify_owner: {str(e)}")
        logger.exception("Full error traceback:")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from e


@router.post("/guest", response_model=OwnerResponse, status_code=201)
async def create_guest_owner(
    data: GuestOwnerCreate,
    response: Response,
    service: OwnerService = Depends(get_owner_service),
):
    """Create (or reuse) a guest owner for direct booking"""
    try:
        owner, created = service.create_guest_owner(data)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Unexpected error in create_guest_owner: {str(e)}")
        logger.exception("Full error traceback:")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from e
    if not created:
        response.status_code = status.HTTP_200_OK
    return owner
