"""Availability router - FastAPI endpoints for declaring open slots"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import sessionmaker

from ...auth import get_current_user
from ...database import get_session_factory
from ...models import User
from ...rate_limiter import get_client_ip
from .schemas import (
    AvailabilityBulkCreate,
    AvailabilityCreate,
    AvailabilityMutationResponse,
    AvailabilityResponse,
    BulkAvailabilityResponse,
)
from .service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/set-availability", tags=["Availability"])


def get_availability_service(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(session_factory)


@router.get("", response_model=list[AvailabilityResponse])
async def list_availability(
    date: Optional[str] = Query(None),
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    providerId: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
):
    """List declared slots for a day or a date range"""
    return await service.list_slots(current_user, providerId, date, startDate, endDate)


@router.post("", response_model=AvailabilityMutationResponse)
async def set_availability(
    data: AvailabilityCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Declare one 30-minute slot open"""
    slot = await service.create_slot(
        current_user, data.date, data.time, data.providerId, get_client_ip(request)
    )
    return AvailabilityMutationResponse(
        success=True, message="Availability set successfully", availability=slot
    )


@router.post("/bulk", response_model=BulkAvailabilityResponse)
async def set_availability_bulk(
    data: AvailabilityBulkCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Declare several slots of one day open"""
    created, skipped = await service.create_slots(
        current_user, data.date, data.times, data.providerId, get_client_ip(request)
    )
    return BulkAvailabilityResponse(success=True, created=created, skipped=skipped)


@router.get("/{slot_id}", response_model=AvailabilityResponse)
async def get_availability_slot(
    slot_id: int,
    current_user: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
):
    return await service.get_slot(current_user, slot_id)


@router.delete("/{slot_id}", response_model=AvailabilityMutationResponse)
async def delete_availability_slot(
    slot_id: int,
    request: Request,
    current_user: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Withdraw a declared slot"""
    slot = await service.delete_slot(current_user, slot_id, get_client_ip(request))
    return AvailabilityMutationResponse(
        success=True, message="Availability removed successfully", availability=slot
    )
