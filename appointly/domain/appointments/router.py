"""Appointment router - FastAPI endpoints for managing appointments"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import sessionmaker

from ...auth import get_current_user, require_admin
from ...database import get_session_factory
from ...models import User
from ...rate_limiter import get_client_ip
from .schemas import AppointmentMutationResponse, AppointmentResponse, AppointmentStatusUpdate
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])
admin_router = APIRouter(prefix="/admin/appointments", tags=["Admin"])


def get_appointment_service(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(session_factory)


@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    date: Optional[str] = Query(None),
    providerId: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """List appointments of the current provider (or any provider for admins)"""
    return await service.list_appointments(current_user, providerId, date, status)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return await service.get_appointment(current_user, appointment_id)


@router.patch("/{appointment_id}", response_model=AppointmentMutationResponse)
async def update_appointment_status(
    appointment_id: int,
    data: AppointmentStatusUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Change an appointment's status"""
    appointment, changed = await service.update_status(
        current_user, appointment_id, data.status, get_client_ip(request)
    )
    return AppointmentMutationResponse(
        success=True,
        message="Appointment updated successfully" if changed else "Appointment unchanged",
        changed=changed,
        appointment=appointment,
    )


@router.delete("/{appointment_id}", response_model=AppointmentMutationResponse)
async def cancel_appointment(
    appointment_id: int,
    request: Request,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Cancel an appointment (soft delete)"""
    appointment, changed = await service.cancel_appointment(
        current_user, appointment_id, get_client_ip(request)
    )
    return AppointmentMutationResponse(
        success=True,
        message="Appointment cancelled successfully" if changed else "Appointment already cancelled",
        changed=changed,
        appointment=appointment,
    )


@admin_router.get("", response_model=list[AppointmentResponse])
async def list_all_appointments(
    date: Optional[str] = Query(None),
    providerId: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    admin: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Admin-wide appointment listing"""
    return await service.list_appointments(admin, providerId, date, status)
