"""Public booking router - availability lookup and appointment booking"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import sessionmaker

from ...config import BOOKING_RATE_LIMIT, BOOKING_RATE_WINDOW_SECONDS
from ...database import get_session_factory
from ...rate_limiter import create_rate_limiter, get_client_ip
from ...services.notification_service import (
    NotificationDispatcher,
    get_notification_dispatcher,
)
from .booking import BookingRequest, BookingService
from .schemas import (
    AvailabilityResponse,
    BookedAppointment,
    BookingPageResponse,
    BookingRequestSchema,
    BookingResponse,
)
from .service import SchedulingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Booking"])

rate_limit_bookings = create_rate_limiter(
    limit=BOOKING_RATE_LIMIT,
    window_seconds=BOOKING_RATE_WINDOW_SECONDS,
    key_prefix="book_appointment",
)


def get_scheduling_service(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> SchedulingService:
    """Dependency injection for SchedulingService"""
    return SchedulingService(session_factory)


def get_booking_service(
    session_factory: sessionmaker = Depends(get_session_factory),
    notifier: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(session_factory, notifier=notifier)


@router.get("/book/{slug}", response_model=BookingPageResponse)
async def get_booking_page(
    slug: str,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Provider profile and active services for the public booking page"""
    return await service.get_booking_page(slug)


@router.get("/get-availability", response_model=AvailabilityResponse)
async def get_availability(
    date: str = Query(..., description="YYYY-MM-DD"),
    provider: str = Query(..., description="Provider slug"),
    serviceId: Optional[int] = Query(None),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Open slots for a provider day, and bookable start times for a service"""
    return await service.get_availability(provider, date, serviceId)


@router.post("/book-appointment", response_model=BookingResponse)
async def book_appointment(
    data: BookingRequestSchema,
    request: Request,
    background_tasks: BackgroundTasks,
    booking: BookingService = Depends(get_booking_service),
    _: None = Depends(rate_limit_bookings),
):
    """Book an appointment on a provider's public page"""
    result = await booking.book(
        BookingRequest(
            provider_slug=data.providerSlug,
            date=data.date,
            time=data.time,
            customer_name=data.customerName,
            customer_email=data.customerEmail,
            customer_phone=data.customerPhone,
            service_id=data.serviceId,
            notes=data.notes,
            ip_address=get_client_ip(request),
        ),
        notify=False,
    )

    # Emails go out after the response is sent
    background_tasks.add_task(booking.notify, result)

    return BookingResponse(
        success=True,
        message="Appointment booked successfully",
        appointment=BookedAppointment(
            id=result.appointment_id,
            date=result.date.isoformat(),
            time=result.time,
            endTime=result.end_time,
            duration=result.duration,
            status=result.status,
        ),
    )
