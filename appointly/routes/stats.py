"""Dashboard counters for providers and admins"""

import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..auth import ensure_provider_access, get_current_user, require_admin
from ..database import get_db
from ..domain.appointments.repository import AppointmentRepository
from ..domain.providers.repository import ProviderRepository
from ..models import Appointment, Customer, Provider, ProviderService, User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Stats"])


def completed_revenue(db: Session, provider_id: Optional[int] = None) -> float:
    """Sum of offering prices over completed appointments"""
    query = (
        db.query(func.coalesce(func.sum(ProviderService.price), 0))
        .select_from(Appointment)
        .join(ProviderService, Appointment.provider_service_id == ProviderService.id)
        .filter(Appointment.status == "completed")
    )
    if provider_id is not None:
        query = query.filter(Appointment.provider_id == provider_id)
    return float(query.scalar() or 0)


@router.get("/provider-stats")
def get_provider_stats(
    providerId: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Counters for a provider dashboard"""
    provider_id = ensure_provider_access(current_user, providerId)
    today = date.today()

    today_appointments = (
        db.query(func.count(Appointment.id))
        .filter(
            Appointment.provider_id == provider_id,
            Appointment.date == today,
            Appointment.status != "cancelled",
        )
        .scalar()
    )
    upcoming_appointments = AppointmentRepository.count_upcoming(
        db, today + timedelta(days=1), provider_id
    )
    total_customers = (
        db.query(func.count(func.distinct(Appointment.customer_id)))
        .filter(Appointment.provider_id == provider_id)
        .scalar()
    )

    return {
        "providerId": provider_id,
        "todayAppointments": today_appointments or 0,
        "upcomingAppointments": upcoming_appointments,
        "totalCustomers": total_customers or 0,
        "revenue": completed_revenue(db, provider_id),
        "byStatus": AppointmentRepository.count_by_status(db, provider_id),
    }


@router.get("/admin/stats")
def get_admin_stats(
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Platform-wide counters"""
    return {
        "totalProviders": db.query(func.count(Provider.id)).scalar() or 0,
        "totalAppointments": db.query(func.count(Appointment.id)).scalar() or 0,
        "totalCustomers": db.query(func.count(Customer.id)).scalar() or 0,
        "upcomingAppointments": AppointmentRepository.count_upcoming(db, date.today()),
        "revenue": completed_revenue(db),
        "byStatus": AppointmentRepository.count_by_status(db),
        "providersByType": {
            (name or "Unassigned"): count for name, count in ProviderRepository.count_by_type(db)
        },
    }
