"""Appointment repository - Database operations for appointments and customers"""

from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, Customer, ProviderService


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def _with_details(query):
        return query.options(
            joinedload(Appointment.customer),
            joinedload(Appointment.provider),
            joinedload(Appointment.provider_service).joinedload(ProviderService.service),
        )

    @staticmethod
    def list_by_provider_and_date(
        db: Session, provider_id: int, day: date, exclude_cancelled: bool = True
    ) -> list[Appointment]:
        """Appointments of one provider on one day, service durations eagerly loaded"""
        query = (
            db.query(Appointment)
            .options(
                joinedload(Appointment.provider_service).joinedload(ProviderService.service)
            )
            .filter(Appointment.provider_id == provider_id, Appointment.date == day)
        )
        if exclude_cancelled:
            query = query.filter(Appointment.status != "cancelled")
        return query.order_by(Appointment.time.asc()).all()

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        return (
            AppointmentRepository._with_details(db.query(Appointment))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def lock_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.id == appointment_id)
            .with_for_update()
            .first()
        )

    @staticmethod
    def list_appointments(
        db: Session,
        provider_id: Optional[int] = None,
        day: Optional[date] = None,
        status: Optional[str] = None,
        limit: int = 500,
    ) -> list[Appointment]:
        query = AppointmentRepository._with_details(db.query(Appointment))

        if provider_id is not None:
            query = query.filter(Appointment.provider_id == provider_id)
        if day is not None:
            query = query.filter(Appointment.date == day)
        if status and status != "all":
            query = query.filter(Appointment.status == status)

        return (
            query.order_by(Appointment.date.desc(), Appointment.time.asc()).limit(limit).all()
        )

    @staticmethod
    def create_appointment(
        db: Session,
        provider_id: int,
        customer_id: int,
        day: date,
        time: str,
        provider_service_id: Optional[int] = None,
        notes: Optional[str] = None,
        duration: Optional[int] = None,
    ) -> Appointment:
        """Stage a new scheduled appointment; the caller owns the transaction"""
        appointment = Appointment(
            provider_id=provider_id,
            customer_id=customer_id,
            provider_service_id=provider_service_id,
            date=day,
            time=time,
            status="scheduled",
            notes=notes,
            duration=duration,
        )
        db.add(appointment)
        db.flush()
        return appointment

    @staticmethod
    def update_status(db: Session, appointment: Appointment, status: str) -> Appointment:
        appointment.status = status
        db.flush()
        return appointment

    @staticmethod
    def count_by_status(db: Session, provider_id: Optional[int] = None) -> dict[str, int]:
        query = db.query(Appointment.status, func.count(Appointment.id))
        if provider_id is not None:
            query = query.filter(Appointment.provider_id == provider_id)
        return {status: count for status, count in query.group_by(Appointment.status).all()}

    @staticmethod
    def count_upcoming(db: Session, today: date, provider_id: Optional[int] = None) -> int:
        query = db.query(func.count(Appointment.id)).filter(
            Appointment.date >= today, Appointment.status != "cancelled"
        )
        if provider_id is not None:
            query = query.filter(Appointment.provider_id == provider_id)
        return query.scalar() or 0


class CustomerRepository:
    """Customers are identified by (email, phone) and never authenticate"""

    @staticmethod
    def find_customer(db: Session, email: str, phone: str) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.email == email, Customer.phone == phone).first()

    @staticmethod
    def create_customer(db: Session, name: str, email: str, phone: str) -> Customer:
        customer = Customer(name=name, email=email, phone=phone)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer
