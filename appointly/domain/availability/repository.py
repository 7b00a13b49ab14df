"""Availability repository - Database operations for declared open slots"""

from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Availability
from ..scheduling.exceptions import SlotAlreadyExists


class AvailabilityRepository:
    """Repository for availability slot database operations"""

    @staticmethod
    def list_slots(db: Session, provider_id: int, day: date) -> list[Availability]:
        """All declared-open slots of a provider on one calendar day"""
        return (
            db.query(Availability)
            .filter(Availability.provider_id == provider_id, Availability.date == day)
            .order_by(Availability.time.asc())
            .all()
        )

    @staticmethod
    def list_slots_between(
        db: Session, provider_id: int, start: date, end: date
    ) -> list[Availability]:
        """Slots for an inclusive date range, for the provider dashboard"""
        return (
            db.query(Availability)
            .filter(
                Availability.provider_id == provider_id,
                Availability.date >= start,
                Availability.date <= end,
            )
            .order_by(Availability.date.asc(), Availability.time.asc())
            .all()
        )

    @staticmethod
    def get_slot(db: Session, slot_id: int) -> Optional[Availability]:
        return db.query(Availability).filter(Availability.id == slot_id).first()

    @staticmethod
    def find_slot(db: Session, provider_id: int, day: date, time: str) -> Optional[Availability]:
        return (
            db.query(Availability)
            .filter(
                Availability.provider_id == provider_id,
                Availability.date == day,
                Availability.time == time,
            )
            .first()
        )

    @staticmethod
    def create_slot(db: Session, provider_id: int, day: date, time: str) -> Availability:
        """
        Insert one slot. A duplicate (provider, date, time) raises SlotAlreadyExists,
        whether it is seen by the pre-read or by the unique constraint.
        """
        if AvailabilityRepository.find_slot(db, provider_id, day, time):
            raise SlotAlreadyExists(day.isoformat(), time)

        slot = Availability(provider_id=provider_id, date=day, time=time)
        db.add(slot)
        try:
            db.flush()
        except IntegrityError as e:
            db.rollback()
            raise SlotAlreadyExists(day.isoformat(), time) from e
        return slot

    @staticmethod
    def delete_slot(db: Session, slot: Availability) -> None:
        db.delete(slot)
        db.flush()
