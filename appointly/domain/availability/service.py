"""Availability service - Business logic for declaring open slots"""

import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session, sessionmaker

from ...auth import ensure_provider_access
from ...database import begin_write, run_in_session
from ...models import Availability, User
from ...services.audit_service import record_audit
from ..providers.repository import ProviderRepository
from ..scheduling import slot_grid
from ..scheduling.exceptions import AvailabilityNotFound, InvalidTimeError, ProviderNotFound
from .repository import AvailabilityRepository
from .schemas import AvailabilityResponse

logger = logging.getLogger(__name__)

# Dashboard listing window when no dates are given
DEFAULT_LISTING_DAYS = 30


def normalize_slot_time(time: str) -> str:
    """Canonical HH:MM for a slot start; slots must sit on the grid"""
    canonical = slot_grid.parse_time(time)
    if not slot_grid.is_grid_aligned(canonical):
        raise InvalidTimeError(
            f"Availability must start on a {slot_grid.SLOT_MINUTES}-minute boundary",
            time=time,
        )
    return canonical


def to_response(slot: Availability) -> AvailabilityResponse:
    return AvailabilityResponse(
        id=slot.id,
        providerId=slot.provider_id,
        date=slot.date,
        time=slot.time,
        created_at=slot.created_at,
    )


class AvailabilityService:
    """Service layer for availability business logic"""

    def __init__(self, session_factory: sessionmaker, timeout: Optional[float] = None):
        self.session_factory = session_factory
        self.timeout = timeout

    async def _run(self, work):
        return await run_in_session(self.session_factory, work, self.timeout)

    @staticmethod
    def _require_provider(db: Session, provider_id: int) -> None:
        if not ProviderRepository.get_provider_by_id(db, provider_id):
            raise ProviderNotFound(provider_id)

    async def list_slots(
        self,
        user: User,
        provider_id: Optional[int] = None,
        day: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> list[AvailabilityResponse]:
        """Slots for one day, a date range, or the next DEFAULT_LISTING_DAYS days"""
        provider_id = ensure_provider_access(user, provider_id)

        if day:
            first = last = slot_grid.parse_date(day)
        else:
            first = slot_grid.parse_date(start) if start else date.today()
            last = (
                slot_grid.parse_date(end) if end else first + timedelta(days=DEFAULT_LISTING_DAYS)
            )

        def work(db: Session) -> list[AvailabilityResponse]:
            slots = AvailabilityRepository.list_slots_between(db, provider_id, first, last)
            return [to_response(s) for s in slots]

        return await self._run(work)

    async def create_slot(
        self,
        user: User,
        day: str,
        time: str,
        provider_id: Optional[int] = None,
        ip_address: Optional[str] = None,
    ) -> AvailabilityResponse:
        provider_id = ensure_provider_access(user, provider_id)
        slot_day = slot_grid.parse_date(day)
        slot_time = normalize_slot_time(time)

        def work(db: Session) -> AvailabilityResponse:
            begin_write(db)
            self._require_provider(db, provider_id)
            slot = AvailabilityRepository.create_slot(db, provider_id, slot_day, slot_time)
            record_audit(
                db,
                provider_id,
                f"Added availability for {slot_day.isoformat()} at {slot_time}",
                ip_address=ip_address,
            )
            db.commit()
            db.refresh(slot)
            return to_response(slot)

        created = await self._run(work)
        logger.info(f"✅ Availability added for provider {provider_id}: {slot_day} {slot_time}")
        return created

    async def create_slots(
        self,
        user: User,
        day: str,
        times: list[str],
        provider_id: Optional[int] = None,
        ip_address: Optional[str] = None,
    ) -> tuple[list[AvailabilityResponse], list[str]]:
        """Declare several slots at once; duplicates are skipped, not fatal"""
        provider_id = ensure_provider_access(user, provider_id)
        slot_day = slot_grid.parse_date(day)
        slot_times = slot_grid.sort_times({normalize_slot_time(t) for t in times})

        def work(db: Session):
            begin_write(db)
            self._require_provider(db, provider_id)
            created, skipped = [], []
            for slot_time in slot_times:
                if AvailabilityRepository.find_slot(db, provider_id, slot_day, slot_time):
                    skipped.append(slot_time)
                    continue
                # A slot inserted concurrently fails the whole batch with SlotAlreadyExists
                created.append(
                    AvailabilityRepository.create_slot(db, provider_id, slot_day, slot_time)
                )

            if created:
                record_audit(
                    db,
                    provider_id,
                    f"Added {len(created)} availability slots for {slot_day.isoformat()}",
                    details={"times": [s.time for s in created]},
                    ip_address=ip_address,
                )
            db.commit()
            return [to_response(s) for s in created], skipped

        created, skipped = await self._run(work)
        logger.info(
            f"✅ Bulk availability for provider {provider_id} on {slot_day}: "
            f"{len(created)} created, {len(skipped)} skipped"
        )
        return created, skipped

    async def get_slot(self, user: User, slot_id: int) -> AvailabilityResponse:
        def work(db: Session) -> AvailabilityResponse:
            slot = AvailabilityRepository.get_slot(db, slot_id)
            if not slot:
                raise AvailabilityNotFound(slot_id)
            ensure_provider_access(user, slot.provider_id)
            return to_response(slot)

        return await self._run(work)

    async def delete_slot(
        self, user: User, slot_id: int, ip_address: Optional[str] = None
    ) -> AvailabilityResponse:
        def work(db: Session) -> AvailabilityResponse:
            begin_write(db)
            slot = AvailabilityRepository.get_slot(db, slot_id)
            if not slot:
                raise AvailabilityNotFound(slot_id)
            ensure_provider_access(user, slot.provider_id)

            removed = to_response(slot)
            AvailabilityRepository.delete_slot(db, slot)
            record_audit(
                db,
                removed.providerId,
                f"Removed availability for {removed.date.isoformat()} at {removed.time}",
                ip_address=ip_address,
            )
            db.commit()
            return removed

        removed = await self._run(work)
        logger.info(f"🗑️ Availability {slot_id} removed for provider {removed.providerId}")
        return removed
