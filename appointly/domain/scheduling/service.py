"""Public availability queries for the booking page"""

import logging
from datetime import date
from typing import Optional, Union

from sqlalchemy.orm import Session, sessionmaker

from ...database import run_in_session
from ...models import Provider, ProviderService
from ..providers.repository import ProviderRepository
from . import slot_grid
from .conflict_checker import bookable_start_times, load_day, open_slots
from .exceptions import ProviderNotFound, ServiceNotAvailableForProvider
from .schemas import (
    AvailabilityResponse,
    BookingPageResponse,
    ProviderProfile,
    ServiceOffering,
)

logger = logging.getLogger(__name__)


def provider_profile(provider: Provider) -> ProviderProfile:
    return ProviderProfile(
        id=provider.id,
        name=provider.name,
        bio=provider.bio,
        slug=provider.slug,
        providerType=provider.provider_type.name if provider.provider_type else None,
    )


def service_offering(offering: ProviderService) -> ServiceOffering:
    return ServiceOffering(
        id=offering.service_id,
        providerServiceId=offering.id,
        name=offering.service.name,
        duration=slot_grid.resolve_duration(offering.service.duration),
        price=float(offering.price or 0),
        description=offering.service.description,
    )


class SchedulingService:
    """Read-only queries behind the public booking page"""

    def __init__(self, session_factory: sessionmaker, timeout: Optional[float] = None):
        self.session_factory = session_factory
        self.timeout = timeout

    @staticmethod
    def _load_provider(db: Session, slug: str) -> Provider:
        provider = ProviderRepository.get_provider_by_slug(db, slug)
        if not provider:
            raise ProviderNotFound(slug)
        return provider

    async def get_booking_page(self, slug: str) -> BookingPageResponse:
        def work(db: Session) -> BookingPageResponse:
            provider = self._load_provider(db, slug)
            offerings = ProviderRepository.get_offerings(db, provider.id, active_only=True)
            return BookingPageResponse(
                provider=provider_profile(provider),
                services=[service_offering(o) for o in offerings],
            )

        return await run_in_session(self.session_factory, work, self.timeout)

    async def get_availability(
        self, slug: str, day: Union[str, date], service_id: Optional[int] = None
    ) -> AvailabilityResponse:
        """
        Open slots of a provider day, plus the start times at which the given
        service fits when a service id is passed.
        """
        day = slot_grid.parse_date(day)

        def work(db: Session) -> AvailabilityResponse:
            provider = self._load_provider(db, slug)
            offerings = ProviderRepository.get_offerings(db, provider.id, active_only=True)
            declared, occupied = load_day(db, provider.id, day)

            bookable = None
            if service_id is not None:
                offering = next((o for o in offerings if o.service_id == service_id), None)
                if offering is None:
                    raise ServiceNotAvailableForProvider(service_id)
                bookable = bookable_start_times(declared, occupied, offering.service.duration)

            return AvailabilityResponse(
                provider=provider_profile(provider),
                date=day.isoformat(),
                availableSlots=open_slots(declared, occupied),
                bookableTimes=bookable,
                serviceId=service_id,
                services=[service_offering(o) for o in offerings],
            )

        response = await run_in_session(self.session_factory, work, self.timeout)
        logger.debug(
            f"📅 Availability for {slug} on {day}: {len(response.availableSlots)} open slots"
        )
        return response
