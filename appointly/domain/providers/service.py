"""Provider service - Business logic for provider administration"""

import logging
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import ensure_provider_access
from ...models import Appointment, Provider, ProviderService, User
from ...security_utils import hash_password_bcrypt
from ...services.audit_service import record_audit
from ...shared.validators import slugify
from ..catalog.repository import CatalogRepository
from ..scheduling import slot_grid
from ..scheduling.exceptions import ProviderNotFound
from .repository import ProviderRepository
from .schemas import (
    OfferingCreate,
    OfferingResponse,
    OfferingUpdate,
    ProviderCreate,
    ProviderResponse,
    ProviderUpdate,
)

logger = logging.getLogger(__name__)


def to_response(provider: Provider) -> ProviderResponse:
    return ProviderResponse(
        id=provider.id,
        name=provider.name,
        bio=provider.bio,
        slug=provider.slug,
        providerTypeId=provider.provider_type_id,
        providerType=provider.provider_type.name if provider.provider_type else None,
        username=provider.user.username if provider.user else None,
        email=provider.user.email if provider.user else None,
        created_at=provider.created_at,
    )


def offering_response(offering: ProviderService) -> OfferingResponse:
    return OfferingResponse(
        id=offering.id,
        serviceId=offering.service_id,
        name=offering.service.name,
        duration=slot_grid.resolve_duration(offering.service.duration),
        price=float(offering.price or 0),
        active=offering.active,
    )


class ProviderAdminService:
    """Service layer for provider administration"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProviderRepository()

    def get_providers(self) -> list[Provider]:
        return self.repo.get_providers(self.db)

    def get_provider(self, provider_id: int) -> Provider:
        provider = self.repo.get_provider_by_id(self.db, provider_id)
        if not provider:
            raise ProviderNotFound(provider_id)
        return provider

    def _check_provider_type(self, type_id: Optional[int]) -> None:
        if type_id is not None and not CatalogRepository.get_provider_type(self.db, type_id):
            raise HTTPException(status_code=404, detail="Provider type not found")

    def create_provider(
        self, data: ProviderCreate, admin: User, ip_address: Optional[str] = None
    ) -> Provider:
        """Create a provider account and its login user"""
        logger.info(f"📥 Creating provider {data.name} by admin {admin.username}")

        existing_user = (
            self.db.query(User)
            .filter((User.username == data.username) | (User.email == data.email))
            .first()
        )
        if existing_user:
            raise HTTPException(status_code=409, detail="Username or email already exists")

        slug = data.slug or slugify(data.name)
        if self.repo.slug_exists(self.db, slug):
            raise HTTPException(status_code=409, detail="This slug is already in use")

        self._check_provider_type(data.providerTypeId)

        user = User(
            username=data.username,
            email=data.email,
            password_hash=hash_password_bcrypt(data.password),
            role="provider",
        )
        provider = self.repo.create_provider(
            self.db,
            user,
            name=data.name,
            bio=data.bio,
            slug=slug,
            provider_type_id=data.providerTypeId,
        )

        record_audit(
            self.db,
            provider.id,
            f"Admin created provider account for {provider.name}",
            details=f"Created by admin {admin.username}",
            ip_address=ip_address,
        )
        self.db.commit()

        logger.info(f"✅ Provider {provider.id} created with slug {slug}")
        return self.get_provider(provider.id)

    def update_provider(
        self, provider_id: int, data: ProviderUpdate, ip_address: Optional[str] = None
    ) -> Provider:
        provider = self.get_provider(provider_id)

        if data.slug is not None and data.slug != provider.slug:
            # Booking links and history refer to the slug
            if self.repo.has_appointments(self.db, provider_id):
                raise HTTPException(
                    status_code=409,
                    detail="Slug cannot be changed once the provider has appointments",
                )
            if self.repo.slug_exists(self.db, data.slug):
                raise HTTPException(status_code=409, detail="This slug is already in use")

        self._check_provider_type(data.providerTypeId)

        updates = {
            "name": data.name.strip() if data.name else None,
            "bio": data.bio,
            "slug": data.slug,
            "provider_type_id": data.providerTypeId,
        }
        provider = self.repo.update_provider(self.db, provider, **updates)

        record_audit(
            self.db,
            provider_id,
            "Provider profile updated",
            details={k: v for k, v in updates.items() if v is not None},
            ip_address=ip_address,
        )
        self.db.commit()
        return self.get_provider(provider_id)

    # Offerings
    def get_offerings(self, provider_id: int, user: User) -> list[ProviderService]:
        ensure_provider_access(user, provider_id)
        self.get_provider(provider_id)
        return self.repo.get_offerings(self.db, provider_id)

    def add_offering(
        self, provider_id: int, data: OfferingCreate, ip_address: Optional[str] = None
    ) -> ProviderService:
        self.get_provider(provider_id)

        service = CatalogRepository.get_service(self.db, data.serviceId)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")

        if self.repo.get_offering(self.db, provider_id, data.serviceId):
            raise HTTPException(
                status_code=409, detail="This service is already added for this provider"
            )

        offering = self.repo.add_offering(
            self.db, provider_id, service, Decimal(str(data.price)), data.active
        )
        record_audit(
            self.db,
            provider_id,
            f"Service {service.name} added at {data.price:.2f}",
            ip_address=ip_address,
        )
        self.db.commit()
        return self.repo.get_offering(self.db, provider_id, data.serviceId) or offering

    def _get_offering(self, provider_id: int, service_id: int) -> ProviderService:
        offering = self.repo.get_offering(self.db, provider_id, service_id)
        if not offering:
            raise HTTPException(status_code=404, detail="Service not offered by this provider")
        return offering

    def update_offering(
        self,
        provider_id: int,
        service_id: int,
        data: OfferingUpdate,
        ip_address: Optional[str] = None,
    ) -> ProviderService:
        offering = self._get_offering(provider_id, service_id)

        if data.price is not None:
            offering.price = Decimal(str(round(data.price, 2)))
        if data.active is not None:
            offering.active = data.active

        record_audit(
            self.db,
            provider_id,
            f"Service {offering.service.name} updated",
            details=data.model_dump(exclude_none=True),
            ip_address=ip_address,
        )
        self.db.commit()
        return self._get_offering(provider_id, service_id)

    def remove_offering(
        self, provider_id: int, service_id: int, ip_address: Optional[str] = None
    ) -> bool:
        """
        Remove an offering. Offerings that appointments refer to are deactivated
        instead so existing appointments keep their service link.
        Returns True when the row was deleted.
        """
        offering = self._get_offering(provider_id, service_id)
        name = offering.service.name

        referenced = (
            self.db.query(Appointment.id)
            .filter(Appointment.provider_service_id == offering.id)
            .first()
            is not None
        )

        if referenced:
            offering.active = False
            action = f"Service {name} deactivated"
        else:
            self.db.delete(offering)
            action = f"Service {name} removed"

        record_audit(self.db, provider_id, action, ip_address=ip_address)
        self.db.commit()
        logger.info(f"🗑️ {action} for provider {provider_id}")
        return not referenced
