"""Provider repository - Database operations for providers and their offerings"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, Provider, ProviderService, ProviderType, Service, User


class ProviderRepository:
    """Repository for provider database operations"""

    @staticmethod
    def get_providers(db: Session) -> list[Provider]:
        return (
            db.query(Provider)
            .options(joinedload(Provider.user), joinedload(Provider.provider_type))
            .order_by(Provider.name.asc())
            .all()
        )

    @staticmethod
    def get_provider_by_id(db: Session, provider_id: int) -> Optional[Provider]:
        return (
            db.query(Provider)
            .options(joinedload(Provider.user), joinedload(Provider.provider_type))
            .filter(Provider.id == provider_id)
            .first()
        )

    @staticmethod
    def get_provider_by_slug(db: Session, slug: str) -> Optional[Provider]:
        """Get a provider by its public booking slug"""
        return (
            db.query(Provider)
            .options(joinedload(Provider.user))
            .filter(Provider.slug == slug)
            .first()
        )

    @staticmethod
    def lock_provider(db: Session, provider_id: int) -> Optional[Provider]:
        """Take a row lock on the provider for the rest of the transaction"""
        return db.query(Provider).filter(Provider.id == provider_id).with_for_update().first()

    @staticmethod
    def slug_exists(db: Session, slug: str) -> bool:
        return db.query(Provider.id).filter(Provider.slug == slug).first() is not None

    @staticmethod
    def has_appointments(db: Session, provider_id: int) -> bool:
        return (
            db.query(Appointment.id).filter(Appointment.provider_id == provider_id).first()
            is not None
        )

    @staticmethod
    def create_provider(db: Session, user: User, **provider_data) -> Provider:
        """Create a provider together with its login user"""
        db.add(user)
        db.flush()
        provider = Provider(user_id=user.id, **provider_data)
        db.add(provider)
        db.commit()
        db.refresh(provider)
        return provider

    @staticmethod
    def update_provider(db: Session, provider: Provider, **updates) -> Provider:
        for key, value in updates.items():
            if value is not None and hasattr(provider, key):
                setattr(provider, key, value)

        db.commit()
        db.refresh(provider)
        return provider

    # Offering Methods
    @staticmethod
    def get_offerings(
        db: Session, provider_id: int, active_only: bool = False
    ) -> list[ProviderService]:
        query = (
            db.query(ProviderService)
            .options(joinedload(ProviderService.service))
            .filter(ProviderService.provider_id == provider_id)
        )
        if active_only:
            query = query.filter(ProviderService.active.is_(True))
        return query.order_by(ProviderService.id.asc()).all()

    @staticmethod
    def get_offering(db: Session, provider_id: int, service_id: int) -> Optional[ProviderService]:
        return (
            db.query(ProviderService)
            .options(joinedload(ProviderService.service))
            .filter(
                ProviderService.provider_id == provider_id,
                ProviderService.service_id == service_id,
            )
            .first()
        )

    @staticmethod
    def get_active_offering(
        db: Session, provider_id: int, service_id: int
    ) -> Optional[ProviderService]:
        """Bookable offering: exists for this provider and is active"""
        return (
            db.query(ProviderService)
            .options(joinedload(ProviderService.service))
            .filter(
                ProviderService.provider_id == provider_id,
                ProviderService.service_id == service_id,
                ProviderService.active.is_(True),
            )
            .first()
        )

    @staticmethod
    def add_offering(
        db: Session, provider_id: int, service: Service, price, active: bool = True
    ) -> ProviderService:
        offering = ProviderService(
            provider_id=provider_id, service_id=service.id, price=price, active=active
        )
        db.add(offering)
        db.commit()
        db.refresh(offering)
        return offering

    @staticmethod
    def count_by_type(db: Session) -> list[tuple[Optional[str], int]]:
        return (
            db.query(ProviderType.name, func.count(Provider.id))
            .select_from(Provider)
            .outerjoin(ProviderType, Provider.provider_type_id == ProviderType.id)
            .group_by(ProviderType.name)
            .all()
        )
