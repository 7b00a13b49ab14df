"""Provider router - admin endpoints for providers and their service offerings"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import User
from ...rate_limiter import get_client_ip
from .schemas import (
    OfferingCreate,
    OfferingResponse,
    OfferingUpdate,
    ProviderCreate,
    ProviderResponse,
    ProviderUpdate,
)
from .service import ProviderAdminService, offering_response, to_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/providers", tags=["Admin"])


def get_provider_service(db: Session = Depends(get_db)) -> ProviderAdminService:
    """Dependency injection for ProviderAdminService"""
    return ProviderAdminService(db)


@router.get("", response_model=list[ProviderResponse])
def get_providers(
    _admin: User = Depends(require_admin),
    service: ProviderAdminService = Depends(get_provider_service),
):
    return [to_response(p) for p in service.get_providers()]


@router.post("", response_model=ProviderResponse, status_code=201)
def create_provider(
    data: ProviderCreate,
    request: Request,
    admin: User = Depends(require_admin),
    service: ProviderAdminService = Depends(get_provider_service),
):
    """Create a provider and its login account"""
    return to_response(service.create_provider(data, admin, get_client_ip(request)))


@router.get("/{provider_id}", response_model=ProviderResponse)
def get_provider(
    provider_id: int,
    _admin: User = Depends(require_admin),
    service: ProviderAdminService = Depends(get_provider_service),
):
    return to_response(service.get_provider(provider_id))


@router.patch("/{provider_id}", response_model=ProviderResponse)
def update_provider(
    provider_id: int,
    data: ProviderUpdate,
    request: Request,
    _admin: User = Depends(require_admin),
    service: ProviderAdminService = Depends(get_provider_service),
):
    return to_response(service.update_provider(provider_id, data, get_client_ip(request)))


# ============================================================================
# SERVICE OFFERINGS
# ============================================================================


@router.get("/{provider_id}/services", response_model=list[OfferingResponse])
def get_provider_services(
    provider_id: int,
    current_user: User = Depends(get_current_user),
    service: ProviderAdminService = Depends(get_provider_service),
):
    """Offerings of a provider; providers may read their own"""
    return [offering_response(o) for o in service.get_offerings(provider_id, current_user)]


@router.post("/{provider_id}/services", response_model=OfferingResponse, status_code=201)
def add_provider_service(
    provider_id: int,
    data: OfferingCreate,
    request: Request,
    _admin: User = Depends(require_admin),
    service: ProviderAdminService = Depends(get_provider_service),
):
    return offering_response(service.add_offering(provider_id, data, get_client_ip(request)))


@router.patch("/{provider_id}/services/{service_id}", response_model=OfferingResponse)
def update_provider_service(
    provider_id: int,
    service_id: int,
    data: OfferingUpdate,
    request: Request,
    _admin: User = Depends(require_admin),
    service: ProviderAdminService = Depends(get_provider_service),
):
    """Change price or active flag of an offering"""
    return offering_response(
        service.update_offering(provider_id, service_id, data, get_client_ip(request))
    )


@router.delete("/{provider_id}/services/{service_id}")
def remove_provider_service(
    provider_id: int,
    service_id: int,
    request: Request,
    _admin: User = Depends(require_admin),
    service: ProviderAdminService = Depends(get_provider_service),
):
    deleted = service.remove_offering(provider_id, service_id, get_client_ip(request))
    message = "Service removed successfully" if deleted else "Service deactivated (has appointments)"
    return {"success": True, "deleted": deleted, "message": message}
