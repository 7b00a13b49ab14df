"""Catalog router - admin endpoints for services and provider types"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .schemas import (
    ProviderTypeCreate,
    ProviderTypeResponse,
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
)
from .service import CatalogService

router = APIRouter(prefix="/admin", tags=["Admin"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


@router.get("/services", response_model=list[ServiceResponse])
def get_services(
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.get_services()


@router.post("/services", response_model=ServiceResponse, status_code=201)
def create_service(
    data: ServiceCreate,
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create_service(data)


@router.patch("/services/{service_id}", response_model=ServiceResponse)
def update_service(
    service_id: int,
    data: ServiceUpdate,
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.update_service(service_id, data)


@router.delete("/services/{service_id}")
def delete_service(
    service_id: int,
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    service.delete_service(service_id)
    return {"success": True, "message": "Service deleted successfully"}


@router.get("/provider-types", response_model=list[ProviderTypeResponse])
def get_provider_types(
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.get_provider_types()


@router.post("/provider-types", response_model=ProviderTypeResponse, status_code=201)
def create_provider_type(
    data: ProviderTypeCreate,
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create_provider_type(data)
