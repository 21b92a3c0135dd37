"""Catalog router - public listing of professionals and services"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...tenancy import get_tenant_id
from .schemas import ProfessionalResponse, ServiceResponse
from .service import CatalogService

router = APIRouter(prefix="/catalog", tags=["Catalog"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


@router.get("/professionals", response_model=list[ProfessionalResponse])
async def list_professionals(
    tenant_id: str = Depends(get_tenant_id),
    service: CatalogService = Depends(get_catalog_service),
):
    """Active professionals of the tenant"""
    return service.list_professionals(tenant_id)


@router.get("/services", response_model=list[ServiceResponse])
async def list_services(
    tenant_id: str = Depends(get_tenant_id),
    service: CatalogService = Depends(get_catalog_service),
):
    """Active services of the tenant"""
    return service.list_services(tenant_id)
