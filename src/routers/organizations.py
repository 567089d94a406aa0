from fastapi import APIRouter, Depends, Query, status
from src.auth import AuthContext, get_current_auth
from src.config import settings
from src.db import RecordStore, get_store
from src.domain.query import Pagination, QueryFilters, SortSpec
from src.models.common import PageResponse, RecordStatus, SortOrder
from src.models.organizations import (
    OrganizationCreate,
    OrganizationResponse,
    OrganizationSummary,
    OrganizationUpdate,
)
from src.services import OrganizationService

router = APIRouter(prefix="/api/v1/organizations", tags=["organizations"])


def get_organization_service(store: RecordStore = Depends(get_store)) -> OrganizationService:
    return OrganizationService(store)


@router.post("/", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
async def create_organization(
    data: OrganizationCreate,
    auth: AuthContext = Depends(get_current_auth),
    service: OrganizationService = Depends(get_organization_service),
):
    """Create an organization. Admin only; slug must be unused."""
    return await service.create(data, auth)


@router.get("/", response_model=PageResponse[OrganizationResponse])
async def list_organizations(
    search: str | None = Query(None),
    status_filter: RecordStatus | None = Query(None, alias="status"),
    sort_by: str = Query("created_at"),
    sort_order: SortOrder = Query("desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_limit, ge=1, le=settings.max_page_limit),
    auth: AuthContext = Depends(get_current_auth),
    service: OrganizationService = Depends(get_organization_service),
):
    """List the organization directory with filtering, sorting and pagination."""
    return await service.list(
        QueryFilters(equals={"status": status_filter}, search=search),
        SortSpec(field=sort_by, descending=sort_order == "desc"),
        Pagination(page=page, limit=limit),
        auth,
    )


@router.get("/{org_id}", response_model=OrganizationResponse)
async def get_organization(
    org_id: str,
    auth: AuthContext = Depends(get_current_auth),
    service: OrganizationService = Depends(get_organization_service),
):
    """Get organization by ID. Must match the actor's organization."""
    return await service.get_by_id(org_id, auth)


@router.patch("/{org_id}", response_model=OrganizationResponse)
async def update_organization(
    org_id: str,
    data: OrganizationUpdate,
    auth: AuthContext = Depends(get_current_auth),
    service: OrganizationService = Depends(get_organization_service),
):
    """Partially update an organization. Admin or manager of that organization."""
    return await service.update(org_id, data, auth)


@router.get("/{org_id}/summary", response_model=OrganizationSummary)
async def get_organization_summary(
    org_id: str,
    auth: AuthContext = Depends(get_current_auth),
    service: OrganizationService = Depends(get_organization_service),
):
    """Counts of events, active volunteers and donations for the organization."""
    return await service.get_summary(org_id, auth)


@router.delete("/{org_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_organization(
    org_id: str,
    auth: AuthContext = Depends(get_current_auth),
    service: OrganizationService = Depends(get_organization_service),
):
    """Delete an organization that has no dependent records. Admin only."""
    await service.delete(org_id, auth)
    return None
