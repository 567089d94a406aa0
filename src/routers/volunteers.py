from fastapi import APIRouter, Depends, Query, status
from src.auth import AuthContext, get_current_auth
from src.config import settings
from src.db import RecordStore, get_store
from src.domain.query import Pagination, QueryFilters, SortSpec
from src.models.common import PageResponse, RecordStatus, SortOrder
from src.models.volunteers import (
    VolunteerCreate,
    VolunteerReplace,
    VolunteerResponse,
    VolunteerUpdate,
)
from src.services import OrganizationService, VolunteerService

router = APIRouter(prefix="/api/v1/volunteers", tags=["volunteers"])


def get_volunteer_service(store: RecordStore = Depends(get_store)) -> VolunteerService:
    return VolunteerService(store, OrganizationService(store))


def _parse_skills(skills: str | None) -> list[str]:
    if not skills:
        return []
    return [skill.strip() for skill in skills.split(",") if skill.strip()]


@router.post("/", response_model=VolunteerResponse, status_code=status.HTTP_201_CREATED)
async def create_volunteer(
    data: VolunteerCreate,
    auth: AuthContext = Depends(get_current_auth),
    service: VolunteerService = Depends(get_volunteer_service),
):
    """Create a volunteer in an existing organization."""
    return await service.create(data, auth)


@router.get("/", response_model=PageResponse[VolunteerResponse])
async def list_volunteers(
    organization_id: str | None = Query(None),
    search: str | None = Query(None),
    status_filter: RecordStatus | None = Query(None, alias="status"),
    skills: str | None = Query(None, description="Comma-separated; every skill must match"),
    sort_by: str = Query("created_at"),
    sort_order: SortOrder = Query("desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_limit, ge=1, le=settings.max_page_limit),
    auth: AuthContext = Depends(get_current_auth),
    service: VolunteerService = Depends(get_volunteer_service),
):
    """List volunteers of an organization. Defaults to the caller's organization."""
    return await service.list(
        organization_id,
        QueryFilters(
            equals={"status": status_filter},
            search=search,
            contains_all={"skills": _parse_skills(skills)},
        ),
        SortSpec(field=sort_by, descending=sort_order == "desc"),
        Pagination(page=page, limit=limit),
        auth,
    )


@router.get("/{volunteer_id}", response_model=VolunteerResponse)
async def get_volunteer(
    volunteer_id: str,
    auth: AuthContext = Depends(get_current_auth),
    service: VolunteerService = Depends(get_volunteer_service),
):
    """Get a volunteer by ID."""
    return await service.get_by_id(volunteer_id, auth)


@router.patch("/{volunteer_id}", response_model=VolunteerResponse)
async def update_volunteer(
    volunteer_id: str,
    data: VolunteerUpdate,
    auth: AuthContext = Depends(get_current_auth),
    service: VolunteerService = Depends(get_volunteer_service),
):
    """Partially update a volunteer."""
    return await service.update(volunteer_id, data, auth)


@router.put("/{volunteer_id}", response_model=VolunteerResponse)
async def replace_volunteer(
    volunteer_id: str,
    data: VolunteerReplace,
    auth: AuthContext = Depends(get_current_auth),
    service: VolunteerService = Depends(get_volunteer_service),
):
    """Replace all editable fields of a volunteer."""
    return await service.replace(volunteer_id, data, auth)


@router.delete("/{volunteer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_volunteer(
    volunteer_id: str,
    auth: AuthContext = Depends(get_current_auth),
    service: VolunteerService = Depends(get_volunteer_service),
):
    """Delete a volunteer."""
    await service.delete(volunteer_id, auth)
    return None
