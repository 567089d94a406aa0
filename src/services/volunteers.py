"""
Volunteer service: volunteer records scoped to their organization.

Reads and writes are only permitted inside the actor's own organization.
For calls addressing a volunteer by id, the role is checked first, then the
record is loaded, then ownership is checked against the volunteer's
``organization_id``.  ``organization_id`` never changes after creation.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from src.auth.context import AuthContext
from src.auth.permissions import (
    VOLUNTEERS_CREATE,
    VOLUNTEERS_DELETE,
    VOLUNTEERS_READ,
    VOLUNTEERS_UPDATE,
)
from src.auth.policy import authorize, authorize_role
from src.db import VOLUNTEERS, RecordStore
from src.domain.errors import BadRequestError, NotFoundError, ValidationError
from src.domain.query import Pagination, QueryFilters, SortSpec, ensure_sortable, page_envelope, run_query
from src.models.volunteers import VolunteerCreate, VolunteerReplace, VolunteerUpdate
from src.observability import incr_metric, log_event
from src.services.organizations import OrganizationService

SEARCH_FIELDS = ("first_name", "last_name", "email")
SORTABLE_FIELDS = frozenset({"first_name", "last_name", "email", "status", "created_at", "updated_at"})


class VolunteerService:
    def __init__(self, store: RecordStore, organizations: OrganizationService | None = None) -> None:
        self._store = store
        self._organizations = organizations or OrganizationService(store)

    async def create(self, data: VolunteerCreate, actor: AuthContext) -> dict[str, Any]:
        authorize(VOLUNTEERS_CREATE, actor, data.organization_id)

        if not await self._organizations.exists(data.organization_id):
            raise BadRequestError("Organization not found")

        # No uniqueness is enforced on email.
        volunteer = await self._store.create(VOLUNTEERS, data.model_dump(mode="json"))

        incr_metric("volunteers.created")
        log_event(
            "volunteer_created",
            volunteer_id=volunteer["id"],
            organization_id=data.organization_id,
            user_id=actor.user_id,
        )
        return volunteer

    async def get_by_id(self, volunteer_id: str, actor: AuthContext) -> dict[str, Any]:
        return await self._load_for(VOLUNTEERS_READ, volunteer_id, actor)

    async def list(
        self,
        organization_id: str | None,
        filters: QueryFilters | None,
        sort: SortSpec | None,
        pagination: Pagination | None,
        actor: AuthContext,
    ) -> dict[str, Any]:
        """List volunteers of one organization, defaulting to the actor's own."""
        scope = organization_id or actor.org_id
        authorize(VOLUNTEERS_READ, actor, scope)

        sort = ensure_sortable(sort, SORTABLE_FIELDS)
        pagination = pagination or Pagination()
        filters = filters or QueryFilters()
        filters = replace(filters, search_fields=filters.search_fields or SEARCH_FIELDS)

        snapshot = await self._store.list_where(VOLUNTEERS, "organization_id", scope)
        result = run_query(snapshot, filters, sort, pagination)
        return page_envelope(result, pagination)

    async def update(self, volunteer_id: str, patch: VolunteerUpdate, actor: AuthContext) -> dict[str, Any]:
        update_data = patch.model_dump(mode="json", exclude_unset=True)
        return await self._apply(volunteer_id, update_data, actor)

    async def replace(self, volunteer_id: str, data: VolunteerReplace, actor: AuthContext) -> dict[str, Any]:
        return await self._apply(volunteer_id, data.model_dump(mode="json"), actor)

    async def delete(self, volunteer_id: str, actor: AuthContext) -> None:
        volunteer = await self._load_for(VOLUNTEERS_DELETE, volunteer_id, actor)
        await self._store.delete(VOLUNTEERS, volunteer_id)
        incr_metric("volunteers.deleted")
        log_event(
            "volunteer_deleted",
            volunteer_id=volunteer_id,
            organization_id=volunteer["organization_id"],
            user_id=actor.user_id,
        )

    async def _apply(self, volunteer_id: str, update_data: dict[str, Any], actor: AuthContext) -> dict[str, Any]:
        if "organization_id" in update_data:
            raise ValidationError(
                "organization_id cannot be changed",
                details=[{"field": "organization_id", "message": "Field is immutable"}],
            )
        if not update_data:
            raise ValidationError("No fields to update")

        await self._load_for(VOLUNTEERS_UPDATE, volunteer_id, actor)

        volunteer = await self._store.update(VOLUNTEERS, volunteer_id, update_data)
        if volunteer is None:
            raise NotFoundError("Volunteer not found")

        log_event(
            "volunteer_updated",
            volunteer_id=volunteer_id,
            user_id=actor.user_id,
            fields=sorted(update_data),
        )
        return volunteer

    async def _load_for(self, operation: str, volunteer_id: str, actor: AuthContext) -> dict[str, Any]:
        authorize_role(operation, actor)
        volunteer = await self._store.get_by_key(VOLUNTEERS, volunteer_id)
        if volunteer is None:
            raise NotFoundError("Volunteer not found")
        authorize(operation, actor, volunteer.get("organization_id"))
        return volunteer
