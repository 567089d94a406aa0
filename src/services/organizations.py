"""
Organization service: authorization, slug uniqueness, dependent-record
summaries and directory listing for organization records.

Within each call the order is authorize, then existence and uniqueness
checks, then the store mutation.  Slug uniqueness is read-then-write; the
UNIQUE constraint on ``organizations.slug`` closes the window between two
concurrent writers (the store surfaces it as ConflictError).  The delete
precondition is not isolated from concurrent inserts of dependents.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any

from src.auth.context import AuthContext
from src.auth.permissions import (
    ORGANIZATIONS_CREATE,
    ORGANIZATIONS_DELETE,
    ORGANIZATIONS_LIST,
    ORGANIZATIONS_READ,
    ORGANIZATIONS_UPDATE,
)
from src.auth.policy import authorize
from src.db import DONATIONS, EVENTS, ORGANIZATIONS, VOLUNTEERS, RecordStore
from src.domain.errors import BadRequestError, ConflictError, NotFoundError, ValidationError
from src.domain.query import Pagination, QueryFilters, SortSpec, ensure_sortable, page_envelope, run_query
from src.models.organizations import OrganizationCreate, OrganizationUpdate
from src.observability import incr_metric, log_event

SEARCH_FIELDS = ("name", "slug", "description")
SORTABLE_FIELDS = frozenset({"name", "slug", "status", "created_at", "updated_at"})


class OrganizationService:
    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def create(self, data: OrganizationCreate, actor: AuthContext) -> dict[str, Any]:
        authorize(ORGANIZATIONS_CREATE, actor)

        if await self._store.get_by_field(ORGANIZATIONS, "slug", data.slug):
            raise ConflictError(f"Slug '{data.slug}' is already in use")

        organization = await self._store.create(ORGANIZATIONS, data.model_dump(mode="json"))

        incr_metric("organizations.created")
        log_event("organization_created", organization_id=organization["id"], user_id=actor.user_id)
        return organization

    async def exists(self, organization_id: str) -> bool:
        return await self._store.get_by_key(ORGANIZATIONS, organization_id) is not None

    async def get_by_id(self, organization_id: str, actor: AuthContext) -> dict[str, Any]:
        authorize(ORGANIZATIONS_READ, actor, organization_id)
        return await self._require(organization_id)

    async def list(
        self,
        filters: QueryFilters | None,
        sort: SortSpec | None,
        pagination: Pagination | None,
        actor: AuthContext,
    ) -> dict[str, Any]:
        """List the whole organization directory; not scoped to the caller."""
        authorize(ORGANIZATIONS_LIST, actor)

        sort = ensure_sortable(sort, SORTABLE_FIELDS)
        pagination = pagination or Pagination()
        filters = _with_search_fields(filters)

        snapshot = await self._store.list_all(ORGANIZATIONS)
        result = run_query(snapshot, filters, sort, pagination)
        return page_envelope(result, pagination)

    async def update(self, organization_id: str, patch: OrganizationUpdate, actor: AuthContext) -> dict[str, Any]:
        authorize(ORGANIZATIONS_UPDATE, actor, organization_id)

        update_data = patch.model_dump(mode="json", exclude_unset=True)
        if not update_data:
            raise ValidationError("No fields to update")

        await self._require(organization_id)

        slug = update_data.get("slug")
        if slug:
            holder = await self._store.get_by_field(ORGANIZATIONS, "slug", slug)
            if holder and holder["id"] != organization_id:
                raise ConflictError(f"Slug '{slug}' is already in use")

        organization = await self._store.update(ORGANIZATIONS, organization_id, update_data)
        if organization is None:
            raise NotFoundError("Organization not found")

        log_event(
            "organization_updated",
            organization_id=organization_id,
            user_id=actor.user_id,
            fields=sorted(update_data),
        )
        return organization

    async def get_summary(self, organization_id: str, actor: AuthContext) -> dict[str, Any]:
        authorize(ORGANIZATIONS_READ, actor, organization_id)
        organization = await self._require(organization_id)
        return await self._summarize(organization)

    async def delete(self, organization_id: str, actor: AuthContext) -> None:
        authorize(ORGANIZATIONS_DELETE, actor, organization_id)
        organization = await self._require(organization_id)

        summary = await self._summarize(organization)
        if summary["total_events"] or summary["total_volunteers"] or summary["total_donations"]:
            incr_metric("organizations.delete_blocked")
            log_event(
                "organization_delete_blocked",
                level=logging.WARNING,
                organization_id=organization_id,
                total_events=summary["total_events"],
                total_volunteers=summary["total_volunteers"],
                total_donations=summary["total_donations"],
            )
            raise BadRequestError("Organization has dependent records")

        await self._store.delete(ORGANIZATIONS, organization_id)
        incr_metric("organizations.deleted")
        log_event("organization_deleted", organization_id=organization_id, user_id=actor.user_id)

    async def _require(self, organization_id: str) -> dict[str, Any]:
        organization = await self._store.get_by_key(ORGANIZATIONS, organization_id)
        if organization is None:
            raise NotFoundError("Organization not found")
        return organization

    async def _summarize(self, organization: dict[str, Any]) -> dict[str, Any]:
        organization_id = organization["id"]
        total_events, total_volunteers, (total_donations, total_amount) = await asyncio.gather(
            self._store.count(EVENTS, {"organization_id": organization_id, "deleted_at": None}),
            self._store.count(VOLUNTEERS, {"organization_id": organization_id, "status": "active"}),
            self._donation_totals(organization_id),
        )
        return {
            "id": organization_id,
            "name": organization.get("name", ""),
            "total_events": total_events,
            "total_volunteers": total_volunteers,
            "total_donations": total_donations,
            "total_donation_amount": total_amount,
        }

    async def _donation_totals(self, organization_id: str) -> tuple[int, float]:
        where = {"organization_id": organization_id}
        count, amount = await asyncio.gather(
            self._store.count(DONATIONS, where),
            self._store.sum(DONATIONS, "amount", where),
        )
        return count, amount


def _with_search_fields(filters: QueryFilters | None) -> QueryFilters:
    filters = filters or QueryFilters()
    return replace(filters, search_fields=filters.search_fields or SEARCH_FIELDS)
