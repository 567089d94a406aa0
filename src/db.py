"""
Record store for the service layer.

``RecordStore`` is the contract the services consume; ``SupabaseRecordStore``
implements it over the Supabase/PostgREST async client.  The store is built
and initialized once at application start-up, handed to the services through
``get_store`` and shut down when the application exits.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Protocol
from uuid import uuid4

from fastapi import Request
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from src.domain.errors import BadRequestError, ConflictError, ValidationError
from src.observability import log_event

ORGANIZATIONS = "organizations"
VOLUNTEERS = "volunteers"
EVENTS = "events"
DONATIONS = "donations"

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NOT_NULL_VIOLATION = "23502"

Record = dict[str, Any]


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class RecordStore(Protocol):
    async def initialize(self) -> None: ...

    async def shutdown(self) -> None: ...

    async def get_by_key(self, collection: str, record_id: str) -> Record | None: ...

    async def get_by_field(self, collection: str, field: str, value: Any) -> Record | None: ...

    async def list_all(self, collection: str) -> list[Record]: ...

    async def list_where(self, collection: str, field: str, value: Any) -> list[Record]: ...

    async def create(self, collection: str, data: Record) -> Record: ...

    async def update(self, collection: str, record_id: str, patch: Record) -> Record | None: ...

    async def delete(self, collection: str, record_id: str) -> None: ...

    async def count(self, collection: str, where: Record) -> int: ...

    async def sum(self, collection: str, field: str, where: Record) -> float: ...


class SupabaseRecordStore:
    """RecordStore backed by Supabase tables, one table per collection.

    ``where`` mappings are equality predicates; a ``None`` value matches
    rows where the column IS NULL.
    """

    def __init__(
        self,
        *,
        url: str | None = None,
        key: str | None = None,
        client: AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._key = key
        self._client = client

    @classmethod
    def from_settings(cls, settings: Any) -> "SupabaseRecordStore":
        return cls(url=settings.supabase_url, key=settings.supabase_service_role_key)

    async def initialize(self) -> None:
        if self._client is not None:
            return
        if not self._url or not self._key:
            raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        self._client = await acreate_client(self._url, self._key)
        log_event("record_store_initialized", backend="supabase")

    async def shutdown(self) -> None:
        self._client = None
        log_event("record_store_shutdown", backend="supabase")

    @property
    def client(self) -> AsyncClient:
        if self._client is None:
            raise RuntimeError("Record store is not initialized")
        return self._client

    def _where(self, query, where: Record):
        for field, value in where.items():
            if value is None:
                query = query.is_(field, "null")
            else:
                query = query.eq(field, value)
        return query

    async def get_by_key(self, collection: str, record_id: str) -> Record | None:
        return await self.get_by_field(collection, "id", record_id)

    async def get_by_field(self, collection: str, field: str, value: Any) -> Record | None:
        result = await self.client.table(collection).select("*").eq(field, value).limit(1).execute()
        if not result.data:
            return None
        return result.data[0]

    async def list_all(self, collection: str) -> list[Record]:
        result = await self.client.table(collection).select("*").execute()
        return result.data or []

    async def list_where(self, collection: str, field: str, value: Any) -> list[Record]:
        query = self._where(self.client.table(collection).select("*"), {field: value})
        result = await query.execute()
        return result.data or []

    async def create(self, collection: str, data: Record) -> Record:
        now = _utcnow()
        row = {**data, "id": str(uuid4()), "created_at": now, "updated_at": now}
        try:
            result = await self.client.table(collection).insert(row).execute()
        except APIError as exc:
            raise self._translate(collection, exc)
        return result.data[0]

    async def update(self, collection: str, record_id: str, patch: Record) -> Record | None:
        update_data = {**patch, "updated_at": _utcnow()}
        update_data.pop("id", None)
        update_data.pop("created_at", None)
        try:
            result = await self.client.table(collection).update(update_data).eq("id", record_id).execute()
        except APIError as exc:
            raise self._translate(collection, exc)
        if not result.data:
            return None
        return result.data[0]

    async def delete(self, collection: str, record_id: str) -> None:
        try:
            await self.client.table(collection).delete().eq("id", record_id).execute()
        except APIError as exc:
            raise self._translate(collection, exc)

    async def count(self, collection: str, where: Record) -> int:
        query = self._where(self.client.table(collection).select("id", count="exact"), where)
        result = await query.execute()
        if result.count is not None:
            return result.count
        return len(result.data or [])

    async def sum(self, collection: str, field: str, where: Record) -> float:
        query = self._where(self.client.table(collection).select(field), where)
        result = await query.execute()
        return float(sum(row.get(field) or 0 for row in result.data or []))

    def _translate(self, collection: str, exc: APIError) -> Exception:
        if exc.code == UNIQUE_VIOLATION:
            log_event("record_store_unique_violation", level=logging.WARNING, collection=collection)
            return ConflictError(f"Duplicate value in {collection}")
        if exc.code == FOREIGN_KEY_VIOLATION:
            log_event("record_store_reference_violation", level=logging.WARNING, collection=collection)
            return BadRequestError("Record is still referenced by dependent records")
        if exc.code == NOT_NULL_VIOLATION:
            log_event("record_store_not_null_violation", level=logging.WARNING, collection=collection)
            return ValidationError("A required field is missing")
        return exc


def get_store(request: Request) -> RecordStore:
    """FastAPI dependency returning the store built in the app lifespan."""
    return request.app.state.store
