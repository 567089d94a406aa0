"""
Filter, sort and paginate a materialized collection snapshot.

The engine works on plain mapping records as returned by the record store.
It performs no I/O: callers fetch the snapshot (optionally pre-scoped by an
equality filter the store can evaluate natively) and hand it over, so the
same inputs always produce the same page.

Pipeline order is fixed: filters, then sort, then pagination.  ``total`` is
the size of the filtered set before pagination.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from src.domain.errors import ValidationError

DEFAULT_SORT_FIELD = "created_at"


@dataclass(frozen=True)
class QueryFilters:
    """Independent predicates combined with AND.

    - ``equals``: exact match per field (enum fields such as ``status``).
    - ``search``: case-insensitive substring, OR across ``search_fields``.
    - ``contains_all``: per tag field, the record must carry every listed tag.

    ``None`` or empty values impose no constraint.
    """

    equals: Mapping[str, Any] = field(default_factory=dict)
    search: str | None = None
    search_fields: tuple[str, ...] = ()
    contains_all: Mapping[str, Sequence[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class SortSpec:
    field: str = DEFAULT_SORT_FIELD
    descending: bool = True


@dataclass(frozen=True)
class Pagination:
    page: int = 1
    limit: int = 10

    def __post_init__(self) -> None:
        for name in ("page", "limit"):
            if getattr(self, name) < 1:
                raise ValidationError(
                    f"{name} must be >= 1",
                    details=[{"field": name, "message": "Must be greater than or equal to 1"}],
                )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class QueryResult:
    page: list[dict[str, Any]]
    total: int

    def total_pages(self, limit: int) -> int:
        return math.ceil(self.total / limit) if limit else 0


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).casefold()


def _matches_search(record: Mapping[str, Any], term: str, search_fields: Iterable[str]) -> bool:
    needle = term.casefold()
    return any(needle in _text(record.get(name)) for name in search_fields)


def _contains_all(record: Mapping[str, Any], tag_field: str, required: Sequence[str]) -> bool:
    have = {_text(tag) for tag in record.get(tag_field) or ()}
    return all(_text(tag) in have for tag in required)


def matches(record: Mapping[str, Any], filters: QueryFilters) -> bool:
    for name, expected in filters.equals.items():
        if expected is None:
            continue
        if record.get(name) != expected:
            return False
    if filters.search and not _matches_search(record, filters.search, filters.search_fields):
        return False
    for tag_field, required in filters.contains_all.items():
        if required and not _contains_all(record, tag_field, required):
            return False
    return True


def apply_filters(records: Iterable[dict[str, Any]], filters: QueryFilters | None) -> list[dict[str, Any]]:
    if filters is None:
        return list(records)
    return [record for record in records if matches(record, filters)]


def _sort_key(value: Any) -> tuple[int, float, str]:
    # Numbers order before text; missing values compare as the empty string.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, float(value), "")
    if hasattr(value, "isoformat"):
        return (1, 0.0, value.isoformat())
    return (1, 0.0, _text(value))


def apply_sort(records: list[dict[str, Any]], sort: SortSpec | None) -> list[dict[str, Any]]:
    spec = sort or SortSpec()
    return sorted(records, key=lambda record: _sort_key(record.get(spec.field)), reverse=spec.descending)


def apply_pagination(records: list[dict[str, Any]], pagination: Pagination | None) -> list[dict[str, Any]]:
    if pagination is None:
        return records
    return records[pagination.offset:pagination.offset + pagination.limit]


def run_query(
    records: Iterable[dict[str, Any]],
    filters: QueryFilters | None = None,
    sort: SortSpec | None = None,
    pagination: Pagination | None = None,
) -> QueryResult:
    filtered = apply_filters(records, filters)
    ordered = apply_sort(filtered, sort)
    return QueryResult(page=apply_pagination(ordered, pagination), total=len(filtered))


def ensure_sortable(sort: SortSpec | None, allowed: frozenset[str] | set[str]) -> SortSpec:
    """Reject sort fields outside the collection's whitelist.

    Known fields missing on individual records still sort as the empty string.
    """
    spec = sort or SortSpec()
    if spec.field not in allowed:
        raise ValidationError(
            f"Cannot sort by '{spec.field}'",
            details=[{"field": "sort_by", "message": f"Must be one of: {', '.join(sorted(allowed))}"}],
        )
    return spec


def page_envelope(result: QueryResult, pagination: Pagination) -> dict[str, Any]:
    return {
        "data": result.page,
        "total": result.total,
        "page": pagination.page,
        "limit": pagination.limit,
        "total_pages": result.total_pages(pagination.limit),
    }
