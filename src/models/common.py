from typing import Any, Generic, Literal, TypeVar
from pydantic import BaseModel

T = TypeVar("T")

SortOrder = Literal["asc", "desc"]
RecordStatus = Literal["active", "inactive"]


class PageResponse(BaseModel, Generic[T]):
    data: list[T]
    total: int
    page: int
    limit: int
    total_pages: int


class ErrorDetail(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    status: int
    code: str
    message: str
    details: list[ErrorDetail] | None = None


def field_errors(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    """Flatten pydantic error dicts into ``{field, message}`` pairs."""
    details = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(loc) or "body", "message": error.get("msg", "Invalid value")})
    return details


def reject_null(value: Any) -> Any:
    """Field validator for PATCH fields that may be omitted but never cleared."""
    if value is None:
        raise ValueError("Field cannot be null")
    return value
