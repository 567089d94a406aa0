from pydantic import BaseModel, EmailStr, Field, HttpUrl, field_validator, model_validator
from datetime import datetime
from src.models.common import RecordStatus, reject_null

SLUG_PATTERN = r"^[a-z0-9-]+$"


class OrganizationCreate(BaseModel):
    name: str = Field(min_length=3, max_length=100)
    slug: str = Field(min_length=3, max_length=50, pattern=SLUG_PATTERN)
    description: str | None = Field(None, max_length=500)
    address: str | None = Field(None, max_length=300)
    contact_email: EmailStr | None = None
    contact_phone: str | None = Field(None, max_length=20)
    website: HttpUrl | None = None
    digest_enabled: bool = True
    status: RecordStatus = "active"


class OrganizationUpdate(BaseModel):
    name: str | None = Field(None, min_length=3, max_length=100)
    slug: str | None = Field(None, min_length=3, max_length=50, pattern=SLUG_PATTERN)
    description: str | None = Field(None, max_length=500)
    address: str | None = Field(None, max_length=300)
    contact_email: EmailStr | None = None
    contact_phone: str | None = Field(None, max_length=20)
    website: HttpUrl | None = None
    digest_enabled: bool | None = None
    status: RecordStatus | None = None

    @field_validator("name", "slug", "digest_enabled", "status")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)

    @model_validator(mode="after")
    def _require_one_field(self) -> "OrganizationUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class OrganizationResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    address: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    website: str | None = None
    digest_enabled: bool = True
    status: RecordStatus = "active"
    created_at: datetime
    updated_at: datetime | None = None


class OrganizationSummary(BaseModel):
    id: str
    name: str
    total_events: int
    total_volunteers: int
    total_donations: int
    total_donation_amount: float
