from typing import Annotated
from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from datetime import datetime
from src.models.common import RecordStatus, reject_null


def _dedupe_skills(value: list[str]) -> list[str]:
    # Tags match case-insensitively in filters; keep the first spelling.
    seen: set[str] = set()
    skills: list[str] = []
    for skill in value:
        tag = skill.strip()
        if tag and tag.casefold() not in seen:
            seen.add(tag.casefold())
            skills.append(tag)
    return skills


Skills = Annotated[list[str], AfterValidator(_dedupe_skills)]


class VolunteerCreate(BaseModel):
    organization_id: str = Field(min_length=1)
    first_name: str = Field(min_length=2, max_length=100)
    last_name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    phone: str | None = Field(None, max_length=30)
    skills: Skills = Field(default_factory=list)
    status: RecordStatus = "active"


class VolunteerReplace(BaseModel):
    """Full replacement payload. organization_id is immutable and not accepted."""
    model_config = ConfigDict(extra="forbid")

    first_name: str = Field(min_length=2, max_length=100)
    last_name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    phone: str | None = Field(None, max_length=30)
    skills: Skills = Field(default_factory=list)
    status: RecordStatus = "active"


class VolunteerUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    first_name: str | None = Field(None, min_length=2, max_length=100)
    last_name: str | None = Field(None, min_length=2, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=30)
    skills: Skills | None = None
    status: RecordStatus | None = None

    @field_validator("first_name", "last_name", "email", "skills", "status")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)

    @model_validator(mode="after")
    def _require_one_field(self) -> "VolunteerUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class VolunteerResponse(BaseModel):
    id: str
    organization_id: str
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    skills: list[str] = Field(default_factory=list)
    status: RecordStatus = "active"
    created_at: datetime
    updated_at: datetime | None = None
