from pydantic import BaseModel


class MeResponse(BaseModel):
    user_id: str
    org_id: str | None
    role: str
    permissions: list[str]
