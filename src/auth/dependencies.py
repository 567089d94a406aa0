import logging

from fastapi import Header
from src.auth.context import AuthContext
from src.auth.jwt import decode_access_token
from src.domain.errors import UnauthorizedError
from src.observability import incr_metric, log_event


def _extract_bearer_token(authorization: str | None) -> str | None:
    """Extract token from 'Bearer <token>' header."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def verify_token(token: str) -> AuthContext:
    """Verify a bearer credential and return the actor claims it carries."""
    payload = decode_access_token(token)
    if not payload:
        incr_metric("auth.token.rejected", reason="invalid")
        raise UnauthorizedError("Invalid or expired token")

    try:
        return AuthContext(
            user_id=payload["sub"],
            org_id=payload.get("org_id"),
            role=payload.get("role"),
        )
    except ValueError:
        incr_metric("auth.token.rejected", reason="role")
        log_event("auth_token_unsupported_role", level=logging.WARNING, user_id=payload["sub"])
        raise UnauthorizedError("Invalid or expired token")


async def get_current_auth(authorization: str | None = Header(None)) -> AuthContext:
    """Resolve actor claims from the Authorization header."""
    token = _extract_bearer_token(authorization)
    if not token:
        raise UnauthorizedError("Missing authorization header")
    return verify_token(token)
