from src.auth.context import AuthContext
from src.auth.dependencies import (
    get_current_auth,
    verify_token,
)
from src.auth.jwt import create_access_token

__all__ = [
    "AuthContext",
    "get_current_auth",
    "verify_token",
    "create_access_token",
]
