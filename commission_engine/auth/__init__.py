"""Authentication module."""

from commission_engine.auth.dependencies import AuthContext, get_auth_context
from commission_engine.auth.jwt import create_access_token, verify_token

__all__ = [
    "AuthContext",
    "create_access_token",
    "verify_token",
    "get_auth_context",
]
