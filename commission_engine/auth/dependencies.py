"""
FastAPI dependencies for authentication and tenant resolution.
"""

from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.auth.jwt import get_token, verify_token
from commission_engine.db import get_db
from commission_engine.errors import UnauthorizedError
from commission_engine.models import Organization, User, UserRole


@dataclass(frozen=True)
class AuthContext:
    """The authenticated user and the organization they act for."""

    user: User
    organization: Organization

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def organization_id(self) -> int:
        return self.organization.id

    @property
    def role(self) -> UserRole:
        return self.user.role


async def get_auth_context(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """
    Resolve the caller's user and organization.

    Raises UnauthorizedError if there is no valid session, the user is
    inactive, or the user no longer belongs to the token's organization.
    """
    token = get_token(request)
    if not token:
        raise UnauthorizedError("Not authenticated")

    payload = verify_token(token)
    if not payload:
        raise UnauthorizedError("Invalid or expired token")

    result = await db.execute(
        select(User, Organization)
        .join(Organization, Organization.id == User.organization_id)
        .where(
            User.id == payload["user_id"],
            User.organization_id == payload["organization_id"],
        )
    )
    row = result.one_or_none()
    if row is None:
        raise UnauthorizedError("User not found")

    user, organization = row
    if not user.is_active:
        raise UnauthorizedError("User account is disabled")

    return AuthContext(user=user, organization=organization)
