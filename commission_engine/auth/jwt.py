"""
JWT token management.

Tokens are issued by the authentication service and carried either in
the httpOnly ``access_token`` cookie or in an ``Authorization: Bearer``
header.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from commission_engine.config import settings

# JWT configuration
ALGORITHM = "HS256"
TOKEN_TYPE = "access"
COOKIE_NAME = "access_token"


def create_access_token(
    user_id: int,
    organization_id: int,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        user_id: User's database ID
        organization_id: Organization the session is opened in
        role: User's role (admin/advisor)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(hours=settings.jwt_expire_hours)

    payload = {
        "sub": str(user_id),
        "org": str(organization_id),
        "role": str(role.value if hasattr(role, "value") else role),
        "exp": expire,
        "type": TOKEN_TYPE,
        "iat": now,
    }

    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    """
    Verify and decode a JWT token.

    Returns:
        Dict with 'user_id', 'organization_id' and 'role',
        or None if the token is invalid/expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
        )
    except JWTError:
        return None

    if payload.get("type") != TOKEN_TYPE:
        return None

    user_id = payload.get("sub")
    organization_id = payload.get("org")
    role = payload.get("role")
    if not user_id or not organization_id or not role:
        return None

    try:
        return {
            "user_id": int(user_id),
            "organization_id": int(organization_id),
            "role": role,
        }
    except ValueError:
        return None


def get_token(request) -> Optional[str]:
    """
    Extract the JWT from the cookie, falling back to the Authorization header.
    """
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token

    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None
