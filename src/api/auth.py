"""
Caller authentication for write endpoints.

Credentials are an opaque bearer token plus the caller identity headers
set by the front-end after login:

    Authorization: Bearer <token>
    X-User-ID: <int>
    X-User-Name: <display name>
    X-User-Role: cleaner | admin
"""

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.config.settings import get_settings
from src.errors import Forbidden

bearer_scheme = HTTPBearer(auto_error=False)

ROLE_CLEANER = "cleaner"
ROLE_ADMIN = "admin"
VALID_ROLES: frozenset[str] = frozenset({ROLE_CLEANER, ROLE_ADMIN})


@dataclass(frozen=True)
class Caller:
    """Verified identity attached to a request."""

    id: int
    name: str
    role: str = ROLE_CLEANER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def verify_caller(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    user_id: str | None = Header(default=None, alias="X-User-ID"),
    user_name: str | None = Header(default=None, alias="X-User-Name"),
    user_role: str | None = Header(default=None, alias="X-User-Role"),
) -> Caller:
    """
    Verify the bearer token and build the caller identity.

    Returns:
        The verified Caller

    Raises:
        HTTPException: 401 if the token or identity headers are missing or invalid
    """
    settings = get_settings()

    if credentials is None or not credentials.credentials:
        raise _unauthorized("Missing bearer token. Provide an Authorization header.")

    # If no tokens configured, accept any bearer (dev mode)
    valid_tokens = settings.valid_tokens
    if valid_tokens and credentials.credentials not in valid_tokens:
        raise _unauthorized("Invalid bearer token")

    if user_id is None:
        raise _unauthorized("Missing X-User-ID header")
    try:
        caller_id = int(user_id)
    except ValueError:
        raise _unauthorized("Invalid X-User-ID header") from None

    role = (user_role or ROLE_CLEANER).strip().lower()
    if role not in VALID_ROLES:
        raise _unauthorized(f"Invalid X-User-Role {user_role!r}")

    name = (user_name or "").strip() or f"Cleaner #{caller_id}"
    return Caller(id=caller_id, name=name, role=role)


async def require_admin(caller: Caller = Depends(verify_caller)) -> Caller:
    """Allow only callers with the admin role."""
    if not caller.is_admin:
        raise Forbidden("Admin role required")
    return caller
