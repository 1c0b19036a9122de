"""FastAPI dependencies: get_current_actor and role guards.

Usage in any protected router:
    from src.qm_gateway.auth.dependencies import get_current_actor

    @router.get("/protected")
    async def protected(actor: Actor = Depends(get_current_actor)):
        ...
"""

from collections.abc import Awaitable, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.qm_common.enums import Role
from src.qm_common.errors import InvalidCredentialsError
from src.qm_gateway.auth.actor import Actor
from src.qm_gateway.auth.jwt_handler import decode_actor

bearer_scheme = HTTPBearer(auto_error=False)

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Actor:
    """Extract and validate the Bearer token, return the Actor.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    if credentials is None:
        raise _CREDENTIALS_EXCEPTION
    try:
        return decode_actor(credentials.credentials)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None


def require_role(role: Role) -> Callable[..., Awaitable[Actor]]:
    """Dependency factory: the current actor, after checking it holds `role`."""

    async def _guard(actor: Actor = Depends(get_current_actor)) -> Actor:
        actor.require(role)
        return actor

    return _guard
