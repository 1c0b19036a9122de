"""JWT verification for tokens issued by the external identity service.

Claims used:
  sub    — user id
  roles  — list of BUYER / SELLER / PROVIDER / ADMIN
  rating — optional provider rating (0-5)

create_access_token exists for local tooling and tests; production tokens
come from the identity service, which shares JWT_SECRET.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.qm_common.enums import Role
from src.qm_common.errors import InvalidCredentialsError
from src.qm_gateway.auth.actor import Actor

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"


def create_access_token(
    user_id: str,
    roles: list[Role] | tuple[Role, ...],
    rating: float | None = None,
    expires_in: timedelta = timedelta(minutes=30),
) -> str:
    now = datetime.now(UTC)
    payload: dict[str, object] = {
        "sub": user_id,
        "type": "access",
        "roles": [r.value for r in roles],
        "iat": now,
        "exp": now + expires_in,
    }
    if rating is not None:
        payload["rating"] = rating
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_actor(token: str) -> Actor:
    """Decode and validate an access token into an Actor.

    Raises:
        InvalidCredentialsError: signature/expiry invalid, wrong token type,
        missing subject, or unknown role.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access":
        raise InvalidCredentialsError()

    user_id = payload.get("sub")
    if not user_id:
        raise InvalidCredentialsError()

    try:
        roles = frozenset(Role(r) for r in payload.get("roles", []))
    except ValueError:
        raise InvalidCredentialsError() from None

    rating = payload.get("rating")
    return Actor(
        user_id=str(user_id),
        roles=roles,
        rating=float(rating) if rating is not None else None,
    )
