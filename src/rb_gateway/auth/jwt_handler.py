"""JWT token creation and verification.

Access and refresh tokens are signed with the same HS256 secret and told
apart by the `type` claim. Refresh tokens additionally carry a random `jti`
so two tokens issued in the same second never collide in the registry.
"""

import uuid
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.rb_common.errors import InvalidTokenError

_ALGORITHM = settings.JWT_ALGORITHM
ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
REFRESH_EXPIRE = timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS)


def create_access_token(user_id: str, role: str) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "role": role,
        "type": "access",
        "iat": now,
        "exp": now + ACCESS_EXPIRE,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def create_refresh_token(user_id: str) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "type": "refresh",
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + REFRESH_EXPIRE,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_token(token: str, expected_type: str) -> dict[str, str]:
    """Decode and validate a JWT token.

    Args:
        token: Raw JWT string.
        expected_type: "access" or "refresh". Strictly enforced so a refresh
                       token can never be replayed as an access token.

    Raises:
        InvalidTokenError: signature, expiry or type check failed.
    """
    try:
        payload: dict[str, str] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],
        )
    except JWTError:
        raise InvalidTokenError() from None

    if payload.get("type") != expected_type:
        raise InvalidTokenError("Invalid token type")
    return payload
