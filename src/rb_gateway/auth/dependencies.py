"""FastAPI dependencies: get_current_user, require_roles.

Usage in any protected router:
    from src.rb_gateway.auth.dependencies import get_current_user, require_roles

    @router.post("/deliveries")
    async def create(user: UserModel = Depends(require_roles(Role.ADMIN, Role.DELIVERY))):
        ...
"""

from collections.abc import Awaitable, Callable

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_common.database import get_db_session
from src.rb_common.enums import Role
from src.rb_common.errors import (
    AccountDisabledError,
    InsufficientRoleError,
    InvalidTokenError,
    UnauthorizedError,
)
from src.rb_gateway.auth.jwt_handler import decode_token
from src.rb_gateway.user.db_models import UserModel

# auto_error=False so a missing header goes through our own error envelope
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


async def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    """Extract and validate the JWT Bearer token, return the UserModel.

    Raises 401 UNAUTHORIZED when the header is missing, 401 INVALID_TOKEN when
    the token is invalid or expired or its user is gone.
    """
    if not token:
        raise UnauthorizedError("Access token required")

    payload = decode_token(token, expected_type="access")
    user_id: str | None = payload.get("sub")
    if not user_id:
        raise InvalidTokenError()

    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise InvalidTokenError("User not found")

    if not user.is_active:
        raise AccountDisabledError()

    return user


def require_roles(*roles: Role) -> Callable[..., Awaitable[UserModel]]:
    """Build a dependency that admits only the given roles."""
    allowed = {r.value for r in roles}

    async def _checker(current_user: UserModel = Depends(get_current_user)) -> UserModel:
        if current_user.role not in allowed:
            raise InsufficientRoleError()
        return current_user

    return _checker


def is_admin(user: UserModel) -> bool:
    return user.role == Role.ADMIN.value
