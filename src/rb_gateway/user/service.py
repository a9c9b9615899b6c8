"""User domain service: account administration, login, refresh, logout.

All DB operations use the injected AsyncSession. Refresh tokens are tracked
in the Redis registry so they can be rotated and revoked.
"""

import logging
import uuid
from typing import Any

import redis.asyncio as aioredis
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_common.errors import (
    AccountDisabledError,
    CannotDeleteSelfError,
    EmailExistsError,
    InvalidCredentialsError,
    InvalidTokenError,
    UserNotFoundError,
)
from src.rb_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.rb_gateway.auth.password import hash_password, verify_password
from src.rb_gateway.auth.token_store import RefreshTokenStore
from src.rb_gateway.user.db_models import UserModel

logger = logging.getLogger(__name__)


class UserService:
    """Stateless service — instantiate once, reuse across requests."""

    def __init__(self, token_store: RefreshTokenStore | None = None) -> None:
        self._tokens = token_store or RefreshTokenStore()

    async def get_by_id(self, user_id: str, db: AsyncSession) -> UserModel | None:
        result = await db.execute(select(UserModel).where(UserModel.id == user_id))
        return result.scalar_one_or_none()

    async def create_user(
        self,
        email: str,
        password: str,
        role: str,
        db: AsyncSession,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> UserModel:
        """Create an agent or admin account. Caller must hold the ADMIN role."""
        email = email.lower()
        result = await db.execute(select(UserModel).where(UserModel.email == email))
        if result.scalar_one_or_none() is not None:
            raise EmailExistsError()

        user = UserModel(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=role,
            is_active=True,
        )
        db.add(user)
        await db.flush()
        return user

    async def get_user(self, user_id: str, db: AsyncSession) -> UserModel:
        try:
            uid = uuid.UUID(user_id)
        except ValueError:
            raise UserNotFoundError(user_id) from None
        user = await self.get_by_id(str(uid), db)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def list_users(
        self,
        db: AsyncSession,
        offset: int,
        limit: int,
        role: str | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> tuple[list[UserModel], int]:
        """Newest accounts first. search matches email and both name parts."""
        conditions = []
        if role:
            conditions.append(UserModel.role == role)
        if is_active is not None:
            conditions.append(UserModel.is_active == is_active)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            conditions.append(
                or_(
                    UserModel.email.ilike(pattern),
                    UserModel.first_name.ilike(pattern),
                    UserModel.last_name.ilike(pattern),
                )
            )
        rows = await db.execute(
            select(UserModel)
            .where(*conditions)
            .order_by(UserModel.created_at.desc(), UserModel.id)
            .offset(offset)
            .limit(limit)
        )
        total = await db.execute(select(func.count()).select_from(UserModel).where(*conditions))
        return list(rows.scalars().all()), int(total.scalar_one())

    async def update_user(
        self, user_id: str, fields: dict[str, Any], db: AsyncSession
    ) -> UserModel:
        user = await self.get_user(user_id, db)
        for key in ("first_name", "last_name", "role", "is_active"):
            if key in fields and fields[key] is not None:
                setattr(user, key, fields[key])
        if fields.get("password"):
            user.password_hash = hash_password(fields["password"])
        await db.flush()
        logger.info("User %s updated (%s)", user_id, ", ".join(sorted(fields)))
        return user

    async def delete_user(self, user_id: str, acting_user_id: str, db: AsyncSession) -> None:
        if user_id == acting_user_id:
            raise CannotDeleteSelfError()
        user = await self.get_user(user_id, db)
        await db.delete(user)
        await db.flush()
        logger.info("User %s deleted by %s", user_id, acting_user_id)

    async def login(
        self,
        email: str,
        password: str,
        db: AsyncSession,
        redis: aioredis.Redis,
    ) -> tuple[UserModel, str, str]:
        """Authenticate and return (user, access_token, refresh_token).

        Unknown email and wrong password raise the same error so callers
        cannot enumerate accounts.
        """
        result = await db.execute(
            select(UserModel).where(UserModel.email == email.lower())
        )
        user = result.scalar_one_or_none()

        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountDisabledError()

        access = create_access_token(str(user.id), user.role)
        refresh = create_refresh_token(str(user.id))
        await self._tokens.register(redis, refresh, str(user.id))
        return user, access, refresh

    async def refresh(
        self, refresh_token: str, db: AsyncSession, redis: aioredis.Redis
    ) -> tuple[str, str]:
        """Rotate a refresh token: revoke the presented one, issue a new pair."""
        try:
            payload = decode_token(refresh_token, expected_type="refresh")
        except InvalidTokenError:
            await self._tokens.revoke(redis, refresh_token)
            raise

        user_id = str(payload["sub"])
        if await self._tokens.owner(redis, refresh_token) != user_id:
            logger.warning("Refresh token for user %s not in registry", user_id)
            raise InvalidTokenError("Invalid refresh token")

        user = await self.get_by_id(user_id, db)
        if user is None or not user.is_active:
            await self._tokens.revoke(redis, refresh_token)
            raise InvalidTokenError("User not found or disabled")

        await self._tokens.revoke(redis, refresh_token)
        new_refresh = create_refresh_token(user_id)
        await self._tokens.register(redis, new_refresh, user_id)
        return create_access_token(user_id, user.role), new_refresh

    async def logout(self, refresh_token: str | None, redis: aioredis.Redis) -> None:
        if refresh_token:
            await self._tokens.revoke(redis, refresh_token)
