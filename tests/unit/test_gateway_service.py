"""Unit tests for user service (mocked DB and Redis)."""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.rb_common.errors import (
    AccountDisabledError,
    CannotDeleteSelfError,
    EmailExistsError,
    InvalidCredentialsError,
    InvalidTokenError,
    UserNotFoundError,
)
from src.rb_gateway.auth.jwt_handler import create_access_token, create_refresh_token
from src.rb_gateway.user.db_models import UserModel
from src.rb_gateway.user.service import UserService


def _make_user(is_active: bool = True, role: str = "DELIVERY") -> UserModel:
    user = UserModel()
    user.id = uuid.uuid4()
    user.email = "driver@reborn.tn"
    user.password_hash = "$2b$12$fakehash"
    user.role = role
    user.is_active = is_active
    return user


def _result(value: object) -> MagicMock:
    res = MagicMock()
    res.scalar_one_or_none.return_value = value
    return res


@pytest.fixture
def mock_db() -> AsyncMock:
    db = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def mock_redis() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service() -> UserService:
    return UserService()


class TestCreateUser:
    async def test_duplicate_email_raises_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user()))
        with pytest.raises(EmailExistsError):
            await service.create_user("Driver@Reborn.tn", "Pass1word", "DELIVERY", mock_db)

    async def test_email_lowercased_and_password_hashed(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(None))
        with patch("src.rb_gateway.user.service.hash_password", return_value="hashed"):
            user = await service.create_user("New@Reborn.tn", "Pass1word", "COMMERCIAL", mock_db)
        assert user.email == "new@reborn.tn"
        assert user.password_hash == "hashed"
        assert user.role == "COMMERCIAL"
        mock_db.add.assert_called_once_with(user)
        mock_db.flush.assert_awaited_once()


class TestLogin:
    async def test_unknown_email_raises_credentials_error(
        self, service: UserService, mock_db: AsyncMock, mock_redis: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(None))
        with pytest.raises(InvalidCredentialsError):
            await service.login("nobody@reborn.tn", "Pass1word", mock_db, mock_redis)

    async def test_wrong_password_raises_credentials_error(
        self, service: UserService, mock_db: AsyncMock, mock_redis: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user()))
        with (
            patch("src.rb_gateway.user.service.verify_password", return_value=False),
            pytest.raises(InvalidCredentialsError),
        ):
            await service.login("driver@reborn.tn", "WrongPass1", mock_db, mock_redis)

    async def test_disabled_account_raises_error(
        self, service: UserService, mock_db: AsyncMock, mock_redis: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user(is_active=False)))
        with (
            patch("src.rb_gateway.user.service.verify_password", return_value=True),
            pytest.raises(AccountDisabledError),
        ):
            await service.login("driver@reborn.tn", "Pass1word", mock_db, mock_redis)

    async def test_success_registers_refresh_token(
        self, service: UserService, mock_db: AsyncMock, mock_redis: AsyncMock
    ) -> None:
        user = _make_user()
        mock_db.execute = AsyncMock(return_value=_result(user))
        with patch("src.rb_gateway.user.service.verify_password", return_value=True):
            returned, access, refresh = await service.login(
                "driver@reborn.tn", "Pass1word", mock_db, mock_redis
            )
        assert returned is user
        assert access != refresh
        mock_redis.set.assert_awaited_once()
        assert mock_redis.set.call_args.args[1] == str(user.id)


class TestRefresh:
    async def test_garbage_token_raises_and_revokes(
        self, service: UserService, mock_db: AsyncMock, mock_redis: AsyncMock
    ) -> None:
        with pytest.raises(InvalidTokenError):
            await service.refresh("not.a.real.token", mock_db, mock_redis)
        mock_redis.delete.assert_awaited_once()

    async def test_access_token_used_as_refresh_raises_error(
        self, service: UserService, mock_db: AsyncMock, mock_redis: AsyncMock
    ) -> None:
        access = create_access_token("user-123", "ADMIN")
        with pytest.raises(InvalidTokenError):
            await service.refresh(access, mock_db, mock_redis)

    async def test_unregistered_token_rejected(
        self, service: UserService, mock_db: AsyncMock, mock_redis: AsyncMock
    ) -> None:
        mock_redis.get.return_value = None
        with pytest.raises(InvalidTokenError):
            await service.refresh(create_refresh_token("user-123"), mock_db, mock_redis)

    async def test_rotation_revokes_old_and_registers_new(
        self, service: UserService, mock_db: AsyncMock, mock_redis: AsyncMock
    ) -> None:
        user = _make_user(role="ADMIN")
        uid = str(user.id)
        old = create_refresh_token(uid)
        mock_redis.get.return_value = uid
        mock_db.execute = AsyncMock(return_value=_result(user))

        access, new_refresh = await service.refresh(old, mock_db, mock_redis)

        assert new_refresh != old
        assert access
        mock_redis.delete.assert_awaited_once()
        mock_redis.set.assert_awaited_once()
        assert mock_redis.set.call_args.args[1] == uid

    async def test_logout_revokes(self, service: UserService, mock_redis: AsyncMock) -> None:
        await service.logout("some-token", mock_redis)
        mock_redis.delete.assert_awaited_once()
        mock_redis.delete.reset_mock()
        await service.logout(None, mock_redis)
        mock_redis.delete.assert_not_awaited()


class TestAdministration:
    async def test_malformed_id_is_not_found(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        with pytest.raises(UserNotFoundError) as exc:
            await service.get_user("not-a-uuid", mock_db)
        assert exc.value.http_status == 404
        mock_db.execute.assert_not_awaited()

    async def test_unknown_id_is_not_found(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_result(None))
        with pytest.raises(UserNotFoundError):
            await service.get_user(str(uuid.uuid4()), mock_db)

    async def test_list_returns_rows_and_total(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        users = [_make_user(), _make_user(role="ADMIN")]
        rows = MagicMock()
        rows.scalars.return_value.all.return_value = users
        count = MagicMock()
        count.scalar_one.return_value = 7
        mock_db.execute = AsyncMock(side_effect=[rows, count])
        found, total = await service.list_users(mock_db, 0, 2, role="DELIVERY", search=" ali ")
        assert found == users
        assert total == 7
        assert mock_db.execute.await_count == 2

    async def test_update_rehashes_password_and_ignores_nulls(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        user = _make_user()
        mock_db.execute = AsyncMock(return_value=_result(user))
        with patch("src.rb_gateway.user.service.hash_password", return_value="rehashed"):
            updated = await service.update_user(
                str(user.id),
                {"first_name": "Sami", "role": None, "is_active": False, "password": "NewPass1"},
                mock_db,
            )
        assert updated.first_name == "Sami"
        assert updated.role == "DELIVERY"
        assert updated.is_active is False
        assert updated.password_hash == "rehashed"
        mock_db.flush.assert_awaited_once()

    async def test_delete_own_account_rejected(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        me = str(uuid.uuid4())
        with pytest.raises(CannotDeleteSelfError) as exc:
            await service.delete_user(me, me, mock_db)
        assert exc.value.http_status == 400
        mock_db.delete.assert_not_awaited()

    async def test_delete_removes_user(self, service: UserService, mock_db: AsyncMock) -> None:
        user = _make_user()
        mock_db.execute = AsyncMock(return_value=_result(user))
        await service.delete_user(str(user.id), str(uuid.uuid4()), mock_db)
        mock_db.delete.assert_awaited_once_with(user)
