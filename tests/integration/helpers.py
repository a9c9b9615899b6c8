"""Account helpers for integration tests. Users are created straight in the DB."""

import uuid

from httpx import AsyncClient

from src.rb_common.database import async_session_factory
from src.rb_gateway.auth.password import hash_password
from src.rb_gateway.user.db_models import UserModel

PASSWORD = "TestPass123!"


async def _create_user(role: str) -> str:
    email = f"{role.lower()}_{uuid.uuid4().hex[:8]}@reborn.test"
    async with async_session_factory() as db:
        db.add(UserModel(email=email, password_hash=hash_password(PASSWORD), role=role))
        await db.commit()
    return email


async def login_as(client: AsyncClient, role: str) -> dict[str, str]:
    """Create a fresh user with `role` and return Bearer headers for it."""
    email = await _create_user(role)
    resp = await client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    token = resp.json()["data"]["accessToken"]
    return {"Authorization": f"Bearer {token}"}
