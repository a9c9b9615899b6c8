"""Integration-test fixtures (requires running PG + Redis, migrated schema).

Skipped unless RB_INTEGRATION=1. All integration tests share a single
event loop so the module-level SQLAlchemy engine pool and Redis pool
(both created at import time) stay valid for the whole run.
"""

import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if os.environ.get("RB_INTEGRATION") == "1":
        return
    skip = pytest.mark.skip(reason="set RB_INTEGRATION=1 to run against PG + Redis")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

