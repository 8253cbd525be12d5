"""Shared test fixtures for assistant-web."""

import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="assistant-web-test-")
os.environ.setdefault("ASSISTANT_WEB_DATABASE_URL", f"sqlite+aiosqlite:///{_TMP}/test.db")
os.environ.setdefault("ASSISTANT_WEB_LOG_DIR", os.path.join(_TMP, "logs"))
os.environ.setdefault("ASSISTANT_WEB_USERS", '{"bob": "12345678"}')
os.environ.setdefault("ASSISTANT_WEB_SECRET_KEY", "test-secret")
os.environ.setdefault("ASSISTANT_WEB_ENV", "test")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from assistant_web.database import close_db, init_db  # noqa: E402
from assistant_web.main import app  # noqa: E402
from assistant_web.services.engine_manager import engine_manager  # noqa: E402
from assistant_web.utils.crypto import issue_token  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_engines():
    """Every test starts without engines (hence without conversations)."""
    engine_manager.clear()
    app.dependency_overrides.clear()
    yield
    engine_manager.clear()
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[None, None]:
    await init_db()
    yield
    await close_db()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_token('bob')}"}


@pytest_asyncio.fixture
async def client(db, auth_headers) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client logged in as bob."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", headers=auth_headers) as ac:
        yield ac


@pytest_asyncio.fixture
async def anon_client(db) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
