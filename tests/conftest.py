import os

import pytest
from httpx import ASGITransport, AsyncClient

# IMPORTANT:
# Set env vars BEFORE importing enjoyrecord.main (pydantic settings load at import time)
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./data/enjoyrecord_test.db")
os.environ.setdefault("ENJOYRECORD_ADMIN_PASSWORD", "test-admin")
os.environ.setdefault("ENJOYRECORD_LOG_PATH", "./data/enjoyrecord_test.log")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:3000")
for _key in ("TMDB_API_KEY", "OMDB_API_KEY", "RAWG_API_KEY", "HTTPS_PROXY", "HTTP_PROXY"):
    os.environ.pop(_key, None)

from enjoyrecord.main import app as fastapi_app  # noqa: E402
from enjoyrecord.core.config import settings  # noqa: E402
from enjoyrecord.db.base_class import Base  # noqa: E402
import enjoyrecord.db.base  # noqa: F401,E402  (register models)
from enjoyrecord.db.session import engine, AsyncSessionLocal  # noqa: E402
from enjoyrecord.api.deps import get_db  # noqa: E402

ADMIN_PASSWORD = "test-admin"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def db_session():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session, monkeypatch):
    """
    Overrides enjoyrecord.api.deps.get_db so every route dependency
    shares the test session.
    """
    monkeypatch.setattr(settings, "admin_password", ADMIN_PASSWORD)

    async def _override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    fastapi_app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def admin_headers():
    return {"x-admin-password": ADMIN_PASSWORD}


@pytest.fixture
def record_factory(client, admin_headers):
    async def _create(**overrides):
        payload = {
            "type": "book",
            "title": "三体",
            "summary": "",
            "status": "planned",
        }
        payload.update(overrides)
        r = await client.post("/api/records", json=payload, headers=admin_headers)
        assert r.status_code == 200, r.text
        return r.json()["record"]

    return _create
