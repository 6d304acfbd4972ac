import os
import tempfile

import pytest

# Settings are read at import time, so the environment goes first
TEST_DIR = tempfile.mkdtemp(prefix="store-locator-tests-")
TEST_DB_PATH = os.path.join(TEST_DIR, "test.db")
TEST_ADMIN_KEY = "test-admin-key"

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["ADMIN_API_KEY"] = TEST_ADMIN_KEY
os.environ["LOG_DIR"] = os.path.join(TEST_DIR, "logs")
os.environ["GOOGLE_PLACES_API_KEY"] = ""
os.environ["RATE_LIMIT_ENABLED"] = "false"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402

from main import app  # noqa: E402
from store_locator.db.base import Base  # noqa: E402
from store_locator.services.store_repository import StoreRepository  # noqa: E402


@pytest.fixture(scope="module")
def client():
    """A TestClient with the app lifespan running against a fresh database file."""
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"X-Admin-Key": TEST_ADMIN_KEY}


@pytest.fixture
async def repository(tmp_path):
    """A StoreRepository over its own throwaway sqlite database."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'repo.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    yield StoreRepository(session_factory)
    await engine.dispose()
