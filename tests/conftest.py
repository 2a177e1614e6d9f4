"""
Shared test fixtures — per-test SQLite database and an ASGI test client.
"""

import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Ensure the module-level app in main.py never points at a real database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from config.settings import Settings
from database.session import init_db
from main import create_app

TEST_SECRET = "test-secret-key-for-unit-tests-1234567890"


def make_settings(**overrides) -> Settings:
    values = {
        "environment": "development",
        "jwt_secret": TEST_SECRET,
        "jwt_expiry_seconds": 3600,
        "bcrypt_rounds": 4,
        "database_url": "sqlite+aiosqlite:///:memory:",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    # file-backed so concurrent requests get separate connections
    return make_settings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}")


@pytest_asyncio.fixture
async def app(settings):
    application = create_app(settings)
    await init_db(application.state.engine)
    yield application
    await application.state.engine.dispose()


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c


@pytest_asyncio.fixture
async def db_session(app):
    async with app.state.session_factory() as session:
        yield session


@pytest.fixture
def settings_factory():
    return make_settings
