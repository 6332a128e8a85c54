"""
Pytest configuration for test suite.

Handles pytest-asyncio configuration and shared fixtures: an in-memory
SQLite database wired into the FastAPI app, and stubs for the exchange rate
and reference index sources so no test reaches the network.
"""
import sys
from decimal import Decimal
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Add the backend directory to sys.path for imports
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from invest_journal.database import Base, get_db  # noqa: E402
from invest_journal.main import app  # noqa: E402
from invest_journal.services.fx_rate_service import FXRateService  # noqa: E402

TEST_USD_RATE = Decimal("1300")
USER_A = "user-a"
USER_B = "user-b"


def pytest_configure(config):
    """Register custom markers dynamically."""
    config.addinivalue_line(
        "markers", "integration: integration tests that require external services"
    )
    config.addinivalue_line(
        "markers", "unit: unit tests with mocked dependencies"
    )


@pytest_asyncio.fixture
async def session_factory():
    """Fresh in-memory database with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def mock_fx_rate():
    """Pin the USD rate so valuations are deterministic."""
    with patch.object(FXRateService, "get_usd_rate", AsyncMock(return_value=TEST_USD_RATE)) as mocked:
        yield mocked


@pytest.fixture
def mock_reference_series():
    """Reference index source; tests set return_value (None means unavailable)."""
    with patch(
        "invest_journal.services.performance.get_reference_series",
        AsyncMock(return_value=None)
    ) as mocked:
        yield mocked


@pytest_asyncio.fixture
async def client(session_factory, mock_fx_rate, mock_reference_series):
    """HTTP client against the app with the test database."""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth(user_id: str = USER_A) -> dict:
    """Identity header the gateway forwards."""
    return {"X-User-Id": user_id}
