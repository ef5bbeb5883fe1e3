"""
Fixtures for integration tests.

Provides:
- In-memory SQLite database (aiosqlite) with the key-value table
- Test client for the FastAPI app bound to that database
- Request body helpers with dates relative to today
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from evdock.main import app
from evdock.application.services import InstallmentService
from evdock.core.config import Settings
from evdock.core.dependencies import get_installment_service, get_key_value_store
from evdock.infrastructure.database import Base
from evdock.infrastructure.repositories import DocumentInstallmentRepository
from evdock.infrastructure.stores import SqlKeyValueStore


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite async engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session


# =============================================================================
# App Client Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def client(test_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client backed by the in-memory database.

    Every request shares the same session, so data written by one
    request is visible to the next.
    """
    async def override_get_key_value_store():
        return SqlKeyValueStore(test_session)

    app.dependency_overrides[get_key_value_store] = override_get_key_value_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client_with_clear_all(test_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client whose service allows clearing all plans."""
    async def override_get_installment_service():
        repo = DocumentInstallmentRepository(SqlKeyValueStore(test_session))
        return InstallmentService(repo, settings=Settings(allow_clear_all=True))

    app.dependency_overrides[get_installment_service] = override_get_installment_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# =============================================================================
# Helper Fixtures
# =============================================================================

def days_from_today(days: int) -> str:
    return (datetime.now(timezone.utc).date() + timedelta(days=days)).isoformat()


@pytest.fixture
def plan_request() -> dict:
    """Request body for a 12 month plan starting today."""
    return {
        "quotation_id": "QUO1718000000001",
        "customer_id": "CUS001",
        "customer_name": "Nguyen Van A",
        "customer_phone": "0901234567",
        "vehicle_model": "VF 8 Plus",
        "total_amount": "120000000",
        "installment_months": 12,
        "interest_rate": "6",
        "start_date": days_from_today(0),
    }


@pytest.fixture
def lagging_plan_request(plan_request: dict) -> dict:
    """Plan started 70 days ago: months 1 and 2 are past due, month 3 is not."""
    return {
        **plan_request,
        "quotation_id": "QUO1718000000002",
        "customer_name": "Tran Thi B",
        "start_date": days_from_today(-70),
    }


@pytest.fixture
def due_soon_plan_request(plan_request: dict) -> dict:
    """Plan started 27 days ago: month 1 falls due within the next week."""
    return {
        **plan_request,
        "quotation_id": "QUO1718000000003",
        "customer_name": "Le Van C",
        "vehicle_model": "VF 3",
        "start_date": days_from_today(-27),
    }
