import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from exchange_audit.audit.setup import build_audit_service, build_query_service
from exchange_audit.db.database import Base, get_session
from exchange_audit.main import app


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "postgres: marks tests as requiring PostgreSQL (skip unless DB available)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip PostgreSQL tests unless DATABASE_URL points at PostgreSQL."""
    if "postgresql" in os.environ.get("DATABASE_URL", ""):
        return

    skip_postgres = pytest.mark.skip(reason="PostgreSQL not available (set DATABASE_URL)")
    for item in items:
        if "postgres" in item.keywords:
            item.add_marker(skip_postgres)


@pytest_asyncio.fixture
async def db_session(request):
    """Database session for unit tests.

    Uses PostgreSQL if DATABASE_URL is set and the test is marked postgres,
    otherwise uses in-memory SQLite.
    """
    db_url = os.environ.get("DATABASE_URL", "")
    use_postgres = "postgresql" in db_url and "postgres" in request.keywords

    if use_postgres:
        engine = create_async_engine(db_url, echo=False)
    else:
        engine = create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            echo=False,
        )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session

    if use_postgres:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def audit_service(db_session):
    """AuditService wired to the test database with the default settings."""
    return build_audit_service(db_session)


@pytest_asyncio.fixture
async def query_service(db_session):
    return build_query_service(db_session)


@pytest_asyncio.fixture
async def client(db_session):
    """HTTP client with test database"""

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
