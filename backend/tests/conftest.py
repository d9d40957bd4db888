"""Test fixtures for the marketplace backend."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

from app.core.config import get_settings
from app.db.base import Base
from app.db.session import dispose_engine, get_sessionmaker
from app.main import app
from app.models import Company


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest_asyncio.fixture()
async def marketplace(reset_database: None, db_url: str) -> dict[str, object]:
    """Seed three companies: an Oslo provider, a Bergen provider and a renter."""
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        oslo = Company(
            name="Oslo Transport AS",
            organization_number="910000001",
            city="Oslo",
            fylke="Oslo",
            kommune="Oslo",
            verified=True,
            aggregated_rating=Decimal("4.50"),
        )
        bergen = Company(
            name="Bergen Logistikk AS",
            organization_number="910000002",
            city="Bergen",
            fylke="Vestland",
            kommune="Bergen",
            verified=True,
            aggregated_rating=Decimal("3.75"),
        )
        renter = Company(
            name="Trondheim Frakt AS",
            organization_number="910000003",
            city="Trondheim",
            fylke="Trøndelag",
            kommune="Trondheim",
            verified=True,
        )
        session.add_all([oslo, bergen, renter])
        await session.commit()
        return {
            "oslo_company_id": oslo.id,
            "bergen_company_id": bergen.id,
            "renter_company_id": renter.id,
        }


@pytest_asyncio.fixture()
async def session(reset_database: None, db_url: str):
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        yield session


@pytest_asyncio.fixture()
async def client(reset_database: None) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
