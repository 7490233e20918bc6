"""Shared pytest fixtures and configuration."""

import os
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables before the application reads its settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("STORAGE_BUCKET", "test-bucket")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from homefinder.api.deps import Services, get_services  # noqa: E402
from homefinder.config import get_settings  # noqa: E402
from homefinder.db import Base, get_session  # noqa: E402
from homefinder.main import create_app  # noqa: E402
from homefinder.services.image_service import is_displayable  # noqa: E402
from homefinder.services.listing_service import ListingSearchService  # noqa: E402

CDN = "https://cdn.test/"


class FakeImageResolver:
    """Resolves object keys to predictable CDN URLs and records every call."""

    def __init__(self) -> None:
        self.calls = []

    async def resolve(self, reference: Optional[str]) -> Optional[str]:
        self.calls.append(reference)
        if not reference:
            return None
        if is_displayable(reference):
            return reference
        return CDN + reference


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with the full schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def image_resolver() -> FakeImageResolver:
    return FakeImageResolver()


def services_with(resolver) -> Services:
    """Services wired to the given image resolver."""
    return Services(listings=ListingSearchService(get_settings(), resolver))


@pytest.fixture
def app(session_factory, image_resolver):
    """The application with storage and images swapped for test doubles."""
    app = create_app()

    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_services] = lambda: services_with(image_resolver)
    return app


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
