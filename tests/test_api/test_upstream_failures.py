"""Tests for how store and image-signing failures surface over HTTP."""

from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from homefinder.api.deps import get_services
from homefinder.db import get_session
from homefinder.errors import ImageResolutionError
from homefinder.services.image_service import is_displayable
from tests.conftest import services_with
from tests.utils.factories import create_listing
from tests.utils.helpers import make_token, persist


class FailingImageResolver:
    """Signs nothing: every object key fails as if storage were unreachable."""

    async def resolve(self, reference: Optional[str]) -> Optional[str]:
        if not reference:
            return None
        if is_displayable(reference):
            return reference
        raise ImageResolutionError(f"Could not sign image reference {reference!r}")


@pytest_asyncio.fixture
async def schemaless_session_factory():
    """Sessions against a database with no tables, so every query fails."""
    engine = create_async_engine("sqlite+aiosqlite://")
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def broken_store(app, schemaless_session_factory):
    async def override_session():
        async with schemaless_session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session


@pytest.fixture
def broken_images(app):
    app.dependency_overrides[get_services] = lambda: services_with(FailingImageResolver())


@pytest.mark.integration
class TestImageFailures:

    @pytest.mark.asyncio
    async def test_search_page_fails_whole(self, client, session, broken_images):
        await create_listing(session, image_url="https://images.test/ok.jpg", created_minute=1)
        await create_listing(session, image_url="listings/unsignable.jpg", created_minute=2)
        await persist(session)

        response = await client.get("/api/properties")

        assert response.status_code == 502
        assert "properties" not in response.json()

    @pytest.mark.asyncio
    async def test_detail(self, client, session, broken_images):
        listing = await create_listing(session, image_url="listings/unsignable.jpg")
        await persist(session)

        response = await client.get(f"/api/properties/{listing.id}")

        assert response.status_code == 502

    @pytest.mark.asyncio
    async def test_listing_without_images_is_unaffected(self, client, session, broken_images):
        await create_listing(session, image_url=None)
        await persist(session)

        response = await client.get("/api/properties")

        assert response.status_code == 200
        assert response.json()["properties"][0]["image"] is None


@pytest.mark.integration
class TestStoreFailures:

    @pytest.mark.asyncio
    async def test_search(self, client, broken_store):
        response = await client.get("/api/properties")

        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to fetch properties"}

    @pytest.mark.asyncio
    async def test_personalized(self, client, broken_store):
        client.cookies.set("token", make_token("user-1"))

        response = await client.get("/api/properties/personalized")

        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_detail(self, client, broken_store):
        response = await client.get("/api/properties/some-id")

        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_preferences(self, client, broken_store):
        client.cookies.set("token", make_token("user-1"))

        read = await client.get("/api/user/preferences")
        write = await client.post("/api/user/preferences", json={"propertyType": "Villa"})

        assert read.status_code == 500
        assert write.status_code == 500
