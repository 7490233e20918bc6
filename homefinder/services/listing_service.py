"""
Listing search service.

Ties the filter compiler, query executor, personalization matcher and
projector together behind one object the API layer depends on. Every
method takes the request's database session; the service itself holds
only configuration and the image resolver.
"""

import asyncio
import logging
from typing import List, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from homefinder.config import Settings
from homefinder.models.property import (
    AgentListing,
    AmenityOut,
    ListingDetail,
    ListingPage,
    PaginationMeta,
    PersonalizedResponse,
)
from homefinder.services.filters import compile_filters
from homefinder.services.image_service import ImageResolver, get_image_resolver
from homefinder.services.pagination import parse_window, total_pages
from homefinder.services.personalization_service import match_preferences
from homefinder.services.projector import (
    project_agent_listing,
    project_detail,
    project_summaries,
)
from homefinder.services.search_service import (
    find_agent_for_user,
    get_listing,
    list_agent_listings,
    public_clauses,
    search_listings,
)

logger = logging.getLogger(__name__)


class ListingSearchService:
    """Service for searching and recommending marketplace listings."""

    def __init__(self, settings: Settings, images: ImageResolver) -> None:
        """
        Initialize the service.

        Args:
            settings: Application settings containing page-size limits.
            images: Resolver for stored image references.
        """
        self.images = images
        self.default_page_size = settings.default_page_size
        self.max_page_size = settings.max_page_size
        self.personalization_limit = settings.personalization_limit

    async def search(
        self,
        session: AsyncSession,
        params: Mapping[str, Optional[str]],
    ) -> ListingPage:
        """
        Search public listings.

        Args:
            session: Database session.
            params: Raw query parameters: the filters plus page and limit.

        Returns:
            One page of projected listings with pagination metadata.

        Raises:
            QueryFailedError: If the store fails.
            ImageResolutionError: If any image on the page cannot be signed.
        """
        compiled = compile_filters(params)
        window = parse_window(
            params.get("page"),
            params.get("limit"),
            default_limit=self.default_page_size,
            max_limit=self.max_page_size,
        )

        if compiled.spec.is_empty():
            logger.info("Unfiltered listing search page=%d limit=%d", window.page, window.limit)
        else:
            logger.info(
                "Listing search page=%d limit=%d filters=%s",
                window.page,
                window.limit,
                compiled.spec.model_dump(exclude_none=True),
            )

        page = await search_listings(session, public_clauses(compiled.spec), window)
        properties = await project_summaries(page.listings, self.images)

        return ListingPage(
            properties=properties,
            pagination=PaginationMeta(
                page=window.page,
                limit=window.limit,
                total=page.total,
                total_pages=total_pages(page.total, window.limit),
            ),
        )

    async def recommend(self, session: AsyncSession, user_id: str) -> PersonalizedResponse:
        """Recommend listings from a user's saved preferences."""
        result = await match_preferences(session, user_id, limit=self.personalization_limit)
        properties = await project_summaries(result.listings, self.images)
        return PersonalizedResponse(
            properties=properties,
            is_near_match=result.is_near_match,
            message=result.message,
        )

    async def get_detail(self, session: AsyncSession, listing_id: str) -> Optional[ListingDetail]:
        listing = await get_listing(session, listing_id)
        if listing is None:
            return None
        return await project_detail(listing, self.images)

    async def get_amenities(
        self,
        session: AsyncSession,
        listing_id: str,
    ) -> Optional[List[AmenityOut]]:
        listing = await get_listing(session, listing_id)
        if listing is None:
            return None
        return [
            AmenityOut(
                id=link.amenity.id,
                name=link.amenity.name,
                icon=link.amenity.icon,
                category=link.amenity.category,
            )
            for link in listing.amenities
        ]

    async def agent_inventory(
        self,
        session: AsyncSession,
        user_id: str,
    ) -> Optional[List[AgentListing]]:
        """
        List every listing owned by the agent linked to a user account.

        Returns:
            The agent's listings newest first, sold ones included, or None
            when no agent profile is linked to the account.
        """
        agent = await find_agent_for_user(session, user_id)
        if agent is None:
            return None

        listings = await list_agent_listings(session, agent.id)
        logger.info("Agent %s has %d listings", agent.id, len(listings))
        return list(
            await asyncio.gather(
                *(project_agent_listing(listing, self.images) for listing in listings)
            )
        )


# Dependency injection helper for FastAPI
_listing_service: Optional[ListingSearchService] = None


def get_listing_service(settings: Settings) -> ListingSearchService:
    """Get or create the listing search service singleton."""
    global _listing_service
    if _listing_service is None:
        _listing_service = ListingSearchService(settings, get_image_resolver(settings))
    return _listing_service
