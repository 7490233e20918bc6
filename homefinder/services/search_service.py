"""
Listing queries against the persistent store.

Executes compiled predicates as a count plus one page of entities,
newest first, with the relations the projector needs loaded eagerly.
Every storage failure surfaces as QueryFailedError; nothing here retries.
"""

import logging
from typing import List, NamedTuple, Optional, Sequence

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from homefinder.errors import QueryFailedError
from homefinder.models.entities import Agent, Listing, ListingAmenity, Location
from homefinder.models.property import FilterSpec
from homefinder.services.filters import filter_clauses
from homefinder.services.pagination import PageWindow
from homefinder.services.visibility import publicly_visible

logger = logging.getLogger(__name__)

# Ties on created_at are broken by id so paging is deterministic
NEWEST_FIRST = (Listing.created_at.desc(), Listing.id.desc())

SUMMARY_OPTIONS = (
    joinedload(Listing.location).joinedload(Location.city),
    joinedload(Listing.agent),
    joinedload(Listing.property_type),
    joinedload(Listing.project),
)

DETAIL_OPTIONS = SUMMARY_OPTIONS + (
    selectinload(Listing.images),
    selectinload(Listing.amenities).joinedload(ListingAmenity.amenity),
    selectinload(Listing.deals),
)


class SearchPage(NamedTuple):
    """One page of listings and the total across all pages."""

    listings: List[Listing]
    total: int


def public_clauses(spec: FilterSpec) -> List[ColumnElement[bool]]:
    """Filter predicates for the public listing query, visibility rule included."""
    return [*filter_clauses(spec), publicly_visible()]


async def search_listings(
    session: AsyncSession,
    clauses: Sequence[ColumnElement[bool]],
    window: PageWindow,
) -> SearchPage:
    """
    Count and fetch one page of listings matching all clauses.

    Args:
        session: Database session.
        clauses: Boolean predicates over Listing, AND-ed together.
        window: Page number and size.

    Returns:
        SearchPage with at most ``window.limit`` listings.

    Raises:
        QueryFailedError: If either query fails.
    """
    try:
        total = await session.scalar(
            select(func.count()).select_from(Listing).where(*clauses)
        ) or 0

        listings: List[Listing] = []
        if total > window.offset:
            result = await session.scalars(
                select(Listing)
                .options(*SUMMARY_OPTIONS)
                .where(*clauses)
                .order_by(*NEWEST_FIRST)
                .offset(window.offset)
                .limit(window.limit)
            )
            listings = list(result.all())
    except SQLAlchemyError as e:
        logger.exception("Listing search failed")
        raise QueryFailedError("Listing search failed") from e

    logger.info(
        "Search matched %d listings, returning %d from page %d",
        total,
        len(listings),
        window.page,
    )
    return SearchPage(listings=listings, total=total)


async def fetch_newest(
    session: AsyncSession,
    clauses: Sequence[ColumnElement[bool]],
    limit: int,
) -> List[Listing]:
    """
    Fetch up to ``limit`` newest listings matching all clauses.

    Raises:
        QueryFailedError: If the query fails.
    """
    try:
        result = await session.scalars(
            select(Listing)
            .options(*SUMMARY_OPTIONS)
            .where(*clauses)
            .order_by(*NEWEST_FIRST)
            .limit(limit)
        )
        return list(result.all())
    except SQLAlchemyError as e:
        logger.exception("Listing fetch failed")
        raise QueryFailedError("Listing fetch failed") from e


async def get_listing(session: AsyncSession, listing_id: str) -> Optional[Listing]:
    """
    Load a single listing with everything the detail view shows.

    Not subject to the visibility rule: sold listings stay reachable by
    direct link and report their deal outcome.
    """
    try:
        result = await session.scalars(
            select(Listing).options(*DETAIL_OPTIONS).where(Listing.id == listing_id)
        )
        return result.first()
    except SQLAlchemyError as e:
        logger.exception("Failed to load listing %s", listing_id)
        raise QueryFailedError(f"Failed to load listing {listing_id}") from e


async def list_agent_listings(session: AsyncSession, agent_id: int) -> List[Listing]:
    """
    All listings owned by an agent, newest first.

    The agent's own inventory includes sold and rented listings, so the
    visibility rule is not applied.
    """
    try:
        result = await session.scalars(
            select(Listing)
            .options(*SUMMARY_OPTIONS, selectinload(Listing.deals))
            .where(Listing.agent_id == agent_id)
            .order_by(*NEWEST_FIRST)
        )
        return list(result.all())
    except SQLAlchemyError as e:
        logger.exception("Failed to list listings for agent %s", agent_id)
        raise QueryFailedError(f"Failed to list listings for agent {agent_id}") from e


async def find_agent_for_user(session: AsyncSession, user_id: str) -> Optional[Agent]:
    """Return the agent profile linked to a user account, if any."""
    try:
        return await session.scalar(select(Agent).where(Agent.user_id == user_id))
    except SQLAlchemyError as e:
        logger.exception("Failed to look up agent profile for user %s", user_id)
        raise QueryFailedError("Failed to look up agent profile") from e
