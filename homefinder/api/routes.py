"""
API routes for property search functionality.
"""

import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from homefinder.api.deps import CurrentUser, Services, get_current_user, get_services
from homefinder.db import get_session
from homefinder.errors import ImageResolutionError, QueryFailedError
from homefinder.models.property import (
    AmenityOut,
    ListingDetail,
    ListingPage,
    PersonalizedResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/properties", tags=["properties"])


@router.get(
    "",
    response_model=ListingPage,
    summary="Search listings",
    description="Filtered, paginated public listings, newest first. Sold or rented listings are never included.",
)
async def list_properties(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
    services: Annotated[Services, Depends(get_services)],
) -> ListingPage:
    """
    Search public listings.

    Filters are read from the query string (city, purpose, type,
    bedrooms, bathrooms, minPrice, maxPrice, minArea, maxArea, location)
    together with page and limit. Unrecognized or malformed values are
    ignored rather than rejected.

    Raises:
        HTTPException: If the store or the image signer fails.
    """
    try:
        return await services.listings.search(session, request.query_params)

    except QueryFailedError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch properties",
        ) from e

    except ImageResolutionError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to resolve property images",
        ) from e


@router.get(
    "/personalized",
    response_model=PersonalizedResponse,
    summary="Recommended listings",
    description="Listings matching the caller's saved preferences, or the nearest alternatives.",
)
async def personalized_properties(
    user: Annotated[CurrentUser, Depends(get_current_user)],
    session: Annotated[AsyncSession, Depends(get_session)],
    services: Annotated[Services, Depends(get_services)],
) -> PersonalizedResponse:
    """
    Recommend listings for the signed-in user.

    When the saved preferences match nothing exactly, listings within
    the user's price band and purpose are returned with isNearMatch set.

    Raises:
        HTTPException: 401 without a session; 500/502 on upstream failure.
    """
    try:
        return await services.listings.recommend(session, user.id)

    except QueryFailedError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch personalized properties",
        ) from e

    except ImageResolutionError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to resolve property images",
        ) from e


@router.get(
    "/{listing_id}",
    response_model=ListingDetail,
    summary="Get a listing",
    description="Full listing with gallery, amenities, agent contact and deal outcome.",
)
async def get_property(
    listing_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
    services: Annotated[Services, Depends(get_services)],
) -> ListingDetail:
    """
    Get a single listing by id.

    Raises:
        HTTPException: 404 if the listing does not exist.
    """
    try:
        detail = await services.listings.get_detail(session, listing_id)

    except QueryFailedError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch property",
        ) from e

    except ImageResolutionError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to resolve property images",
        ) from e

    if detail is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Property not found",
        )
    return detail


@router.get(
    "/{listing_id}/amenities",
    response_model=List[AmenityOut],
    summary="Get listing amenities",
)
async def get_property_amenities(
    listing_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
    services: Annotated[Services, Depends(get_services)],
) -> List[AmenityOut]:
    """List the amenities attached to a listing."""
    try:
        amenities = await services.listings.get_amenities(session, listing_id)
    except QueryFailedError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch amenities",
        ) from e

    if amenities is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Property not found",
        )
    return amenities
