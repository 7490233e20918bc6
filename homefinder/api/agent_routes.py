"""
API routes for an agent's own inventory.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from homefinder.api.deps import CurrentUser, Services, get_services, require_agent
from homefinder.db import get_session
from homefinder.errors import ImageResolutionError, QueryFailedError
from homefinder.models.property import AgentListing

router = APIRouter(prefix="/api/agent", tags=["agent"])


@router.get(
    "/properties",
    response_model=List[AgentListing],
    summary="List the agent's properties",
    description="Every listing owned by the signed-in agent, including sold and rented ones.",
)
async def agent_properties(
    user: Annotated[CurrentUser, Depends(require_agent)],
    session: Annotated[AsyncSession, Depends(get_session)],
    services: Annotated[Services, Depends(get_services)],
) -> List[AgentListing]:
    """
    List the signed-in agent's listings with their deal counts.

    Raises:
        HTTPException: 401/403 for non-agents, 500/502 on upstream failure.
    """
    try:
        listings = await services.listings.agent_inventory(session, user.id)

    except QueryFailedError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch agent properties",
        ) from e

    except ImageResolutionError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to resolve property images",
        ) from e

    if listings is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No agent profile linked to this account",
        )
    return listings
