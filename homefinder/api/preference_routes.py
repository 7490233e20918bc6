"""
API routes for a user's saved search preferences.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from homefinder.api.deps import CurrentUser, get_current_user
from homefinder.db import get_session
from homefinder.errors import QueryFailedError
from homefinder.models.property import PreferenceOut, PreferenceUpdate
from homefinder.services.preference_service import (
    load_preference,
    save_preference,
    to_preference_out,
)

router = APIRouter(prefix="/api/user/preferences", tags=["preferences"])


@router.get(
    "",
    response_model=Optional[PreferenceOut],
    summary="Get saved preferences",
    description="Returns null when the user has not saved any preferences yet.",
)
async def get_preferences(
    user: Annotated[CurrentUser, Depends(get_current_user)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> Optional[PreferenceOut]:
    try:
        preference = await load_preference(session, user.id)
    except QueryFailedError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch preferences",
        ) from e

    return to_preference_out(preference) if preference is not None else None


@router.post(
    "",
    response_model=PreferenceOut,
    summary="Save preferences",
    description="Create or replace the signed-in user's preferences.",
)
async def update_preferences(
    update: PreferenceUpdate,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PreferenceOut:
    """
    Save the user's preferences.

    Raises:
        HTTPException: 422 if the price band is inverted, 500 if the write fails.
    """
    if update.min_price > update.max_price:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="minPrice must not exceed maxPrice",
        )

    try:
        preference = await save_preference(session, user.id, update)
    except QueryFailedError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save preferences",
        ) from e

    return to_preference_out(preference)
