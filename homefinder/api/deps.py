"""
Shared FastAPI dependencies.

Session tokens are issued by the authentication service as an HS256 JWT
in a cookie; this module only verifies them.
"""

import logging
from typing import Annotated, NamedTuple

import jwt
from fastapi import Depends, HTTPException, Request, status

from homefinder.config import Settings, get_settings
from homefinder.services.listing_service import ListingSearchService, get_listing_service

logger = logging.getLogger(__name__)

AGENT_ROLE = "AGENT"


class Services(NamedTuple):
    """Container for injected services."""

    listings: ListingSearchService


def get_services(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Services:
    """Dependency that provides all required services."""
    return Services(listings=get_listing_service(settings))


class CurrentUser(NamedTuple):
    """The authenticated caller as described by their session token."""

    id: str
    role: str


def get_current_user(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> CurrentUser:
    """
    Dependency that requires a valid session cookie.

    Raises:
        HTTPException: 401 if the cookie is missing, invalid or expired.
    """
    token = request.cookies.get(settings.auth_cookie_name)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.InvalidTokenError as e:
        logger.info("Rejected session token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        ) from e

    user_id = payload.get("id")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    return CurrentUser(id=str(user_id), role=str(payload.get("role", "USER")))


def require_agent(
    user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency that additionally requires the AGENT role."""
    if user.role != AGENT_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Agent access required",
        )
    return user
