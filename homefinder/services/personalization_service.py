"""
"For you" recommendations derived from a user's saved preferences.

Matching runs in two tiers. The strict tier applies every preference;
only when it finds nothing does the relaxed tier run, keeping just the
price band and purpose. Relaxed results are labelled as a near match so
the frontend can say so. Both tiers honour the public visibility rule.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy import ColumnElement, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from homefinder.models.entities import (
    Listing,
    ListingPurpose,
    Location,
    PropertyType,
    PurposeIntent,
    StyleIntent,
    UserPreference,
)
from homefinder.services.preference_service import ANY_PROPERTY_TYPE, load_preference
from homefinder.services.search_service import fetch_newest
from homefinder.services.visibility import publicly_visible

logger = logging.getLogger(__name__)

NO_PREFERENCES_MESSAGE = "No preferences set"
NEAR_MATCH_MESSAGE = (
    "No exact matches found, but here are some options within your price range."
)

PURPOSE_FOR_INTENT: Dict[PurposeIntent, Optional[ListingPurpose]] = {
    PurposeIntent.BUY: ListingPurpose.SALE,
    PurposeIntent.RENT: ListingPurpose.RENT,
    PurposeIntent.BOTH: None,
}


class MatchKind(str, enum.Enum):
    EXACT = "exact"
    RELAXED = "relaxed"
    EMPTY = "empty"


@dataclass(frozen=True)
class MatchResult:
    """Outcome of preference matching, tagged with the tier that produced it."""

    kind: MatchKind
    listings: List[Listing] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def is_near_match(self) -> bool:
        return self.kind is MatchKind.RELAXED


def relaxed_clauses(preference: UserPreference) -> List[ColumnElement[bool]]:
    """Price band and purpose only, plus the visibility rule."""
    clauses: List[ColumnElement[bool]] = [
        Listing.price >= preference.min_price,
        Listing.price <= preference.max_price,
        publicly_visible(),
    ]
    purpose = PURPOSE_FOR_INTENT.get(preference.purpose)
    if purpose is not None:
        clauses.append(Listing.purpose == purpose)
    return clauses


def property_type_clause(name: str) -> ColumnElement[bool]:
    """
    Match listings of the named property type, case-insensitively.

    A name that matches no stored property type places no constraint,
    so a stale preference does not empty the strict tier.
    """
    same_name = func.lower(PropertyType.name) == name.lower()
    known_type = select(PropertyType.id).where(same_name).correlate(None).exists()
    return or_(~known_type, Listing.property_type.has(same_name))


def strict_clauses(preference: UserPreference) -> List[ColumnElement[bool]]:
    """
    Every stored preference as a predicate.

    Args:
        preference: The user's saved preference record.

    Returns:
        The relaxed clauses plus city, property type and project style.
    """
    clauses = relaxed_clauses(preference)

    if preference.city_id is not None:
        clauses.append(Listing.location.has(Location.city_id == preference.city_id))

    property_type = (preference.property_type or ANY_PROPERTY_TYPE).strip()
    if property_type and property_type.upper() != ANY_PROPERTY_TYPE:
        clauses.append(property_type_clause(property_type))

    if preference.property_style == StyleIntent.NORMAL:
        clauses.append(Listing.project_id.is_(None))
    elif preference.property_style == StyleIntent.PROJECT:
        clauses.append(Listing.project_id.is_not(None))

    return clauses


async def match_preferences(
    session: AsyncSession,
    user_id: str,
    limit: int = 20,
) -> MatchResult:
    """
    Recommend listings for a user.

    Args:
        session: Database session.
        user_id: Identifier of the signed-in user.
        limit: Maximum number of listings per tier.

    Returns:
        MatchResult tagged EXACT, RELAXED or EMPTY. A user without saved
        preferences gets EMPTY with an explanatory message.

    Raises:
        QueryFailedError: If any store read fails.
    """
    preference = await load_preference(session, user_id)
    if preference is None:
        logger.info("User %s has no preferences", user_id)
        return MatchResult(kind=MatchKind.EMPTY, message=NO_PREFERENCES_MESSAGE)

    listings = await fetch_newest(session, strict_clauses(preference), limit)
    if listings:
        logger.info("Found %d exact matches for user %s", len(listings), user_id)
        return MatchResult(kind=MatchKind.EXACT, listings=listings)

    listings = await fetch_newest(session, relaxed_clauses(preference), limit)
    if listings:
        logger.info("No exact matches for user %s, returning %d near matches", user_id, len(listings))
        return MatchResult(kind=MatchKind.RELAXED, listings=listings, message=NEAR_MATCH_MESSAGE)

    logger.info("No matches for user %s", user_id)
    return MatchResult(kind=MatchKind.EMPTY)
