"""Storage of user search preferences (one record per user)."""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from homefinder.errors import QueryFailedError
from homefinder.models.entities import UserPreference
from homefinder.models.property import PreferenceOut, PreferenceUpdate

logger = logging.getLogger(__name__)

ANY_PROPERTY_TYPE = "BOTH"

# Dialects with INSERT ... ON CONFLICT support
UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def to_preference_out(preference: UserPreference) -> PreferenceOut:
    return PreferenceOut(
        user_id=preference.user_id,
        purpose=preference.purpose,
        city_id=preference.city_id,
        city=preference.city.name if preference.city is not None else None,
        property_type=(preference.property_type or "").strip() or ANY_PROPERTY_TYPE,
        property_style=preference.property_style,
        min_price=float(preference.min_price),
        max_price=float(preference.max_price),
    )


def upsert_statement(dialect_name: str, user_id: str, update: PreferenceUpdate):
    """
    Build an INSERT ... ON CONFLICT (user_id) DO UPDATE for one user's preferences.

    Args:
        dialect_name: Name of the database dialect in use.
        user_id: Identifier of the signed-in user.
        update: The new preferences; every column is overwritten.

    Raises:
        NotImplementedError: If the dialect has no ON CONFLICT support.
    """
    insert = UPSERT_INSERTS.get(dialect_name)
    if insert is None:
        raise NotImplementedError(f"Preference upsert is not supported on {dialect_name}")

    values = {
        "purpose": update.purpose,
        "city_id": update.city_id,
        "property_type": update.property_type,
        "property_style": update.property_style,
        "min_price": update.min_price,
        "max_price": update.max_price,
        "updated_at": datetime.now(timezone.utc),
    }
    stmt = insert(UserPreference).values(user_id=user_id, **values)
    return stmt.on_conflict_do_update(
        index_elements=[UserPreference.user_id],
        set_={name: stmt.excluded[name] for name in values},
    )


async def load_preference(session: AsyncSession, user_id: str) -> Optional[UserPreference]:
    """Load a user's preference record with its city."""
    try:
        return await session.scalar(
            select(UserPreference)
            .options(joinedload(UserPreference.city))
            .where(UserPreference.user_id == user_id)
            .execution_options(populate_existing=True)
        )
    except SQLAlchemyError as e:
        logger.exception("Failed to load preferences for user %s", user_id)
        raise QueryFailedError("Failed to load preferences") from e


async def save_preference(
    session: AsyncSession,
    user_id: str,
    update: PreferenceUpdate,
) -> UserPreference:
    """
    Create or overwrite a user's preferences.

    The record is replaced wholesale in a single upsert statement;
    fields missing from the request fall back to their defaults rather
    than keeping old values.

    Args:
        session: Database session.
        user_id: Identifier of the signed-in user.
        update: The new preferences.

    Returns:
        The stored preference record with its city loaded.

    Raises:
        QueryFailedError: If the write fails.
    """
    stmt = upsert_statement(session.get_bind().dialect.name, user_id, update)
    try:
        await session.execute(stmt)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("Failed to save preferences for user %s", user_id)
        raise QueryFailedError("Failed to save preferences") from e

    logger.info("Saved preferences for user %s", user_id)
    stored = await load_preference(session, user_id)
    if stored is None:
        raise QueryFailedError("Saved preferences could not be read back")
    return stored
