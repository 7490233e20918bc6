"""Test helper functions."""

from typing import Optional

import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from homefinder.config import get_settings


def make_token(user_id: str, role: str = "USER", email: Optional[str] = None) -> str:
    """Create a session token the way the authentication service issues them."""
    settings = get_settings()
    payload = {"id": user_id, "email": email or f"{user_id}@example.com", "role": role}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


async def persist(session: AsyncSession) -> None:
    """Commit seeded rows and drop them from the identity map so reads hit the database."""
    await session.commit()
    session.expunge_all()
