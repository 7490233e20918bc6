"""
Public visibility rule for listings.

A listing that has been sold or rented through a completed deal stays in
the store for the agent and admin views, but must never be offered to the
public again. Every public-facing query conjoins ``publicly_visible()``.
"""

from sqlalchemy import ColumnElement

from homefinder.models.entities import Deal, DealStatus, Listing


def publicly_visible() -> ColumnElement[bool]:
    """
    Predicate excluding listings with any COMPLETED deal.

    Compiles to a NOT EXISTS subquery, so listings with no deals or with
    only pending/cancelled deals pass and no rows are duplicated.
    """
    return ~Listing.deals.any(Deal.status == DealStatus.COMPLETED)
