"""
Projection of Listing entities into response DTOs.

Relations are flattened to plain strings (empty when the relation is
missing), the stored decimal price becomes a float, and every image
reference is resolved through the ImageResolver. Listings must be loaded
with the relations the projection reads; see ``search_service``.
"""

import asyncio
from typing import Any, Dict, List, Optional

from homefinder.models.entities import DealStatus, DealType, Listing
from homefinder.models.property import (
    AgentListing,
    AmenityOut,
    ImageKey,
    ListingDetail,
    ListingSummary,
)
from homefinder.services.image_service import ImageResolver, resolve_all

DEFAULT_TYPE_LABEL = "House"


def _summary_fields(listing: Listing) -> Dict[str, Any]:
    location = listing.location
    city = location.city if location is not None else None
    agent = listing.agent

    return {
        "id": listing.id,
        "title": listing.title,
        "project_name": listing.project.name if listing.project is not None else None,
        "price": float(listing.price or 0),
        "purpose": listing.purpose,
        "sqm": float(listing.area_sqm or 0),
        "short_description": listing.short_description or "",
        "bedrooms": listing.bedrooms or 0,
        "bathrooms": listing.bathrooms or 0,
        "rooms": listing.rooms or 0,
        "has_garage": bool(listing.has_garage),
        "has_balcony": bool(listing.has_balcony),
        "image_key": listing.image_url,
        "location_id": listing.location_id,
        "agent_id": listing.agent_id,
        "property_type_id": listing.property_type_id,
        "area": location.name if location is not None and location.name else "",
        "city": city.name if city is not None and city.name else "",
        "agent": agent.name if agent is not None and agent.name else "",
        "agent_phone": agent.phone if agent is not None and agent.phone else "",
        "type": (
            listing.property_type.name
            if listing.property_type is not None and listing.property_type.name
            else DEFAULT_TYPE_LABEL
        ),
        "created_at": listing.created_at,
    }


def gallery_references(listing: Listing) -> List[str]:
    """
    Image references for the detail gallery.

    The primary image comes first, followed by the gallery in sort order;
    a gallery entry equal to the primary image (or repeated) is dropped.
    """
    references: List[str] = []
    candidates = [listing.image_url] + [image.image_key for image in listing.images]
    for reference in candidates:
        if reference and reference not in references:
            references.append(reference)
    return references


async def project_summary(listing: Listing, resolver: ImageResolver) -> ListingSummary:
    image = await resolver.resolve(listing.image_url)
    return ListingSummary(image=image, **_summary_fields(listing))


async def project_summaries(
    listings: List[Listing],
    resolver: ImageResolver,
) -> List[ListingSummary]:
    """Project a page of listings, resolving all their images concurrently."""
    return list(await asyncio.gather(*(project_summary(listing, resolver) for listing in listings)))


def _completed_deal_type(listing: Listing) -> Optional[DealType]:
    for deal in listing.deals:
        if deal.status == DealStatus.COMPLETED:
            return deal.deal_type
    return None


async def project_detail(listing: Listing, resolver: ImageResolver) -> ListingDetail:
    """
    Project a fully-loaded listing into the detail view.

    Args:
        listing: Listing with location/city, agent, type, project, images,
            amenities and deals loaded.
        resolver: Image reference resolver.

    Returns:
        ListingDetail with the gallery resolved in display order.
    """
    references = gallery_references(listing)
    agent = listing.agent
    agent_image_ref = agent.image if agent is not None else None

    resolved = await resolve_all(resolver, [agent_image_ref, *references])
    agent_image, gallery = resolved[0], resolved[1:]
    image = gallery[0] if listing.image_url else None

    deal_type = _completed_deal_type(listing)
    return ListingDetail(
        image=image,
        description=listing.description,
        images=[url for url in gallery if url],
        image_keys=[
            ImageKey(id=img.id, key=img.image_key, sort_order=img.sort_order)
            for img in listing.images
        ],
        amenities=[
            AmenityOut(
                id=link.amenity.id,
                name=link.amenity.name,
                icon=link.amenity.icon,
                category=link.amenity.category,
            )
            for link in listing.amenities
        ],
        agent_email=agent.email if agent is not None and agent.email else "",
        agent_image=agent_image,
        agent_rating=agent.rating if agent is not None and agent.rating else 0,
        agent_review_count=agent.review_count if agent is not None and agent.review_count else 0,
        deal_status=DealStatus.COMPLETED if deal_type is not None else None,
        completed_deal_type=deal_type,
        **_summary_fields(listing),
    )


async def project_agent_listing(listing: Listing, resolver: ImageResolver) -> AgentListing:
    image = await resolver.resolve(listing.image_url)
    deal_type = _completed_deal_type(listing)
    return AgentListing(
        image=image,
        deal_count=len(listing.deals),
        deal_status=DealStatus.COMPLETED if deal_type is not None else None,
        completed_deal_type=deal_type,
        **_summary_fields(listing),
    )
