"""
Pydantic models for property search functionality.

These models define the data structures used throughout the application
for filter criteria, API responses, and user preferences. Response
models serialize with camelCase keys.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from homefinder.models.entities import (
    DealStatus,
    DealType,
    ListingPurpose,
    PurposeIntent,
    StyleIntent,
)


class CamelModel(BaseModel):
    """Base model exposing camelCase aliases while accepting field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FilterSpec(BaseModel):
    """
    Typed search criteria compiled from raw query parameters.

    Every field is optional; an unset field places no constraint on
    the result set.
    """

    model_config = ConfigDict(frozen=True)

    city: Optional[str] = Field(default=None, description="City name, matched case-insensitively")
    purpose: Optional[ListingPurpose] = Field(default=None, description="SALE or RENT")
    property_type: Optional[str] = Field(
        default=None,
        description="Property-type name, matched case-insensitively",
    )
    bedrooms: Optional[int] = Field(default=None, ge=0, description="Exact number of bedrooms")
    min_bedrooms: Optional[int] = Field(default=None, ge=0, description="Minimum number of bedrooms")
    bathrooms: Optional[int] = Field(default=None, ge=0, description="Exact number of bathrooms")
    min_bathrooms: Optional[int] = Field(default=None, ge=0, description="Minimum number of bathrooms")
    min_price: Optional[Decimal] = Field(default=None, ge=0, description="Inclusive lower price bound")
    max_price: Optional[Decimal] = Field(default=None, ge=0, description="Inclusive upper price bound")
    min_area: Optional[float] = Field(default=None, ge=0, description="Inclusive lower area bound (m2)")
    max_area: Optional[float] = Field(default=None, ge=0, description="Inclusive upper area bound (m2)")
    location_text: Optional[str] = Field(
        default=None,
        description="Free text matched against title, area name and city name",
    )

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class FilterIssue(BaseModel):
    """A query parameter that was ignored during compilation."""

    param: str
    value: str
    reason: str


class ListingSummary(CamelModel):
    """A listing as shown in search results and recommendation strips."""

    id: str = Field(description="Opaque listing identifier")
    title: str
    project_name: Optional[str] = None
    price: float = Field(ge=0, description="Asking price or monthly rent")
    purpose: ListingPurpose
    sqm: float = Field(ge=0, description="Floor area in square meters")
    short_description: str = ""
    bedrooms: int = Field(ge=0)
    bathrooms: int = Field(ge=0)
    rooms: int = Field(ge=0)
    has_garage: bool = False
    has_balcony: bool = False
    image: Optional[str] = Field(default=None, description="Displayable primary image URL")
    image_key: Optional[str] = Field(default=None, description="Stored primary image reference")
    location_id: Optional[int] = None
    agent_id: Optional[int] = None
    property_type_id: Optional[int] = None
    area: str = Field(default="", description="Area (location) name")
    city: str = Field(default="", description="City name")
    agent: str = ""
    agent_phone: str = ""
    type: str = Field(default="House", description="Property-type name")
    created_at: Optional[datetime] = None


class ImageKey(CamelModel):
    id: int
    key: str
    sort_order: int


class AmenityOut(CamelModel):
    id: int
    name: str
    icon: Optional[str] = None
    category: Optional[str] = None


class ListingDetail(ListingSummary):
    """Full listing view including gallery, amenities and deal outcome."""

    description: Optional[str] = None
    images: List[str] = Field(default_factory=list, description="Primary image first, then gallery")
    image_keys: List[ImageKey] = Field(default_factory=list)
    amenities: List[AmenityOut] = Field(default_factory=list)
    agent_email: str = ""
    agent_image: Optional[str] = None
    agent_rating: float = 0
    agent_review_count: int = 0
    deal_status: Optional[DealStatus] = None
    completed_deal_type: Optional[DealType] = None


class AgentListing(ListingSummary):
    """A listing in the owning agent's inventory, sold or not."""

    deal_count: int = 0
    deal_status: Optional[DealStatus] = None
    completed_deal_type: Optional[DealType] = None


class PaginationMeta(CamelModel):
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0, description="Listings matching the filters across all pages")
    total_pages: int = Field(ge=0)


class ListingPage(CamelModel):
    """API response for the public listing endpoint."""

    properties: List[ListingSummary] = Field(default_factory=list)
    pagination: PaginationMeta


class PersonalizedResponse(CamelModel):
    """API response for the recommendation endpoint."""

    properties: List[ListingSummary] = Field(default_factory=list)
    is_near_match: bool = Field(
        default=False,
        description="True when results come from the relaxed price/purpose query",
    )
    message: Optional[str] = None


class PreferenceUpdate(CamelModel):
    """Request body for saving a user's preferences."""

    purpose: PurposeIntent = PurposeIntent.BOTH
    city_id: Optional[int] = None
    property_type: str = Field(default="BOTH", min_length=1, max_length=80)
    property_style: StyleIntent = StyleIntent.BOTH
    min_price: Decimal = Field(default=Decimal("0"), ge=0)
    max_price: Decimal = Field(default=Decimal("10000000"), ge=0)

    @field_validator("property_type", mode="before")
    @classmethod
    def _strip_property_type(cls, v: object) -> object:
        """Trim surrounding whitespace so a blank name fails min_length."""
        if isinstance(v, str):
            return v.strip()
        return v


class PreferenceOut(PreferenceUpdate):
    user_id: str
    city: Optional[str] = None
    min_price: float = Field(ge=0)
    max_price: float = Field(ge=0)
