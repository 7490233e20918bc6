"""
SQLAlchemy entities for the marketplace store.

The search core only reads these tables; they are written by the
administrative and agent-management parts of the marketplace.
"""

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from homefinder.db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ListingPurpose(str, enum.Enum):
    SALE = "SALE"
    RENT = "RENT"


class DealType(str, enum.Enum):
    SALE = "SALE"
    RENT = "RENT"


class DealStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PurposeIntent(str, enum.Enum):
    BUY = "BUY"
    RENT = "RENT"
    BOTH = "BOTH"


class StyleIntent(str, enum.Enum):
    NORMAL = "NORMAL"
    PROJECT = "PROJECT"
    BOTH = "BOTH"


class City(Base):
    __tablename__ = "cities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), unique=True)

    locations: Mapped[List["Location"]] = relationship(back_populates="city")


class Location(Base):
    """A named area inside a city."""

    __tablename__ = "locations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120))
    city_id: Mapped[Optional[int]] = mapped_column(ForeignKey("cities.id"), index=True)

    city: Mapped[Optional[City]] = relationship(back_populates="locations")


class Agent(Base):
    __tablename__ = "agents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(64), unique=True)
    name: Mapped[str] = mapped_column(String(200))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    phone: Mapped[Optional[str]] = mapped_column(String(64))
    image: Mapped[Optional[str]] = mapped_column(String(1024))
    rating: Mapped[Optional[float]] = mapped_column(Float)
    review_count: Mapped[Optional[int]] = mapped_column(Integer)


class PropertyType(Base):
    __tablename__ = "property_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(80), unique=True)


class Project(Base):
    """A development project grouping several listings."""

    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200))


class Amenity(Base):
    __tablename__ = "amenities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), unique=True)
    icon: Mapped[Optional[str]] = mapped_column(String(64))
    category: Mapped[Optional[str]] = mapped_column(String(64))


class ListingAmenity(Base):
    __tablename__ = "listing_amenities"

    listing_id: Mapped[str] = mapped_column(ForeignKey("listings.id", ondelete="CASCADE"), primary_key=True)
    amenity_id: Mapped[int] = mapped_column(ForeignKey("amenities.id", ondelete="CASCADE"), primary_key=True)

    amenity: Mapped[Amenity] = relationship()


class ListingImage(Base):
    """One gallery image of a listing, ordered by ``sort_order``."""

    __tablename__ = "listing_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    listing_id: Mapped[str] = mapped_column(ForeignKey("listings.id", ondelete="CASCADE"), index=True)
    image_key: Mapped[str] = mapped_column(String(1024))
    sort_order: Mapped[int] = mapped_column(Integer, default=0)


class Listing(Base):
    """A property offered for sale or rent."""

    __tablename__ = "listings"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_listings_price_non_negative"),
        CheckConstraint(
            "bedrooms >= 0 AND bathrooms >= 0 AND rooms >= 0",
            name="ck_listings_counts_non_negative",
        ),
        Index("ix_listings_created_at", "created_at"),
        Index("ix_listings_price", "price"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text)
    short_description: Mapped[Optional[str]] = mapped_column(String(500))
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"))
    purpose: Mapped[ListingPurpose] = mapped_column(
        Enum(ListingPurpose, name="listing_purpose"), default=ListingPurpose.SALE
    )
    area_sqm: Mapped[float] = mapped_column(Float, default=0)
    bedrooms: Mapped[int] = mapped_column(Integer, default=0)
    bathrooms: Mapped[int] = mapped_column(Integer, default=0)
    rooms: Mapped[int] = mapped_column(Integer, default=0)
    has_garage: Mapped[bool] = mapped_column(Boolean, default=False)
    has_balcony: Mapped[bool] = mapped_column(Boolean, default=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(1024))

    location_id: Mapped[Optional[int]] = mapped_column(ForeignKey("locations.id"), index=True)
    agent_id: Mapped[Optional[int]] = mapped_column(ForeignKey("agents.id"), index=True)
    property_type_id: Mapped[Optional[int]] = mapped_column(ForeignKey("property_types.id"), index=True)
    project_id: Mapped[Optional[int]] = mapped_column(ForeignKey("projects.id"), index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    location: Mapped[Optional[Location]] = relationship()
    agent: Mapped[Optional[Agent]] = relationship()
    property_type: Mapped[Optional[PropertyType]] = relationship()
    project: Mapped[Optional[Project]] = relationship()
    images: Mapped[List[ListingImage]] = relationship(
        order_by=[ListingImage.sort_order, ListingImage.id],
        cascade="all, delete-orphan",
    )
    amenities: Mapped[List[ListingAmenity]] = relationship(cascade="all, delete-orphan")
    deals: Mapped[List["Deal"]] = relationship(back_populates="listing", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, title='{self.title}', purpose={self.purpose})>"


class Deal(Base):
    """A transaction tying a listing to an agent and an outcome."""

    __tablename__ = "deals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    listing_id: Mapped[str] = mapped_column(ForeignKey("listings.id", ondelete="CASCADE"), index=True)
    agent_id: Mapped[Optional[int]] = mapped_column(ForeignKey("agents.id"))
    deal_type: Mapped[DealType] = mapped_column(Enum(DealType, name="deal_type"))
    status: Mapped[DealStatus] = mapped_column(Enum(DealStatus, name="deal_status"), default=DealStatus.PENDING)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    listing: Mapped[Listing] = relationship(back_populates="deals")


class UserPreference(Base):
    """What a signed-in user is looking for; one row per user."""

    __tablename__ = "user_preferences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), unique=True)
    purpose: Mapped[PurposeIntent] = mapped_column(
        Enum(PurposeIntent, name="purpose_intent"), default=PurposeIntent.BOTH
    )
    city_id: Mapped[Optional[int]] = mapped_column(ForeignKey("cities.id"))
    property_type: Mapped[str] = mapped_column(String(80), default="BOTH")
    property_style: Mapped[StyleIntent] = mapped_column(
        Enum(StyleIntent, name="style_intent"), default=StyleIntent.BOTH
    )
    min_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"))
    max_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("10000000"))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    city: Mapped[Optional[City]] = relationship()
