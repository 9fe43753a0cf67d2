"""
SQLAlchemy ORM models.

These are purely infrastructure concerns; domain entities are mapped to/from
these models inside the repository implementations.
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.domain.enums.actor_role import ActorRole
from src.domain.enums.property_type import ListingStatus, PropertyType
from src.infrastructure.database.connection import Base


def _values(enum_cls):  # type: ignore[no-untyped-def]
    return [e.value for e in enum_cls]


_property_type_enum = SAEnum(PropertyType, name="property_type", values_callable=_values)
_listing_status_enum = SAEnum(ListingStatus, name="listing_status", values_callable=_values)
_user_role_enum = SAEnum(ActorRole, name="user_role", values_callable=_values)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserModel(Base):
    """
    Accounts are owned by the external authentication service; this service
    only reads them to embed the owner summary in listing responses.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    role: Mapped[ActorRole] = mapped_column(_user_role_enum, nullable=False)

    listings: Mapped[list["ListingModel"]] = relationship(
        "ListingModel", back_populates="owner", lazy="noload"
    )


class ListingModel(Base):
    __tablename__ = "properties"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Descriptive fields
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str] = mapped_column(String(512), nullable=False)
    city: Mapped[str] = mapped_column(String(128), nullable=False)
    state: Mapped[str] = mapped_column(String(128), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(32), nullable=False)

    # Numeric facts
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False)
    bathrooms: Mapped[int] = mapped_column(Integer, nullable=False)
    sqft: Mapped[int] = mapped_column(Integer, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)

    # Categorical fields
    property_type: Mapped[PropertyType] = mapped_column(_property_type_enum, nullable=False)
    status: Mapped[ListingStatus] = mapped_column(_listing_status_enum, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Ordered image locators; the first one is the hero image
    images: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    owner: Mapped[UserModel | None] = relationship(
        "UserModel", back_populates="listings", lazy="raise"
    )

    __table_args__ = (
        Index("ix_properties_available_created", "is_available", "created_at"),
        Index("ix_properties_type_status", "property_type", "status"),
        Index("ix_properties_price", "price"),
    )
