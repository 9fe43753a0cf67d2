from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from src.domain.entities.actor import OwnerSummary
from src.domain.enums.listing_state import ListingLifecycleState
from src.domain.enums.property_type import ListingStatus, PropertyType
from src.domain.events.domain_events import (
    DomainEvent,
    ListingAvailabilityChangedEvent,
    ListingCreatedEvent,
    ListingDeletedEvent,
    ListingUpdatedEvent,
)
from src.domain.state_machine.lifecycle_state_machine import LifecycleStateMachine

_state_machine = LifecycleStateMachine()

# Largest count (bedrooms, bathrooms, sqft) a stored listing can hold.
MAX_COUNT = 2_147_483_647

# Descriptive and numeric fields a partial update may overwrite.
EDITABLE_FIELDS: tuple[str, ...] = (
    "title",
    "description",
    "address",
    "city",
    "state",
    "zip_code",
    "price",
    "bedrooms",
    "bathrooms",
    "sqft",
    "latitude",
    "longitude",
    "property_type",
    "status",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EmptyImageListError(ValueError):
    """Raised when a listing would be created without any image."""


@dataclass
class Listing:
    """
    Aggregate root for a property listing.

    The image list is ordered; the first locator is the hero image shown by
    gallery views. Each locator is owned by exactly one listing.
    """

    # Identity
    id: UUID = field(default_factory=uuid4)
    owner_id: UUID = field(default_factory=uuid4)

    # Descriptive fields
    title: str = ""
    description: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""

    # Numeric facts
    price: Decimal = Decimal("0")
    bedrooms: int = 0
    bathrooms: int = 0
    sqft: int = 0

    # Geocoordinates
    latitude: float = 0.0
    longitude: float = 0.0

    # Categorical fields
    property_type: PropertyType = PropertyType.HOUSE
    status: ListingStatus = ListingStatus.FOR_SALE

    is_available: bool = True
    images: list[str] = field(default_factory=list)

    # Timestamps
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    deleted_at: datetime | None = None

    # Populated by repositories on read; never persisted from here
    owner: OwnerSummary | None = field(default=None, compare=False)

    # Pending domain events (collected and cleared by the application layer)
    _events: list[DomainEvent] = field(default_factory=list, repr=False, compare=False)

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        *,
        owner_id: UUID,
        images: list[str],
        **fields: Any,
    ) -> "Listing":
        if not images:
            raise EmptyImageListError("A listing requires at least one image.")

        listing = cls(owner_id=owner_id, images=list(images), **fields)
        listing._events.append(
            ListingCreatedEvent(
                listing_id=listing.id,
                owner_id=owner_id,
                title=listing.title,
                city=listing.city,
                price=float(listing.price),
                image_count=len(listing.images),
            )
        )
        return listing

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def lifecycle_state(self) -> ListingLifecycleState:
        if self.deleted_at is not None:
            return ListingLifecycleState.DELETED
        if self.is_available:
            return ListingLifecycleState.AVAILABLE
        return ListingLifecycleState.UNAVAILABLE

    @property
    def hero_image(self) -> str | None:
        return self.images[0] if self.images else None

    def toggle_availability(self, triggered_by: str) -> None:
        """Flip between AVAILABLE and UNAVAILABLE, recording the domain event."""
        old_state = self.lifecycle_state
        new_state = (
            ListingLifecycleState.UNAVAILABLE
            if old_state is ListingLifecycleState.AVAILABLE
            else ListingLifecycleState.AVAILABLE
        )
        _state_machine.validate_transition(old_state, new_state)

        self.is_available = new_state is ListingLifecycleState.AVAILABLE
        self.updated_at = _utcnow()
        self._events.append(
            ListingAvailabilityChangedEvent(
                listing_id=self.id,
                from_state=old_state,
                to_state=new_state,
                triggered_by=triggered_by,
            )
        )

    def mark_deleted(self, triggered_by: str) -> None:
        _state_machine.validate_transition(self.lifecycle_state, ListingLifecycleState.DELETED)

        now = _utcnow()
        self.deleted_at = now
        self.updated_at = now
        self._events.append(
            ListingDeletedEvent(
                listing_id=self.id,
                owner_id=self.owner_id,
                triggered_by=triggered_by,
            )
        )

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def apply_changes(
        self,
        changes: dict[str, Any],
        *,
        images: list[str],
        images_added: int,
        images_removed: int,
        triggered_by: str,
    ) -> list[str]:
        """
        Overwrite only the fields present in ``changes`` and replace the image
        list. Returns the names of the fields whose value actually changed.
        """
        if self.lifecycle_state.is_terminal:
            raise ValueError(f"Listing {self.id} has been deleted.")

        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields cannot be edited: {sorted(unknown)}")

        changed: list[str] = []
        for name in EDITABLE_FIELDS:
            if name in changes and getattr(self, name) != changes[name]:
                setattr(self, name, changes[name])
                changed.append(name)

        self.images = list(images)
        self.updated_at = _utcnow()
        self._events.append(
            ListingUpdatedEvent(
                listing_id=self.id,
                changed_fields=tuple(changed),
                images_added=images_added,
                images_removed=images_removed,
                triggered_by=triggered_by,
            )
        )
        return changed

    # -------------------------------------------------------------------------
    # Event collection
    # -------------------------------------------------------------------------

    def collect_events(self) -> list[DomainEvent]:
        """Return pending events and clear the internal buffer."""
        events = list(self._events)
        self._events.clear()
        return events
