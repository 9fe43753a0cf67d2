from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4

from src.domain.enums.listing_state import ListingLifecycleState


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class ListingCreatedEvent(DomainEvent):
    """Published when an agent or admin creates a listing."""

    listing_id: UUID = field(default_factory=uuid4)
    owner_id: UUID = field(default_factory=uuid4)
    title: str = ""
    city: str = ""
    price: float = 0.0
    image_count: int = 0


@dataclass(frozen=True)
class ListingUpdatedEvent(DomainEvent):
    """Published after fields or images of a listing change."""

    listing_id: UUID = field(default_factory=uuid4)
    changed_fields: tuple[str, ...] = ()
    images_added: int = 0
    images_removed: int = 0
    triggered_by: str = ""


@dataclass(frozen=True)
class ListingAvailabilityChangedEvent(DomainEvent):
    """Published whenever a listing moves between AVAILABLE and UNAVAILABLE."""

    listing_id: UUID = field(default_factory=uuid4)
    from_state: ListingLifecycleState | None = None
    to_state: ListingLifecycleState = ListingLifecycleState.AVAILABLE
    triggered_by: str = ""


@dataclass(frozen=True)
class ListingDeletedEvent(DomainEvent):
    listing_id: UUID = field(default_factory=uuid4)
    owner_id: UUID = field(default_factory=uuid4)
    triggered_by: str = ""


@dataclass(frozen=True)
class ListingImagesOrphanedEvent(DomainEvent):
    """
    Published when best-effort physical deletion left objects behind in
    storage. The listing record no longer references these locators.
    """

    listing_id: UUID = field(default_factory=uuid4)
    locators: tuple[str, ...] = ()
