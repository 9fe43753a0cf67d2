from dataclasses import dataclass
from uuid import UUID

import structlog

from src.application.errors import ListingNotFoundError
from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.listing_repository import ListingRepository
from src.application.use_cases.authorization import actor_label, require_permission
from src.domain.authorization.ownership_guard import ListingOperation
from src.domain.entities.actor import Actor
from src.domain.entities.listing import Listing
from src.domain.enums.listing_state import ListingLifecycleState

logger = structlog.get_logger(__name__)


@dataclass
class ToggleListingAvailabilityInput:
    actor: Actor
    listing_id: UUID


@dataclass
class ToggleListingAvailabilityOutput:
    listing: Listing
    from_state: ListingLifecycleState
    to_state: ListingLifecycleState


class ToggleListingAvailability:
    """
    Use case: flip a listing between AVAILABLE and UNAVAILABLE.

    Unavailable listings stay editable by their owner but drop out of public
    search.
    """

    def __init__(
        self,
        listing_repo: ListingRepository,
        event_publisher: EventPublisher,
    ) -> None:
        self._listing_repo = listing_repo
        self._event_publisher = event_publisher

    async def execute(
        self, input_data: ToggleListingAvailabilityInput
    ) -> ToggleListingAvailabilityOutput:
        listing = await self._listing_repo.get_by_id(input_data.listing_id)
        if listing is None:
            raise ListingNotFoundError(input_data.listing_id)

        actor = input_data.actor
        require_permission(actor, listing.owner_id, ListingOperation.TOGGLE_AVAILABILITY)

        from_state = listing.lifecycle_state

        # May raise InvalidStateTransitionError
        listing.toggle_availability(triggered_by=actor_label(actor))

        await self._listing_repo.save(listing)
        await self._listing_repo.commit()
        await self._event_publisher.publish_many(listing.collect_events())

        logger.info(
            "listing_availability_toggled",
            listing_id=str(listing.id),
            from_state=from_state.value,
            to_state=listing.lifecycle_state.value,
            triggered_by=actor_label(actor),
        )

        return ToggleListingAvailabilityOutput(
            listing=listing,
            from_state=from_state,
            to_state=listing.lifecycle_state,
        )
