from dataclasses import dataclass
from uuid import UUID

import structlog

from src.application.errors import ListingNotFoundError
from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.listing_repository import ListingRepository
from src.application.services.image_asset_manager import CleanupReport, ImageAssetManager
from src.application.use_cases.authorization import actor_label, require_permission
from src.domain.authorization.ownership_guard import ListingOperation
from src.domain.entities.actor import Actor
from src.domain.events.domain_events import ListingImagesOrphanedEvent

logger = structlog.get_logger(__name__)


@dataclass
class DeleteListingInput:
    actor: Actor
    listing_id: UUID


@dataclass
class DeleteListingOutput:
    listing_id: UUID
    cleanup: CleanupReport


class DeleteListing:
    """
    Use case: hard-delete a listing and, best-effort, every image it owns.

    Storage failures are logged and reported as orphans; they never stop the
    record from being removed.
    """

    def __init__(
        self,
        listing_repo: ListingRepository,
        asset_manager: ImageAssetManager,
        event_publisher: EventPublisher,
    ) -> None:
        self._listing_repo = listing_repo
        self._asset_manager = asset_manager
        self._event_publisher = event_publisher

    async def execute(self, input_data: DeleteListingInput) -> DeleteListingOutput:
        listing = await self._listing_repo.get_by_id(input_data.listing_id)
        if listing is None:
            raise ListingNotFoundError(input_data.listing_id)

        actor = input_data.actor
        require_permission(actor, listing.owner_id, ListingOperation.DELETE)

        listing.mark_deleted(triggered_by=actor_label(actor))

        cleanup = await self._asset_manager.discard(listing.images)
        await self._listing_repo.delete(listing.id)
        await self._listing_repo.commit()

        events = listing.collect_events()
        if cleanup.orphaned:
            events.append(
                ListingImagesOrphanedEvent(
                    listing_id=listing.id, locators=tuple(cleanup.orphaned)
                )
            )
        await self._event_publisher.publish_many(events)

        logger.info(
            "listing_deleted",
            listing_id=str(listing.id),
            triggered_by=actor_label(actor),
            images_deleted=len(cleanup.deleted),
            orphaned=len(cleanup.orphaned),
        )
        return DeleteListingOutput(listing_id=listing.id, cleanup=cleanup)
