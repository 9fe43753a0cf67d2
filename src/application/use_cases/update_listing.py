from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

import structlog

from src.application.errors import ListingNotFoundError, ListingValidationError
from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.listing_repository import ListingRepository
from src.application.interfaces.storage_backend import ImageUpload
from src.application.services.image_asset_manager import CleanupReport, ImageAssetManager
from src.application.use_cases.authorization import actor_label, require_permission
from src.application.use_cases.create_listing import DEFAULT_MAX_IMAGES
from src.application.use_cases.listing_fields import (
    check_image_uploads,
    parse_listing_patch,
)
from src.domain.authorization.ownership_guard import ListingOperation
from src.domain.entities.actor import Actor
from src.domain.entities.listing import Listing
from src.domain.events.domain_events import ListingImagesOrphanedEvent

logger = structlog.get_logger(__name__)


@dataclass
class UpdateListingInput:
    actor: Actor
    listing_id: UUID
    fields: Mapping[str, Any] = field(default_factory=dict)
    images_to_delete: list[str] = field(default_factory=list)
    new_images: list[ImageUpload] = field(default_factory=list)


@dataclass
class UpdateListingOutput:
    listing: Listing
    changed_fields: list[str]
    cleanup: CleanupReport


class UpdateListing:
    """
    Use case: partially update a listing and reconcile its images.

    The final image list is ``(current minus images_to_delete) + new_images``.
    Physical deletion of the removed images happens after the record is
    committed and is best-effort: a failing storage backend never blocks the edit.
    """

    def __init__(
        self,
        listing_repo: ListingRepository,
        asset_manager: ImageAssetManager,
        event_publisher: EventPublisher,
        *,
        max_images: int = DEFAULT_MAX_IMAGES,
    ) -> None:
        self._listing_repo = listing_repo
        self._asset_manager = asset_manager
        self._event_publisher = event_publisher
        self._max_images = max_images

    async def execute(self, input_data: UpdateListingInput) -> UpdateListingOutput:
        listing = await self._listing_repo.get_by_id(input_data.listing_id)
        if listing is None:
            raise ListingNotFoundError(input_data.listing_id)

        actor = input_data.actor
        require_permission(actor, listing.owner_id, ListingOperation.UPDATE)

        changes = parse_listing_patch(input_data.fields)
        check_image_uploads(input_data.new_images, max_count=self._max_images)

        kept, _ = self._asset_manager.plan_removal(listing.images, input_data.images_to_delete)
        if not kept and not input_data.new_images:
            raise ListingValidationError(
                "images: a listing must keep at least one image; upload a replacement"
            )

        # May raise ImageUploadError; nothing has been deleted or persisted yet
        staged = await self._asset_manager.stage_update(
            listing.images, input_data.images_to_delete, input_data.new_images
        )

        changed = listing.apply_changes(
            changes,
            images=staged.images,
            images_added=len(staged.added),
            images_removed=len(staged.removed),
            triggered_by=actor_label(actor),
        )

        try:
            await self._listing_repo.save(listing)
            await self._listing_repo.commit()
        except Exception:
            logger.exception("listing_save_failed", listing_id=str(listing.id))
            await self._asset_manager.discard(staged.added)
            raise

        cleanup = await self._asset_manager.discard(staged.removed)

        events = listing.collect_events()
        if cleanup.orphaned:
            events.append(
                ListingImagesOrphanedEvent(
                    listing_id=listing.id, locators=tuple(cleanup.orphaned)
                )
            )
        await self._event_publisher.publish_many(events)

        logger.info(
            "listing_updated",
            listing_id=str(listing.id),
            changed_fields=changed,
            images_added=len(staged.added),
            images_removed=len(staged.removed),
            orphaned=len(cleanup.orphaned),
        )
        return UpdateListingOutput(listing=listing, changed_fields=changed, cleanup=cleanup)
