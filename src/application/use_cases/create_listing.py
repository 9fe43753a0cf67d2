from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from src.application.errors import ListingValidationError
from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.listing_repository import ListingRepository
from src.application.interfaces.storage_backend import ImageUpload
from src.application.services.image_asset_manager import ImageAssetManager
from src.application.use_cases.authorization import require_permission
from src.application.use_cases.listing_fields import (
    check_image_uploads,
    parse_listing_fields,
)
from src.domain.authorization.ownership_guard import ListingOperation
from src.domain.entities.actor import Actor
from src.domain.entities.listing import Listing

logger = structlog.get_logger(__name__)

DEFAULT_MAX_IMAGES = 5


@dataclass
class CreateListingInput:
    actor: Actor
    fields: Mapping[str, Any]
    images: list[ImageUpload] = field(default_factory=list)


@dataclass
class CreateListingOutput:
    listing: Listing


class CreateListing:
    """
    Use case: create a listing owned by the acting agent or admin.

    Creation is all-or-nothing from the caller's point of view: either a
    listing with at least one image is persisted, or nothing is. Images that
    were stored before a later failure are removed best-effort.
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

    async def execute(self, input_data: CreateListingInput) -> CreateListingOutput:
        actor = input_data.actor
        require_permission(actor, actor.identity, ListingOperation.CREATE)

        fields = parse_listing_fields(input_data.fields)
        if not input_data.images:
            raise ListingValidationError("images: at least one image is required")
        check_image_uploads(input_data.images, max_count=self._max_images)

        # May raise ImageUploadError; nothing has been persisted yet
        locators = await self._asset_manager.upload_all(input_data.images)

        listing = Listing.create(
            owner_id=actor.identity,
            images=locators,
            **fields.model_dump(),
        )

        try:
            await self._listing_repo.save(listing)
            await self._listing_repo.commit()
        except Exception:
            logger.exception("listing_save_failed", listing_id=str(listing.id))
            await self._asset_manager.discard(locators)
            raise

        await self._event_publisher.publish_many(listing.collect_events())

        logger.info(
            "listing_created",
            listing_id=str(listing.id),
            owner_id=str(actor.identity),
            image_count=len(locators),
        )
        return CreateListingOutput(listing=listing)
