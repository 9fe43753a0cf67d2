"""
FastAPI dependency injection wiring.

Each dependency function returns a fully-constructed object with its
collaborators injected, so route handlers stay thin.
"""
from collections.abc import AsyncGenerator
from functools import lru_cache
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.listing_repository import ListingRepository
from src.application.services.image_asset_manager import ImageAssetManager
from src.application.use_cases.create_listing import CreateListing
from src.application.use_cases.delete_listing import DeleteListing
from src.application.use_cases.get_listing import GetListing
from src.application.use_cases.query_listings import QueryListings
from src.application.use_cases.toggle_listing_availability import ToggleListingAvailability
from src.application.use_cases.update_listing import UpdateListing
from src.config import settings
from src.domain.entities.actor import Actor
from src.domain.enums.actor_role import ActorRole
from src.infrastructure.database.connection import get_db_session
from src.infrastructure.database.repositories.listing_repository import (
    SqlAlchemyListingRepository,
)
from src.infrastructure.messaging.noop_publisher import NoOpEventPublisher
from src.infrastructure.messaging.rabbitmq_publisher import RabbitMQPublisher
from src.infrastructure.storage.factory import build_asset_manager, build_storage


# ---- Low-level dependencies ------------------------------------------------

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_db_session():
        yield session


def get_listing_repo(session: AsyncSession = Depends(get_session)) -> ListingRepository:
    return SqlAlchemyListingRepository(session)


@lru_cache
def get_event_publisher() -> EventPublisher:
    if not settings.rabbitmq_url:
        return NoOpEventPublisher()
    return RabbitMQPublisher(settings.rabbitmq_url)


@lru_cache
def get_asset_manager() -> ImageAssetManager:
    """Storage is selected once per process."""
    return build_asset_manager(build_storage(settings))


# ---- Actor context ---------------------------------------------------------

def get_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
) -> Actor:
    """The authenticated caller, as asserted by the upstream auth layer."""
    if not x_actor_id or not x_actor_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required."
        )
    try:
        return Actor(identity=UUID(x_actor_id), role=ActorRole(x_actor_role.lower()))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid actor credentials."
        )


# ---- Use-case dependencies -------------------------------------------------

def get_create_listing_use_case(
    listing_repo: ListingRepository = Depends(get_listing_repo),
    asset_manager: ImageAssetManager = Depends(get_asset_manager),
    event_publisher: EventPublisher = Depends(get_event_publisher),
) -> CreateListing:
    return CreateListing(
        listing_repo,
        asset_manager,
        event_publisher,
        max_images=settings.max_images_per_request,
    )


def get_update_listing_use_case(
    listing_repo: ListingRepository = Depends(get_listing_repo),
    asset_manager: ImageAssetManager = Depends(get_asset_manager),
    event_publisher: EventPublisher = Depends(get_event_publisher),
) -> UpdateListing:
    return UpdateListing(
        listing_repo,
        asset_manager,
        event_publisher,
        max_images=settings.max_images_per_request,
    )


def get_delete_listing_use_case(
    listing_repo: ListingRepository = Depends(get_listing_repo),
    asset_manager: ImageAssetManager = Depends(get_asset_manager),
    event_publisher: EventPublisher = Depends(get_event_publisher),
) -> DeleteListing:
    return DeleteListing(listing_repo, asset_manager, event_publisher)


def get_toggle_availability_use_case(
    listing_repo: ListingRepository = Depends(get_listing_repo),
    event_publisher: EventPublisher = Depends(get_event_publisher),
) -> ToggleListingAvailability:
    return ToggleListingAvailability(listing_repo, event_publisher)


def get_query_listings_use_case(
    listing_repo: ListingRepository = Depends(get_listing_repo),
) -> QueryListings:
    return QueryListings(listing_repo)


def get_get_listing_use_case(
    listing_repo: ListingRepository = Depends(get_listing_repo),
) -> GetListing:
    return GetListing(listing_repo)
