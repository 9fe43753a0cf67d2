"""
Storage backend selection.

The active backend is chosen once per process from ``settings.storage_backend``.
Any other backend that is configured is kept for deletions only, so listings
created before a backend switch can still have their images cleaned up.
"""
from dataclasses import dataclass

import structlog

from src.application.interfaces.storage_backend import StorageBackend
from src.application.services.image_asset_manager import ImageAssetManager
from src.config import Settings, settings
from src.domain.assets.image_locator import LocatorLayout
from src.infrastructure.storage.local_storage import LocalFileStorage

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StorageSetup:
    active: StorageBackend
    backends: tuple[StorageBackend, ...]
    layout: LocatorLayout


def locator_layout(config: Settings = settings) -> LocatorLayout:
    return LocatorLayout(
        local_prefix=config.upload_url_prefix,
        remote_container=config.azure_storage_container,
        remote_folder=config.azure_storage_folder,
    )


def build_storage(config: Settings = settings) -> StorageSetup:
    local = LocalFileStorage(config.upload_dir, config.upload_url_prefix)
    backends: list[StorageBackend] = [local]

    remote: StorageBackend | None = None
    if config.azure_storage_configured:
        # Imported lazily so the local backend needs no Azure credentials.
        from src.infrastructure.storage.azure_blob_storage import AzureBlobStorage

        remote = AzureBlobStorage(
            account_url=config.azure_storage_account_url,
            connection_string=config.azure_storage_connection_string,
            container=config.azure_storage_container,
            folder=config.azure_storage_folder,
        )
        backends.append(remote)

    if config.storage_backend == "azure":
        if remote is None:
            raise ValueError("STORAGE_BACKEND=azure requires Azure storage settings")
        active: StorageBackend = remote
    else:
        active = local

    logger.info(
        "storage_configured",
        active=active.kind.value,
        backends=[b.kind.value for b in backends],
    )
    return StorageSetup(active=active, backends=tuple(backends), layout=locator_layout(config))


def build_asset_manager(setup: StorageSetup) -> ImageAssetManager:
    return ImageAssetManager(setup.active, setup.layout, backends=setup.backends)
