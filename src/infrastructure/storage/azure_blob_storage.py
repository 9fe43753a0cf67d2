"""
Azure Blob Storage image backend.

Blobs are written to ``<container>/<folder>/<name>``; the returned locator is
the blob's full URL, which is what the locator classifier recognises as
remote.
"""
from pathlib import PurePath
from uuid import uuid4

import structlog
from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.identity.aio import DefaultAzureCredential
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import BlobServiceClient

from src.application.interfaces.storage_backend import (
    ImageUpload,
    StorageBackend,
    StorageBackendError,
)
from src.config import settings
from src.domain.assets.image_locator import ImageLocatorKind

logger = structlog.get_logger(__name__)


class AzureBlobStorage(StorageBackend):
    kind = ImageLocatorKind.REMOTE

    def __init__(
        self,
        account_url: str = settings.azure_storage_account_url,
        connection_string: str = settings.azure_storage_connection_string,
        container: str = settings.azure_storage_container,
        folder: str = settings.azure_storage_folder,
    ) -> None:
        if not (account_url or connection_string):
            raise StorageBackendError(
                "AZURE_STORAGE_ACCOUNT_URL or AZURE_STORAGE_CONNECTION_STRING not configured"
            )
        self._account_url = account_url
        self._connection_string = connection_string
        self._container = container
        self._folder = folder.strip("/")
        self._credential = None if connection_string else DefaultAzureCredential()

    def _service_client(self) -> BlobServiceClient:
        if self._connection_string:
            return BlobServiceClient.from_connection_string(self._connection_string)
        return BlobServiceClient(account_url=self._account_url, credential=self._credential)

    def _blob_name(self, upload: ImageUpload) -> str:
        suffix = PurePath(upload.filename).suffix.lower() if upload.filename else ""
        if not suffix[1:].isalnum():
            suffix = ""
        return f"{self._folder}/{uuid4().hex}{suffix}"

    async def put(self, upload: ImageUpload) -> str:
        blob_name = self._blob_name(upload)
        try:
            async with self._service_client() as service:
                blob = service.get_blob_client(container=self._container, blob=blob_name)
                await blob.upload_blob(
                    upload.data,
                    overwrite=False,
                    content_settings=ContentSettings(
                        content_type=upload.content_type or "application/octet-stream"
                    ),
                )
                url = blob.url
        except AzureError as exc:
            logger.error("blob_upload_failed", blob=blob_name, error=str(exc))
            raise StorageBackendError(f"Failed to upload blob {blob_name}: {exc}") from exc

        logger.debug("blob_uploaded", blob=blob_name, size=len(upload.data))
        return url

    async def delete(self, key: str) -> None:
        try:
            async with self._service_client() as service:
                blob = service.get_blob_client(container=self._container, blob=key)
                await blob.delete_blob(delete_snapshots="include")
        except ResourceNotFoundError:
            logger.info("blob_already_absent", blob=key)
        except AzureError as exc:
            raise StorageBackendError(f"Failed to delete blob {key}: {exc}") from exc

    async def check(self) -> None:
        try:
            async with self._service_client() as service:
                await service.get_container_client(self._container).get_container_properties()
        except AzureError as exc:
            raise StorageBackendError(f"Blob container {self._container} unreachable: {exc}") from exc

    async def close(self) -> None:
        if self._credential is not None:
            await self._credential.close()
