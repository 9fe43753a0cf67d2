"""
Unit tests for the Azure Blob Storage backend.

``BlobServiceClient`` is patched, so no storage account is contacted.
"""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from azure.core.exceptions import AzureError, ResourceNotFoundError

from src.application.interfaces.storage_backend import ImageUpload, StorageBackendError
from src.domain.assets.image_locator import ImageLocatorKind, LocatorLayout, classify_locator
from src.infrastructure.storage.azure_blob_storage import AzureBlobStorage

ACCOUNT = "https://estateacct.blob.core.windows.net"
LAYOUT = LocatorLayout(remote_container="listings", remote_folder="estate-listings")


def _blob_client(container: str, blob: str) -> MagicMock:
    client = MagicMock()
    client.url = f"{ACCOUNT}/{container}/{blob}"
    client.upload_blob = AsyncMock()
    client.delete_blob = AsyncMock()
    return client


@pytest.fixture()
def service() -> MagicMock:
    service = MagicMock()
    service.__aenter__.return_value = service
    service.__aexit__.return_value = False
    service.get_blob_client.side_effect = _blob_client
    return service


@pytest.fixture()
def backend(service: MagicMock):  # type: ignore[no-untyped-def]
    with patch("src.infrastructure.storage.azure_blob_storage.BlobServiceClient") as client_cls:
        client_cls.from_connection_string.return_value = service
        yield AzureBlobStorage(
            connection_string="UseDevelopmentStorage=true",
            container="listings",
            folder="estate-listings",
        )


@pytest.mark.asyncio
async def test_put_returns_remote_locator_for_the_uploaded_blob(
    backend: AzureBlobStorage, service: MagicMock
) -> None:
    locator = await backend.put(ImageUpload(b"img", "Front.JPG", "image/jpeg"))

    uploaded_blob = service.get_blob_client.call_args.kwargs["blob"]
    assert uploaded_blob.startswith("estate-listings/")
    assert uploaded_blob.endswith(".jpg")

    classified = classify_locator(locator, LAYOUT)
    assert classified.kind is ImageLocatorKind.REMOTE
    assert classified.key == uploaded_blob

    await backend.delete(classified.key)
    assert service.get_blob_client.call_args.kwargs == {
        "container": "listings",
        "blob": uploaded_blob,
    }


@pytest.mark.asyncio
async def test_put_sets_content_type(backend: AzureBlobStorage, service: MagicMock) -> None:
    blob = MagicMock(url=f"{ACCOUNT}/listings/estate-listings/x.png", upload_blob=AsyncMock())
    service.get_blob_client.side_effect = None
    service.get_blob_client.return_value = blob

    await backend.put(ImageUpload(b"img", "x.png", "image/png"))

    settings = blob.upload_blob.await_args.kwargs["content_settings"]
    assert settings.content_type == "image/png"
    assert blob.upload_blob.await_args.kwargs["overwrite"] is False


@pytest.mark.asyncio
async def test_put_failure_raises_storage_error(
    backend: AzureBlobStorage, service: MagicMock
) -> None:
    blob = MagicMock(upload_blob=AsyncMock(side_effect=AzureError("throttled")))
    service.get_blob_client.side_effect = None
    service.get_blob_client.return_value = blob

    with pytest.raises(StorageBackendError):
        await backend.put(ImageUpload(b"img", "a.jpg", "image/jpeg"))


@pytest.mark.asyncio
async def test_delete_of_missing_blob_succeeds(
    backend: AzureBlobStorage, service: MagicMock
) -> None:
    blob = MagicMock(delete_blob=AsyncMock(side_effect=ResourceNotFoundError("gone")))
    service.get_blob_client.side_effect = None
    service.get_blob_client.return_value = blob

    await backend.delete("estate-listings/missing.jpg")

    blob.delete_blob.assert_awaited_once()


@pytest.mark.asyncio
async def test_delete_failure_raises_storage_error(
    backend: AzureBlobStorage, service: MagicMock
) -> None:
    blob = MagicMock(delete_blob=AsyncMock(side_effect=AzureError("connection reset")))
    service.get_blob_client.side_effect = None
    service.get_blob_client.return_value = blob

    with pytest.raises(StorageBackendError):
        await backend.delete("estate-listings/a.jpg")


def test_requires_account_url_or_connection_string() -> None:
    with pytest.raises(StorageBackendError):
        AzureBlobStorage(account_url="", connection_string="")
