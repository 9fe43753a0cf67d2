from abc import ABC, abstractmethod
from dataclasses import dataclass

from src.domain.assets.image_locator import ImageLocatorKind


class StorageBackendError(Exception):
    """Raised by storage adapters when a put or delete fails."""


@dataclass(frozen=True)
class ImageUpload:
    data: bytes
    filename: str | None = None
    content_type: str | None = None


class StorageBackend(ABC):
    """Port for the physical image store (local disk or blob storage)."""

    kind: ImageLocatorKind

    @abstractmethod
    async def put(self, upload: ImageUpload) -> str:
        """Store the bytes and return the public locator."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the object addressed by ``key``. Raises StorageBackendError."""
        ...

    async def check(self) -> None:
        """Raise StorageBackendError if the backend is unreachable."""
        return None

    async def close(self) -> None:
        """Release clients or credentials held by the backend."""
        return None
