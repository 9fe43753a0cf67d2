"""
Local filesystem image storage.

Files are written under ``upload_dir`` and served by the API under
``url_prefix``. Blocking file I/O runs in the default thread-pool executor
so it doesn't stall the event loop.
"""
import asyncio
from functools import partial
from pathlib import Path, PurePath
from uuid import uuid4

import structlog

from src.application.interfaces.storage_backend import (
    ImageUpload,
    StorageBackend,
    StorageBackendError,
)
from src.config import settings
from src.domain.assets.image_locator import ImageLocatorKind

logger = structlog.get_logger(__name__)


def _object_name(upload: ImageUpload) -> str:
    suffix = PurePath(upload.filename).suffix.lower() if upload.filename else ""
    if not suffix[1:].isalnum():
        suffix = ""
    return f"images-{uuid4().hex}{suffix}"


def _blocking_write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    # "xb": never overwrite an existing object
    with open(path, "xb") as handle:
        handle.write(data)


def _blocking_unlink(path: Path) -> bool:
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


class LocalFileStorage(StorageBackend):
    kind = ImageLocatorKind.LOCAL

    def __init__(
        self,
        upload_dir: str | Path = settings.upload_dir,
        url_prefix: str = settings.upload_url_prefix,
    ) -> None:
        self._root = Path(upload_dir).resolve()
        self._url_prefix = "/" + url_prefix.strip("/")

    @property
    def root(self) -> Path:
        return self._root

    def _path_for(self, name: str) -> Path:
        path = (self._root / name).resolve()
        if path.parent != self._root:
            raise StorageBackendError(f"Refusing to touch {name!r} outside the upload root")
        return path

    async def put(self, upload: ImageUpload) -> str:
        name = _object_name(upload)
        path = self._path_for(name)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, partial(_blocking_write, path, upload.data))
        except OSError as exc:
            logger.error("local_image_write_failed", path=str(path), error=str(exc))
            raise StorageBackendError(f"Failed to write {name}: {exc}") from exc

        logger.debug("local_image_stored", name=name, size=len(upload.data))
        return f"{self._url_prefix}/{name}"

    async def delete(self, key: str) -> None:
        path = self._path_for(key)
        loop = asyncio.get_running_loop()
        try:
            existed = await loop.run_in_executor(None, partial(_blocking_unlink, path))
        except OSError as exc:
            raise StorageBackendError(f"Failed to delete {key}: {exc}") from exc
        if not existed:
            logger.info("local_image_already_absent", name=key)

    async def check(self) -> None:
        if not self._root.exists():
            # Created lazily on first upload
            return
        if not self._root.is_dir():
            raise StorageBackendError(f"Upload root {self._root} is not a directory")
