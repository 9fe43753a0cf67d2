"""
Image asset lifecycle.

Keeps a listing's ordered locator list consistent with the bytes held by the
storage backends:

* uploads fan out concurrently and are reassembled by input index, so the
  resulting locator order always matches the input order;
* physical deletions are best-effort: failures are logged and reported but
  never raised, and never stop the record-level change.
"""
import asyncio
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

import structlog

from src.application.errors import ImageUploadError
from src.application.interfaces.storage_backend import ImageUpload, StorageBackend
from src.domain.assets.image_locator import (
    ImageLocatorKind,
    LocatorLayout,
    classify_locator,
)

logger = structlog.get_logger(__name__)

# In-flight uploads abandoned by a cancelled request. Held here so the tasks
# are not garbage collected before they finish; their locators are dropped.
_abandoned_uploads: set[asyncio.Task] = set()  # type: ignore[type-arg]


@dataclass
class CleanupReport:
    """Outcome of a batch of best-effort physical deletions."""

    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def orphaned(self) -> list[str]:
        """Locators that may still exist in storage with no record pointing at them."""
        return self.failed + self.skipped


@dataclass
class StagedImageUpdate:
    """The post-update image list plus what still has to be cleaned up."""

    images: list[str]
    added: list[str]
    removed: list[str]


class ImageAssetManager:
    """
    Orchestrates uploads and deletions against the configured storage backend.

    ``storage`` receives every new upload. Deletions are routed by classifying
    each locator, so ``backends`` may also contain backends that are no longer
    written to but still hold objects referenced by older listings.
    """

    def __init__(
        self,
        storage: StorageBackend,
        layout: LocatorLayout,
        backends: Iterable[StorageBackend] = (),
    ) -> None:
        self._storage = storage
        self._layout = layout
        self._backends: dict[ImageLocatorKind, StorageBackend] = {
            backend.kind: backend for backend in backends
        }
        self._backends[storage.kind] = storage

    @property
    def storage(self) -> StorageBackend:
        return self._storage

    @property
    def backends(self) -> Mapping[ImageLocatorKind, StorageBackend]:
        return dict(self._backends)

    async def close(self) -> None:
        for backend in self._backends.values():
            await backend.close()

    # -------------------------------------------------------------------------
    # Uploads
    # -------------------------------------------------------------------------

    async def _upload_one(self, index: int, upload: ImageUpload) -> tuple[int, str]:
        try:
            locator = await self._storage.put(upload)
        except Exception as exc:
            raise ImageUploadError(
                f"Failed to store image #{index + 1} ({upload.filename or 'unnamed'}): {exc}"
            ) from exc
        return index, locator

    async def upload_all(self, uploads: Sequence[ImageUpload]) -> list[str]:
        """
        Upload every buffer concurrently and return locators in input order.

        Returns at the first failure. Uploads that already completed are
        deleted best-effort, and uploads still in flight are cancelled.
        """
        if not uploads:
            return []

        tasks = [
            asyncio.create_task(self._upload_one(index, upload))
            for index, upload in enumerate(uploads)
        ]
        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        except asyncio.CancelledError:
            # The request was aborted: let in-flight uploads finish, keep nothing.
            abandoned = [task for task in tasks if not task.done()]
            for task in abandoned:
                _abandoned_uploads.add(task)
                task.add_done_callback(_abandoned_uploads.discard)
            logger.warning("image_upload_abandoned", in_flight=len(abandoned))
            raise

        failures = [t for t in done if not t.cancelled() and t.exception() is not None]
        if not failures:
            results = sorted(task.result() for task in done)
            return [locator for _, locator in results]

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.wait(pending)

        completed = [
            task.result()[1]
            for task in tasks
            if task.done() and not task.cancelled() and task.exception() is None
        ]
        first_error = failures[0].exception()
        logger.error(
            "image_upload_failed",
            requested=len(uploads),
            completed=len(completed),
            error=str(first_error),
        )
        if completed:
            await self.discard(completed)
        raise first_error  # type: ignore[misc]

    # -------------------------------------------------------------------------
    # Deletions
    # -------------------------------------------------------------------------

    async def _delete_one(self, locator: str) -> tuple[str, str]:
        classified = classify_locator(locator, self._layout)
        backend = self._backends.get(classified.kind)

        if classified.key is None or backend is None:
            logger.warning(
                "image_delete_skipped",
                locator=locator,
                kind=classified.kind.value,
                reason="unclassifiable" if classified.key is None else "backend_not_configured",
            )
            return locator, "skipped"

        try:
            await backend.delete(classified.key)
        except Exception as exc:
            logger.warning(
                "image_delete_failed",
                locator=locator,
                backend=classified.kind.value,
                error=str(exc),
            )
            return locator, "failed"

        logger.debug("image_deleted", locator=locator, backend=classified.kind.value)
        return locator, "deleted"

    async def discard(self, locators: Iterable[str]) -> CleanupReport:
        """Delete every locator concurrently. Never raises for storage failures."""
        report = CleanupReport()
        unique = list(dict.fromkeys(locators))
        if not unique:
            return report

        outcomes = await asyncio.gather(*(self._delete_one(loc) for loc in unique))
        for locator, outcome in outcomes:
            getattr(report, outcome).append(locator)

        if report.orphaned:
            logger.warning(
                "image_cleanup_incomplete",
                deleted=len(report.deleted),
                failed=len(report.failed),
                skipped=len(report.skipped),
            )
        return report

    # -------------------------------------------------------------------------
    # Update-time reconciliation
    # -------------------------------------------------------------------------

    def plan_removal(
        self, current: Sequence[str], to_delete: Iterable[str]
    ) -> tuple[list[str], list[str]]:
        """
        Split ``current`` into (kept, removed). Locators the listing does not
        own are ignored so one listing can never delete another's images.
        """
        requested = set(to_delete)
        kept = [loc for loc in current if loc not in requested]
        removed = [loc for loc in current if loc in requested]
        return kept, removed

    async def stage_update(
        self,
        current: Sequence[str],
        to_delete: Iterable[str],
        new_uploads: Sequence[ImageUpload],
    ) -> StagedImageUpdate:
        """
        Upload the new images and compute ``(current minus to_delete) + new``.

        Nothing is deleted here: the caller saves and commits the new list
        first and then hands ``removed`` to ``discard``, so a failed upload or a failed
        write never leaves the stored record pointing at deleted objects.
        """
        kept, removed = self.plan_removal(current, to_delete)
        added = await self.upload_all(new_uploads)
        return StagedImageUpdate(images=kept + added, added=added, removed=removed)
