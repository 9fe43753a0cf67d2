"""Unit tests for the image asset manager: ordered uploads, best-effort deletes."""
import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.application.errors import ImageUploadError
from src.application.services.image_asset_manager import ImageAssetManager
from src.domain.assets.image_locator import ImageLocatorKind
from tests.fakes import LAYOUT, FakeStorage, image


def _manager(storage: FakeStorage, *extra: FakeStorage) -> ImageAssetManager:
    return ImageAssetManager(storage, LAYOUT, backends=extra)


class TestUploadAll:
    @pytest.mark.asyncio
    async def test_locators_follow_input_order(self) -> None:
        # Earlier uploads finish last
        storage = FakeStorage(delays={b"a": 0.03, b"b": 0.02, b"c": 0.01})
        manager = _manager(storage)

        locators = await manager.upload_all([image(b"a"), image(b"b"), image(b"c")])

        assert [loc.rsplit("-", 1)[1] for loc in locators] == ["a.jpg", "b.jpg", "c.jpg"]

    @pytest.mark.asyncio
    async def test_empty_input(self) -> None:
        assert await _manager(FakeStorage()).upload_all([]) == []

    @pytest.mark.asyncio
    async def test_failure_raises_and_discards_completed_uploads(self) -> None:
        storage = FakeStorage(fail_uploads={b"bad"}, delays={b"bad": 0.01})
        manager = _manager(storage)

        with pytest.raises(ImageUploadError, match="#2"):
            await manager.upload_all([image(b"ok"), image(b"bad")])

        assert storage.objects == {}
        assert len(storage.delete_calls) == 1

    @pytest.mark.asyncio
    async def test_failure_cancels_in_flight_uploads(self) -> None:
        storage = FakeStorage(fail_uploads={b"bad"}, delays={b"slow": 5})
        manager = _manager(storage)

        with pytest.raises(ImageUploadError):
            await asyncio.wait_for(manager.upload_all([image(b"slow"), image(b"bad")]), 1)

        assert storage.objects == {}

    @pytest.mark.asyncio
    async def test_cancelled_request_leaves_uploads_running(self) -> None:
        storage = FakeStorage(delays={b"a": 0.05})
        manager = _manager(storage)

        task = asyncio.create_task(manager.upload_all([image(b"a")]))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        await asyncio.sleep(0.1)
        assert storage.put_calls == [b"a"]
        assert len(storage.objects) == 1

    @pytest.mark.asyncio
    async def test_abandoned_count_is_per_request(self) -> None:
        storage = FakeStorage(delays={b"a": 0.2, b"b": 0.2, b"c": 0.2})
        manager = _manager(storage)

        with patch("src.application.services.image_asset_manager.logger") as logger:
            first = asyncio.create_task(manager.upload_all([image(b"a")]))
            await asyncio.sleep(0.01)
            first.cancel()
            second = asyncio.create_task(manager.upload_all([image(b"b"), image(b"c")]))
            await asyncio.sleep(0.01)
            second.cancel()
            for task in (first, second):
                with pytest.raises(asyncio.CancelledError):
                    await task

        counts = [c.kwargs["in_flight"] for c in logger.warning.call_args_list]
        assert counts == [1, 2]
        await asyncio.sleep(0.3)


class TestDiscard:
    @pytest.mark.asyncio
    async def test_routes_by_locator_shape(self) -> None:
        local = FakeStorage(ImageLocatorKind.LOCAL)
        remote = FakeStorage(ImageLocatorKind.REMOTE)
        manager = _manager(local, remote)
        local_loc = local.seed("a.jpg")
        remote_loc = remote.seed("b.jpg")

        report = await manager.discard([local_loc, remote_loc])

        assert sorted(report.deleted) == sorted([local_loc, remote_loc])
        assert local.delete_calls == ["a.jpg"]
        assert remote.delete_calls == ["estate-listings/b.jpg"]

    @pytest.mark.asyncio
    async def test_failures_are_reported_not_raised(self) -> None:
        storage = FakeStorage(fail_deletes={"a.jpg"})
        manager = _manager(storage)
        a = storage.seed("a.jpg")
        b = storage.seed("b.jpg")

        report = await manager.discard([a, b])

        assert report.failed == [a]
        assert report.deleted == [b]
        assert report.orphaned == [a]

    @pytest.mark.asyncio
    async def test_unknown_locators_are_skipped(self) -> None:
        storage = FakeStorage()
        report = await _manager(storage).discard(["https://elsewhere.example/x.jpg"])
        assert report.skipped == ["https://elsewhere.example/x.jpg"]
        assert storage.delete_calls == []

    @pytest.mark.asyncio
    async def test_unconfigured_backend_is_skipped(self) -> None:
        storage = FakeStorage(ImageLocatorKind.LOCAL)
        remote_loc = FakeStorage(ImageLocatorKind.REMOTE).seed("a.jpg")
        report = await _manager(storage).discard([remote_loc])
        assert report.skipped == [remote_loc]

    @pytest.mark.asyncio
    async def test_duplicates_deleted_once(self) -> None:
        storage = FakeStorage()
        a = storage.seed("a.jpg")
        await _manager(storage).discard([a, a])
        assert storage.delete_calls == ["a.jpg"]


class TestStageUpdate:
    def test_plan_removal_ignores_foreign_locators(self) -> None:
        manager = _manager(FakeStorage())
        kept, removed = manager.plan_removal(
            ["/uploads/a.jpg", "/uploads/b.jpg"], ["/uploads/b.jpg", "/uploads/other.jpg"]
        )
        assert kept == ["/uploads/a.jpg"]
        assert removed == ["/uploads/b.jpg"]

    @pytest.mark.asyncio
    async def test_kept_then_new_in_order(self) -> None:
        storage = FakeStorage()
        manager = _manager(storage)
        a, b, c = storage.seed("a.jpg"), storage.seed("b.jpg"), storage.seed("c.jpg")

        staged = await manager.stage_update([a, b, c], [a, c], [image(b"n1"), image(b"n2")])

        assert staged.images[0] == b
        assert staged.images[1:] == staged.added
        assert len(staged.added) == 2
        assert staged.removed == [a, c]
        # Nothing is deleted until the caller discards
        assert storage.delete_calls == []


@pytest.mark.asyncio
async def test_close_releases_every_backend() -> None:
    local = MagicMock(kind=ImageLocatorKind.LOCAL, close=AsyncMock())
    remote = MagicMock(kind=ImageLocatorKind.REMOTE, close=AsyncMock())
    manager = ImageAssetManager(remote, LAYOUT, backends=[local, remote])

    await manager.close()

    local.close.assert_awaited_once()
    remote.close.assert_awaited_once()
