from fastapi import APIRouter, Depends
from sqlalchemy import text

from src.api.dependencies import get_asset_manager
from src.application.services.image_asset_manager import ImageAssetManager
from src.infrastructure.database.connection import AsyncSessionLocal

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(
    asset_manager: ImageAssetManager = Depends(get_asset_manager),
) -> dict:  # type: ignore[type-arg]
    """Liveness + dependency health check."""
    db_status = "connected"
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        db_status = f"error: {exc}"

    storage_status = "ok"
    try:
        await asset_manager.storage.check()
    except Exception as exc:
        storage_status = f"error: {exc}"

    overall = "healthy" if db_status == "connected" and storage_status == "ok" else "degraded"

    return {
        "status": overall,
        "database": db_status,
        "storage": {"backend": asset_manager.storage.kind.value, "status": storage_status},
    }
