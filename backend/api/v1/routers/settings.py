"""
Settings Router — per-seller low-stock threshold and notification switches.

Saving settings re-runs the whole-seller sweep. Products keep the threshold
pinned when they were created, so a new global threshold only changes the
flags of products whose own threshold has been cleared.
"""

from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field

from alerts.engine import notify_transitions
from api.deps import get_current_seller, get_repository
from api.schemas import CamelModel
from db.models import Seller
from inventory.locks import tenant_lock
from inventory.reconciliation import reconcile_tenant
from inventory.repository import InventoryRepository, StoreFailure

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/settings", tags=["settings"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class SettingsUpdate(CamelModel):
    global_low_stock_threshold: int | None = Field(None, ge=0, le=1000)
    email_notifications_enabled: bool | None = None
    auto_reconcile_enabled: bool | None = None


class SettingsResponse(CamelModel):
    global_low_stock_threshold: int
    email_notifications_enabled: bool
    auto_reconcile_enabled: bool
    updated_at: datetime | None = None


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("", response_model=SettingsResponse)
async def get_settings(
    seller: Seller = Depends(get_current_seller),
    repo: InventoryRepository = Depends(get_repository),
):
    """Current settings, created with defaults on first read."""
    return await repo.get_settings(seller.seller_id)


@router.put("", response_model=SettingsResponse)
async def update_settings(
    update: SettingsUpdate,
    seller: Seller = Depends(get_current_seller),
    repo: InventoryRepository = Depends(get_repository),
):
    """Update settings and re-reconcile every product."""
    seller_id = seller.seller_id

    async with tenant_lock(seller_id):
        try:
            settings_row = await repo.get_settings(seller_id)
            for key, value in update.model_dump(exclude_none=True).items():
                setattr(settings_row, key, value)
            await repo.save_settings(settings_row)
        except StoreFailure as exc:
            logger.error("settings.update_failed", seller_id=str(seller_id), error=exc.detail)
            raise HTTPException(status_code=500, detail="Failed to update settings")

        threshold = settings_row.global_low_stock_threshold
        notifications_enabled = settings_row.email_notifications_enabled

        sweep = await reconcile_tenant(repo, seller_id, threshold)
        await notify_transitions(
            repo,
            seller_id,
            sweep.transitions,
            notifications_enabled=notifications_enabled,
            global_threshold=threshold,
        )
        settings_row = await repo.get_settings(seller_id)

    logger.info("settings.updated", seller_id=str(seller_id), threshold=threshold, updated=sweep.updated_count)
    return settings_row
