"""
Inventory Router — stock summary, CSV export and reconcile-now.
"""

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import Response

from alerts.engine import notify_transitions
from api.deps import get_current_seller, get_repository
from api.schemas import CamelModel
from db.models import Seller
from inventory.export import EXPORT_FILENAME, render_inventory_csv
from inventory.locks import tenant_lock
from inventory.reconciliation import reconcile_tenant
from inventory.repository import InventoryRepository

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/inventory", tags=["inventory"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class InventorySummary(CamelModel):
    total_products: int
    low_stock_count: int
    in_stock_count: int
    total_units: int
    amazon_products: int
    shopify_products: int


class ReconcileResponse(CamelModel):
    success: bool
    message: str
    total_products: int
    low_stock_count: int
    notifications_sent: int


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("/summary", response_model=InventorySummary)
async def get_inventory_summary(
    seller: Seller = Depends(get_current_seller),
    repo: InventoryRepository = Depends(get_repository),
):
    """Dashboard counts across all of the seller's products."""
    products = await repo.list_products(seller.seller_id)
    low = sum(1 for p in products if p.is_low_stock)

    def _on(channel: str) -> int:
        return sum(1 for p in products if any(e.get("channel") == channel for e in p.channels or []))

    return InventorySummary(
        total_products=len(products),
        low_stock_count=low,
        in_stock_count=len(products) - low,
        total_units=sum(p.total_quantity for p in products),
        amazon_products=_on("Amazon"),
        shopify_products=_on("Shopify"),
    )


@router.get("/export")
async def export_inventory(
    seller: Seller = Depends(get_current_seller),
    repo: InventoryRepository = Depends(get_repository),
):
    """Download every product as ``inventory-report.csv``."""
    seller_id = seller.seller_id
    settings_row = await repo.get_settings(seller_id)
    products = await repo.list_products(seller_id)
    body = render_inventory_csv(products, settings_row.global_low_stock_threshold)

    logger.info("inventory.exported", seller_id=str(seller_id), products=len(products))
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile_now(
    seller: Seller = Depends(get_current_seller),
    repo: InventoryRepository = Depends(get_repository),
):
    """Recompute every product's totals and low-stock flag right now."""
    seller_id = seller.seller_id

    async with tenant_lock(seller_id):
        settings_row = await repo.get_settings(seller_id)
        threshold = settings_row.global_low_stock_threshold
        notifications_enabled = settings_row.email_notifications_enabled

        sweep = await reconcile_tenant(repo, seller_id, threshold)
        sent = await notify_transitions(
            repo,
            seller_id,
            sweep.transitions,
            notifications_enabled=notifications_enabled,
            global_threshold=threshold,
        )

    return ReconcileResponse(
        success=True,
        message=f"Reconciliation completed for {sweep.total_products} products",
        total_products=sweep.total_products,
        low_stock_count=sweep.low_stock_count,
        notifications_sent=sent,
    )
