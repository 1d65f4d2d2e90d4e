"""
Products Router — reconciled product stock, manual corrections and deletion.
"""

from datetime import datetime
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import Field

from alerts.engine import notify_transitions
from api.deps import get_current_seller, get_repository
from api.schemas import CamelModel
from db.models import Seller
from ingest.formats import Channel
from inventory.locks import tenant_lock
from inventory.reconciliation import apply_manual_edit
from inventory.repository import InventoryRepository, StoreFailure

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/products", tags=["products"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class ChannelQuantity(CamelModel):
    channel: Channel
    quantity: int = Field(..., ge=0)


class ProductUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=500)
    channels: list[ChannelQuantity] | None = None
    low_stock_threshold: int | None = Field(None, ge=0, le=1000)
    supplier_id: UUID | None = None


class ProductResponse(CamelModel):
    product_id: UUID
    seller_id: UUID
    sku: str
    name: str
    channels: list[ChannelQuantity]
    total_quantity: int
    low_stock_threshold: int | None
    is_low_stock: bool
    supplier_id: UUID | None
    created_at: datetime
    updated_at: datetime


class StockHistoryResponse(CamelModel):
    total_quantity: int
    channels: list[ChannelQuantity]
    recorded_at: datetime


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("", response_model=list[ProductResponse])
async def list_products(
    low_stock: bool = Query(False),
    search: str | None = Query(None, max_length=100),
    seller: Seller = Depends(get_current_seller),
    repo: InventoryRepository = Depends(get_repository),
):
    """List the seller's products, optionally only low-stock ones."""
    return await repo.list_products(seller.seller_id, low_stock_only=low_stock, search=search)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: UUID,
    seller: Seller = Depends(get_current_seller),
    repo: InventoryRepository = Depends(get_repository),
):
    """Get a single product by ID."""
    product = await repo.get_product(seller.seller_id, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("/{product_id}/history", response_model=list[StockHistoryResponse])
async def get_product_history(
    product_id: UUID,
    limit: int = Query(50, ge=1, le=500),
    seller: Seller = Depends(get_current_seller),
    repo: InventoryRepository = Depends(get_repository),
):
    """Stock snapshots recorded by uploads and quantity edits, newest first."""
    product = await repo.get_product(seller.seller_id, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return await repo.list_stock_history(product_id, limit=limit)


@router.patch("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: UUID,
    update: ProductUpdate,
    seller: Seller = Depends(get_current_seller),
    repo: InventoryRepository = Depends(get_repository),
):
    """Manually correct quantities, threshold, name or supplier."""
    seller_id = seller.seller_id
    fields = update.model_fields_set

    async with tenant_lock(seller_id):
        product = await repo.get_product(seller_id, product_id)
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")

        if update.supplier_id is not None and await repo.get_supplier(seller_id, update.supplier_id) is None:
            raise HTTPException(status_code=404, detail="Supplier not found")

        settings_row = await repo.get_settings(seller_id)
        threshold = settings_row.global_low_stock_threshold
        notifications_enabled = settings_row.email_notifications_enabled

        edit: dict = {"name": update.name}
        if update.channels is not None:
            edit["channel_quantities"] = {entry.channel: entry.quantity for entry in update.channels}
        if "low_stock_threshold" in fields:
            edit["low_stock_threshold"] = update.low_stock_threshold
        if "supplier_id" in fields:
            edit["supplier_id"] = update.supplier_id

        try:
            transition = await apply_manual_edit(repo, product, threshold, **edit)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        except StoreFailure as exc:
            logger.error("products.update_failed", seller_id=str(seller_id), product_id=str(product_id), error=exc.detail)
            raise HTTPException(status_code=500, detail="Failed to update product")

        await notify_transitions(
            repo,
            seller_id,
            [transition],
            notifications_enabled=notifications_enabled,
            global_threshold=threshold,
        )
        await repo.refresh(product)

    logger.info("products.updated", seller_id=str(seller_id), product_id=str(product_id), fields=sorted(fields))
    return product


@router.delete("/{product_id}", status_code=204)
async def delete_product(
    product_id: UUID,
    seller: Seller = Depends(get_current_seller),
    repo: InventoryRepository = Depends(get_repository),
):
    """Delete a product and its stock history."""
    seller_id = seller.seller_id
    async with tenant_lock(seller_id):
        product = await repo.get_product(seller_id, product_id)
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")
        try:
            await repo.delete_product(product)
        except StoreFailure as exc:
            logger.error("products.delete_failed", seller_id=str(seller_id), product_id=str(product_id), error=exc.detail)
            raise HTTPException(status_code=500, detail="Failed to delete product")

    logger.info("products.deleted", seller_id=str(seller_id), product_id=str(product_id))
