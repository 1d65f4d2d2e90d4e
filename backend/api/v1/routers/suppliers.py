"""
Suppliers Router — who receives low-stock alerts.
"""

from datetime import datetime
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field

from api.deps import get_current_seller, get_repository
from api.schemas import CamelModel
from db.models import Seller, Supplier
from inventory.locks import tenant_lock
from inventory.repository import InventoryRepository, StoreFailure

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/suppliers", tags=["suppliers"])

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"


# ─── Schemas ────────────────────────────────────────────────────────────────


class SupplierCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    contact_person: str | None = Field(None, max_length=255)


class SupplierUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    email: str | None = Field(None, min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    contact_person: str | None = Field(None, max_length=255)


class SupplierResponse(CamelModel):
    supplier_id: UUID
    seller_id: UUID
    name: str
    email: str
    contact_person: str | None
    created_at: datetime


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("", response_model=list[SupplierResponse])
async def list_suppliers(
    seller: Seller = Depends(get_current_seller),
    repo: InventoryRepository = Depends(get_repository),
):
    """List the seller's suppliers by name."""
    return await repo.list_suppliers(seller.seller_id)


@router.post("", response_model=SupplierResponse, status_code=201)
async def create_supplier(
    supplier: SupplierCreate,
    seller: Seller = Depends(get_current_seller),
    repo: InventoryRepository = Depends(get_repository),
):
    """Create a supplier."""
    seller_id = seller.seller_id
    try:
        created = await repo.create_supplier(Supplier(**supplier.model_dump(), seller_id=seller_id))
    except StoreFailure as exc:
        logger.error("suppliers.create_failed", seller_id=str(seller_id), error=exc.detail)
        raise HTTPException(status_code=500, detail="Failed to create supplier")
    return created


@router.put("/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    supplier_id: UUID,
    update: SupplierUpdate,
    seller: Seller = Depends(get_current_seller),
    repo: InventoryRepository = Depends(get_repository),
):
    """Change a supplier's name, alert email or contact person."""
    seller_id = seller.seller_id
    supplier = await repo.get_supplier(seller_id, supplier_id)
    if not supplier:
        raise HTTPException(status_code=404, detail="Supplier not found")

    changes = update.model_dump(exclude_unset=True)
    if changes.get("name", "") is None or changes.get("email", "") is None:
        raise HTTPException(status_code=422, detail="Supplier name and email cannot be cleared")
    for key, value in changes.items():
        setattr(supplier, key, value)
    try:
        await repo.save_supplier(supplier)
    except StoreFailure as exc:
        logger.error("suppliers.update_failed", seller_id=str(seller_id), supplier_id=str(supplier_id), error=exc.detail)
        raise HTTPException(status_code=500, detail="Failed to update supplier")
    return supplier


@router.delete("/{supplier_id}", status_code=204)
async def delete_supplier(
    supplier_id: UUID,
    seller: Seller = Depends(get_current_seller),
    repo: InventoryRepository = Depends(get_repository),
):
    """Delete a supplier; its products are left without one."""
    seller_id = seller.seller_id
    async with tenant_lock(seller_id):
        supplier = await repo.get_supplier(seller_id, supplier_id)
        if not supplier:
            raise HTTPException(status_code=404, detail="Supplier not found")
        try:
            unassigned = await repo.delete_supplier(supplier)
        except StoreFailure as exc:
            logger.error("suppliers.delete_failed", seller_id=str(seller_id), supplier_id=str(supplier_id), error=exc.detail)
            raise HTTPException(status_code=500, detail="Failed to delete supplier")

    logger.info("suppliers.deleted", seller_id=str(seller_id), supplier_id=str(supplier_id), unassigned=unassigned)
