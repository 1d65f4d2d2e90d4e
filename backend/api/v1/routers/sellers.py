"""
Sellers Router — tenant accounts.

These endpoints sit outside the X-Seller-ID scope: they are how a client finds
or creates the seller it then acts as.
"""

from datetime import datetime
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field

from api.deps import get_repository
from api.schemas import CamelModel
from db.models import Seller
from inventory.repository import InventoryRepository, StoreFailure

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/sellers", tags=["sellers"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class SellerCreate(CamelModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    name: str = Field(..., min_length=1, max_length=255)
    company_name: str | None = Field(None, max_length=255)


class SellerResponse(CamelModel):
    seller_id: UUID
    email: str
    name: str
    company_name: str | None
    created_at: datetime


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("", response_model=list[SellerResponse])
async def list_sellers(repo: InventoryRepository = Depends(get_repository)):
    """List sellers, oldest first."""
    return await repo.list_sellers()


@router.post("", response_model=SellerResponse, status_code=201)
async def create_seller(
    seller: SellerCreate,
    repo: InventoryRepository = Depends(get_repository),
):
    """Create a seller account."""
    if await repo.get_seller_by_email(seller.email) is not None:
        raise HTTPException(status_code=409, detail="A seller with this email already exists")

    try:
        created = await repo.create_seller(Seller(**seller.model_dump()))
    except StoreFailure as exc:
        logger.error("sellers.create_failed", email=seller.email, error=exc.detail)
        raise HTTPException(status_code=500, detail="Failed to create seller")

    logger.info("sellers.created", seller_id=str(created.seller_id))
    return created
