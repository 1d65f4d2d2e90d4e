"""
Notifications Router — audit trail of low-stock alert emails.
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from api.deps import get_current_seller, get_repository
from api.schemas import CamelModel
from db.models import Seller
from inventory.repository import InventoryRepository

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


class NotificationResponse(CamelModel):
    notification_id: UUID
    product_id: UUID | None
    supplier_id: UUID | None
    notification_type: str
    status: str
    subject: str | None
    sent_at: datetime


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    limit: int = Query(100, ge=1, le=500),
    seller: Seller = Depends(get_current_seller),
    repo: InventoryRepository = Depends(get_repository),
):
    """Every alert attempt, newest first, delivered or not."""
    return await repo.list_notifications(seller.seller_id, limit=limit)
