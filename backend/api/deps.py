"""
FlowStock API Dependencies

Dependency injection for DB sessions, the inventory repository and seller context.
"""

import uuid
from collections.abc import AsyncGenerator

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Seller
from db.session import AsyncSessionLocal
from inventory.repository import InventoryRepository


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def get_seller_id(x_seller_id: str | None = Header(None)) -> uuid.UUID:
    """Read the tenant from the X-Seller-ID header."""
    if not x_seller_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing X-Seller-ID header",
        )
    try:
        return uuid.UUID(x_seller_id.strip())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Seller-ID must be a UUID",
        )


def get_repository(db: AsyncSession = Depends(get_db)) -> InventoryRepository:
    return InventoryRepository(db)


async def get_current_seller(
    seller_id: uuid.UUID = Depends(get_seller_id),
    repo: InventoryRepository = Depends(get_repository),
) -> Seller:
    seller = await repo.get_seller(seller_id)
    if seller is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Seller not found")
    return seller
