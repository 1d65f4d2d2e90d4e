"""
Inventory Repository — persistence boundary for the reconciliation engine.

Every product write is committed on its own so that a failure on one row
never rolls back rows merged before it. Storage errors surface as
StoreFailure; callers decide whether to continue.
"""

import uuid
from datetime import datetime

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from db.models import (
    CsvUpload,
    Notification,
    Product,
    Seller,
    SellerSettings,
    StockHistory,
    Supplier,
)

logger = structlog.get_logger()


class StoreFailure(Exception):
    """A repository write or read failed."""

    def __init__(self, operation: str, detail: str, sku: str | None = None):
        self.operation = operation
        self.detail = detail
        self.sku = sku
        super().__init__(f"{operation} failed: {detail}")


class InventoryRepository:
    """Async SQLAlchemy access to one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self, operation: str, sku: str | None = None) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise StoreFailure(operation, str(exc), sku=sku) from exc

    async def refresh(self, instance) -> None:
        await self.db.refresh(instance)

    async def rollback(self) -> None:
        await self.db.rollback()

    # ── Sellers & settings ────────────────────────────────────────────────

    async def get_seller(self, seller_id: uuid.UUID) -> Seller | None:
        return await self.db.get(Seller, seller_id)

    async def list_sellers(self) -> list[Seller]:
        result = await self.db.execute(select(Seller).order_by(Seller.created_at))
        return list(result.scalars().all())

    async def get_seller_by_email(self, email: str) -> Seller | None:
        result = await self.db.execute(select(Seller).where(func.lower(Seller.email) == email.lower()))
        return result.scalar_one_or_none()

    async def create_seller(self, seller: Seller) -> Seller:
        self.db.add(seller)
        await self._commit("create_seller")
        return seller

    async def get_settings(self, seller_id: uuid.UUID) -> SellerSettings:
        """Return the seller's settings, creating the default row on first read."""
        result = await self.db.execute(select(SellerSettings).where(SellerSettings.seller_id == seller_id))
        row = result.scalar_one_or_none()
        if row is not None:
            return row

        row = SellerSettings(
            seller_id=seller_id,
            global_low_stock_threshold=get_settings().default_low_stock_threshold,
            email_notifications_enabled=False,
            auto_reconcile_enabled=True,
        )
        self.db.add(row)
        await self._commit("create_settings")
        logger.info("settings.created_default", seller_id=str(seller_id))
        return row

    async def save_settings(self, row: SellerSettings) -> SellerSettings:
        self.db.add(row)
        await self._commit("save_settings")
        return row

    # ── Products ──────────────────────────────────────────────────────────

    async def get_product(self, seller_id: uuid.UUID, product_id: uuid.UUID) -> Product | None:
        result = await self.db.execute(
            select(Product).where(Product.seller_id == seller_id, Product.product_id == product_id)
        )
        return result.scalar_one_or_none()

    async def get_product_by_sku(self, seller_id: uuid.UUID, sku: str) -> Product | None:
        try:
            result = await self.db.execute(select(Product).where(Product.seller_id == seller_id, Product.sku == sku))
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise StoreFailure("get_product_by_sku", str(exc), sku=sku) from exc
        return result.scalar_one_or_none()

    async def list_products(
        self,
        seller_id: uuid.UUID,
        low_stock_only: bool = False,
        search: str | None = None,
    ) -> list[Product]:
        query = select(Product).where(Product.seller_id == seller_id)
        if low_stock_only:
            query = query.where(Product.is_low_stock.is_(True))
        if search:
            pattern = f"%{search}%"
            query = query.where((Product.sku.ilike(pattern)) | (Product.name.ilike(pattern)))
        result = await self.db.execute(query.order_by(Product.sku))
        return list(result.scalars().all())

    async def save_product(self, product: Product, record_history: bool = False) -> Product:
        """Persist one product in its own transaction.

        With ``record_history`` a StockHistory snapshot is written in the
        same commit.
        """
        sku = product.sku
        try:
            self.db.add(product)
            await self.db.flush()
            if record_history:
                self.db.add(
                    StockHistory(
                        product_id=product.product_id,
                        seller_id=product.seller_id,
                        total_quantity=product.total_quantity,
                        channels=[dict(entry) for entry in product.channels],
                    )
                )
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise StoreFailure("save_product", str(exc), sku=sku) from exc
        return product

    async def delete_product(self, product: Product) -> None:
        sku = product.sku
        await self.db.execute(delete(StockHistory).where(StockHistory.product_id == product.product_id))
        await self.db.delete(product)
        await self._commit("delete_product", sku=sku)

    async def list_stock_history(self, product_id: uuid.UUID, limit: int = 50) -> list[StockHistory]:
        result = await self.db.execute(
            select(StockHistory)
            .where(StockHistory.product_id == product_id)
            .order_by(StockHistory.recorded_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    # ── Suppliers ─────────────────────────────────────────────────────────

    async def get_supplier(self, seller_id: uuid.UUID, supplier_id: uuid.UUID) -> Supplier | None:
        result = await self.db.execute(
            select(Supplier).where(Supplier.seller_id == seller_id, Supplier.supplier_id == supplier_id)
        )
        return result.scalar_one_or_none()

    async def list_suppliers(self, seller_id: uuid.UUID) -> list[Supplier]:
        result = await self.db.execute(select(Supplier).where(Supplier.seller_id == seller_id).order_by(Supplier.name))
        return list(result.scalars().all())

    async def create_supplier(self, supplier: Supplier) -> Supplier:
        self.db.add(supplier)
        await self._commit("create_supplier")
        return supplier

    async def save_supplier(self, supplier: Supplier) -> Supplier:
        self.db.add(supplier)
        await self._commit("save_supplier")
        return supplier

    async def delete_supplier(self, supplier: Supplier) -> int:
        """Delete a supplier, unassigning its products. Returns how many were unassigned."""
        unassigned = await self.db.execute(
            update(Product).where(Product.supplier_id == supplier.supplier_id).values(supplier_id=None)
        )
        # Past notifications stay in the audit trail without a supplier
        await self.db.execute(
            update(Notification).where(Notification.supplier_id == supplier.supplier_id).values(supplier_id=None)
        )
        await self.db.delete(supplier)
        await self._commit("delete_supplier")
        return unassigned.rowcount

    # ── Uploads ───────────────────────────────────────────────────────────

    async def create_upload(self, upload: CsvUpload) -> CsvUpload:
        self.db.add(upload)
        await self._commit("create_upload")
        return upload

    async def get_upload(self, seller_id: uuid.UUID, upload_id: uuid.UUID) -> CsvUpload | None:
        result = await self.db.execute(
            select(CsvUpload).where(CsvUpload.seller_id == seller_id, CsvUpload.upload_id == upload_id)
        )
        return result.scalar_one_or_none()

    async def finish_upload(self, upload: CsvUpload, status: str, **fields) -> CsvUpload:
        upload.status = status
        upload.processed_at = datetime.utcnow()
        for key, value in fields.items():
            setattr(upload, key, value)
        self.db.add(upload)
        await self._commit("finish_upload")
        return upload

    async def list_uploads(self, seller_id: uuid.UUID, limit: int = 50) -> list[CsvUpload]:
        result = await self.db.execute(
            select(CsvUpload)
            .where(CsvUpload.seller_id == seller_id)
            .order_by(CsvUpload.uploaded_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    # ── Notifications ─────────────────────────────────────────────────────

    async def add_notification(self, notification: Notification) -> Notification:
        self.db.add(notification)
        await self._commit("add_notification")
        return notification

    async def list_notifications(self, seller_id: uuid.UUID, limit: int = 100) -> list[Notification]:
        result = await self.db.execute(
            select(Notification)
            .where(Notification.seller_id == seller_id)
            .order_by(Notification.sent_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
