"""
FlowStock Database Models

Multi-tenant via seller_id on all tables.

Tables:
  1. sellers          - Tenant accounts (the inventory owners)
  2. seller_settings  - Per-seller thresholds and notification switches
  3. suppliers        - Per-seller suppliers who receive low-stock alerts
  4. products         - Canonical per-SKU stock record across channels
  5. csv_uploads      - Upload audit trail (append-only)
  6. notifications    - Low-stock alert audit trail (immutable)
  7. stock_history    - Per-merge snapshots of product stock
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    TypeDecorator,
    UniqueConstraint,
    types,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID


class GUID(TypeDecorator):
    """Platform-independent UUID type.

    Uses PostgreSQL UUID when available, stores as CHAR(36) on SQLite.
    """

    impl = types.String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(types.String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if dialect.name == "postgresql":
            return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
        return str(value) if isinstance(value, uuid.UUID) else str(uuid.UUID(str(value)))

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))


from sqlalchemy.orm import relationship

from db.session import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
ChannelList = JSON().with_variant(JSONB(), "postgresql")


# ─── 1. Sellers ─────────────────────────────────────────────────────────────


class Seller(Base):
    __tablename__ = "sellers"

    seller_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    company_name = Column(String(255))
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    settings = relationship("SellerSettings", back_populates="seller", uselist=False, cascade="all, delete-orphan")
    products = relationship("Product", back_populates="seller", cascade="all, delete-orphan")
    suppliers = relationship("Supplier", back_populates="seller", cascade="all, delete-orphan")

    @property
    def display_name(self) -> str:
        return self.company_name or self.name


# ─── 2. Seller Settings ─────────────────────────────────────────────────────


class SellerSettings(Base):
    __tablename__ = "seller_settings"

    settings_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    seller_id = Column(GUID(), ForeignKey("sellers.seller_id"), nullable=False, unique=True)
    global_low_stock_threshold = Column(Integer, nullable=False, default=10)
    email_notifications_enabled = Column(Boolean, nullable=False, default=False)
    auto_reconcile_enabled = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(
            "global_low_stock_threshold >= 0 AND global_low_stock_threshold <= 1000",
            name="ck_settings_threshold_range",
        ),
    )

    seller = relationship("Seller", back_populates="settings")


# ─── 3. Suppliers ───────────────────────────────────────────────────────────


class Supplier(Base):
    __tablename__ = "suppliers"

    supplier_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    seller_id = Column(GUID(), ForeignKey("sellers.seller_id"), nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    contact_person = Column(String(255))
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (Index("ix_suppliers_seller", "seller_id"),)

    seller = relationship("Seller", back_populates="suppliers")
    products = relationship("Product", back_populates="supplier")


# ─── 4. Products ────────────────────────────────────────────────────────────


class Product(Base):
    __tablename__ = "products"

    product_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    seller_id = Column(GUID(), ForeignKey("sellers.seller_id"), nullable=False)
    sku = Column(String(255), nullable=False)
    name = Column(String(500), nullable=False)
    # [{"channel": "Amazon", "quantity": 12}, ...], at most one entry per channel
    channels = Column(ChannelList, nullable=False, default=list)
    total_quantity = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=True)
    is_low_stock = Column(Boolean, nullable=False, default=False)
    supplier_id = Column(GUID(), ForeignKey("suppliers.supplier_id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("seller_id", "sku", name="uq_product_sku_per_seller"),
        Index("ix_products_seller", "seller_id"),
        Index("ix_products_seller_low_stock", "seller_id", "is_low_stock"),
        CheckConstraint("total_quantity >= 0", name="ck_product_total_non_negative"),
    )

    seller = relationship("Seller", back_populates="products")
    supplier = relationship("Supplier", back_populates="products")


# ─── 5. CSV Uploads ─────────────────────────────────────────────────────────


class CsvUpload(Base):
    __tablename__ = "csv_uploads"

    upload_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    seller_id = Column(GUID(), ForeignKey("sellers.seller_id"), nullable=False)
    filename = Column(String(500), nullable=False)
    channel = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    detected_platform = Column(String(20))
    confidence = Column(Float)
    rows_processed = Column(Integer)
    rows_skipped = Column(Integer)
    error_message = Column(Text)
    uploaded_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    processed_at = Column(DateTime)

    __table_args__ = (
        Index("ix_csv_uploads_seller_uploaded", "seller_id", "uploaded_at"),
        CheckConstraint("channel IN ('Amazon', 'Shopify')", name="ck_upload_channel"),
        CheckConstraint(
            "status IN ('pending', 'processing', 'completed', 'error')",
            name="ck_upload_status",
        ),
    )


# ─── 6. Notifications ───────────────────────────────────────────────────────


class Notification(Base):
    __tablename__ = "notifications"

    notification_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    seller_id = Column(GUID(), ForeignKey("sellers.seller_id"), nullable=False)
    product_id = Column(GUID(), ForeignKey("products.product_id", ondelete="SET NULL"), nullable=True)
    supplier_id = Column(GUID(), ForeignKey("suppliers.supplier_id", ondelete="SET NULL"), nullable=True)
    notification_type = Column("type", String(30), nullable=False, default="low_stock_alert")
    status = Column(String(20), nullable=False, default="sent")
    subject = Column(Text)
    body = Column(Text)
    sent_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_notifications_seller_sent", "seller_id", "sent_at"),
        CheckConstraint("type IN ('low_stock_alert', 'low_stock_recheck')", name="ck_notification_type"),
        CheckConstraint("status IN ('sent', 'failed')", name="ck_notification_status"),
    )


# ─── 7. Stock History ───────────────────────────────────────────────────────


class StockHistory(Base):
    __tablename__ = "stock_history"

    history_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    product_id = Column(GUID(), ForeignKey("products.product_id", ondelete="CASCADE"), nullable=False)
    seller_id = Column(GUID(), ForeignKey("sellers.seller_id"), nullable=False)
    total_quantity = Column(Integer, nullable=False)
    channels = Column(ChannelList, nullable=False)
    recorded_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (Index("ix_stock_history_product_recorded", "product_id", "recorded_at"),)
