"""
Initial schema - all 7 tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # 1. Sellers
    op.create_table(
        "sellers",
        sa.Column("seller_id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("company_name", sa.String(255)),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )

    # 2. Seller settings
    op.create_table(
        "seller_settings",
        sa.Column("settings_id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column(
            "seller_id", UUID(as_uuid=True), sa.ForeignKey("sellers.seller_id"), nullable=False, unique=True
        ),
        sa.Column("global_low_stock_threshold", sa.Integer, nullable=False, server_default="10"),
        sa.Column("email_notifications_enabled", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("auto_reconcile_enabled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "global_low_stock_threshold >= 0 AND global_low_stock_threshold <= 1000",
            name="ck_settings_threshold_range",
        ),
    )

    # 3. Suppliers
    op.create_table(
        "suppliers",
        sa.Column("supplier_id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("seller_id", UUID(as_uuid=True), sa.ForeignKey("sellers.seller_id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("contact_person", sa.String(255)),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_suppliers_seller", "suppliers", ["seller_id"])

    # 4. Products
    op.create_table(
        "products",
        sa.Column("product_id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("seller_id", UUID(as_uuid=True), sa.ForeignKey("sellers.seller_id"), nullable=False),
        sa.Column("sku", sa.String(255), nullable=False),
        sa.Column("name", sa.String(500), nullable=False),
        sa.Column("channels", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("total_quantity", sa.Integer, nullable=False, server_default="0"),
        sa.Column("low_stock_threshold", sa.Integer),
        sa.Column("is_low_stock", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("supplier_id", UUID(as_uuid=True), sa.ForeignKey("suppliers.supplier_id", ondelete="SET NULL")),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("seller_id", "sku", name="uq_product_sku_per_seller"),
        sa.CheckConstraint("total_quantity >= 0", name="ck_product_total_non_negative"),
    )
    op.create_index("ix_products_seller", "products", ["seller_id"])
    op.create_index("ix_products_seller_low_stock", "products", ["seller_id", "is_low_stock"])

    # 5. CSV uploads
    op.create_table(
        "csv_uploads",
        sa.Column("upload_id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("seller_id", UUID(as_uuid=True), sa.ForeignKey("sellers.seller_id"), nullable=False),
        sa.Column("filename", sa.String(500), nullable=False),
        sa.Column("channel", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("detected_platform", sa.String(20)),
        sa.Column("confidence", sa.Float),
        sa.Column("rows_processed", sa.Integer),
        sa.Column("rows_skipped", sa.Integer),
        sa.Column("error_message", sa.Text),
        sa.Column("uploaded_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("processed_at", sa.DateTime),
        sa.CheckConstraint("channel IN ('Amazon', 'Shopify')", name="ck_upload_channel"),
        sa.CheckConstraint("status IN ('pending', 'processing', 'completed', 'error')", name="ck_upload_status"),
    )
    op.create_index("ix_csv_uploads_seller_uploaded", "csv_uploads", ["seller_id", "uploaded_at"])

    # 6. Notifications
    op.create_table(
        "notifications",
        sa.Column(
            "notification_id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")
        ),
        sa.Column("seller_id", UUID(as_uuid=True), sa.ForeignKey("sellers.seller_id"), nullable=False),
        sa.Column("product_id", UUID(as_uuid=True), sa.ForeignKey("products.product_id", ondelete="SET NULL")),
        sa.Column("supplier_id", UUID(as_uuid=True), sa.ForeignKey("suppliers.supplier_id", ondelete="SET NULL")),
        sa.Column("type", sa.String(30), nullable=False, server_default="low_stock_alert"),
        sa.Column("status", sa.String(20), nullable=False, server_default="sent"),
        sa.Column("subject", sa.Text),
        sa.Column("body", sa.Text),
        sa.Column("sent_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("type IN ('low_stock_alert', 'low_stock_recheck')", name="ck_notification_type"),
        sa.CheckConstraint("status IN ('sent', 'failed')", name="ck_notification_status"),
    )
    op.create_index("ix_notifications_seller_sent", "notifications", ["seller_id", "sent_at"])

    # 7. Stock history
    op.create_table(
        "stock_history",
        sa.Column("history_id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column(
            "product_id",
            UUID(as_uuid=True),
            sa.ForeignKey("products.product_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("seller_id", UUID(as_uuid=True), sa.ForeignKey("sellers.seller_id"), nullable=False),
        sa.Column("total_quantity", sa.Integer, nullable=False),
        sa.Column("channels", JSONB, nullable=False),
        sa.Column("recorded_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_stock_history_product_recorded", "stock_history", ["product_id", "recorded_at"])


def downgrade() -> None:
    tables = [
        "stock_history",
        "notifications",
        "csv_uploads",
        "products",
        "suppliers",
        "seller_settings",
        "sellers",
    ]
    for table in tables:
        op.drop_table(table)
