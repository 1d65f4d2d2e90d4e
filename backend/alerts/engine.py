"""
Alert Engine — low-stock alert dispatch and the periodic auto-check.

Alert Types:
  - low_stock_alert:   product crossed into low stock (or got a supplier while low)
  - low_stock_recheck: periodic re-alert for every low-stock product with a supplier

Every "send" decision produces a Notification row, whether or not the email
was delivered. Delivery failures never undo the stock mutation that caused
them.
"""

import uuid
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

import structlog

from alerts.email import LowStockEmail, render_low_stock_html, send_low_stock_email
from alerts.policy import ALERT_TYPE, RECHECK_TYPE, should_recheck, should_send_alert
from db.models import Notification, Product, Seller, Supplier
from inventory.reconciliation import (
    ProductTransition,
    StockSnapshot,
    effective_threshold,
    reconcile_tenant,
)
from inventory.repository import InventoryRepository, StoreFailure

logger = structlog.get_logger()

EmailSender = Callable[[LowStockEmail, str], Awaitable[bool]]

DEFAULT_SELLER_NAME = "FlowStock seller"


def build_alert_payload(
    product: Product,
    supplier: Supplier,
    seller: Seller | None,
    global_threshold: int,
) -> LowStockEmail:
    return LowStockEmail(
        to_email=supplier.email,
        supplier_name=supplier.name,
        product_name=product.name,
        sku=product.sku,
        current_stock=product.total_quantity,
        threshold=effective_threshold(product, global_threshold),
        seller_company=seller.display_name if seller is not None else DEFAULT_SELLER_NAME,
    )


async def dispatch_low_stock_alert(
    repo: InventoryRepository,
    product: Product,
    *,
    seller: Seller | None,
    global_threshold: int,
    notification_type: str = ALERT_TYPE,
    sender: EmailSender = send_low_stock_email,
) -> Notification | None:
    """
    Email the product's supplier and record the attempt.

    Returns the Notification, or None when the supplier no longer exists.

    Raises:
        StoreFailure: the Notification row could not be written
    """
    supplier = await repo.get_supplier(product.seller_id, product.supplier_id)
    if supplier is None:
        logger.warning(
            "alerts.supplier_missing",
            seller_id=str(product.seller_id),
            sku=product.sku,
            supplier_id=str(product.supplier_id),
        )
        return None

    payload = build_alert_payload(product, supplier, seller, global_threshold)
    body = render_low_stock_html(payload)
    delivered = await sender(payload, body)

    notification = Notification(
        seller_id=product.seller_id,
        product_id=product.product_id,
        supplier_id=supplier.supplier_id,
        notification_type=notification_type,
        status="sent" if delivered else "failed",
        subject=payload.subject,
        body=body,
    )
    await repo.add_notification(notification)

    logger.info(
        "alerts.dispatched",
        seller_id=str(product.seller_id),
        sku=payload.sku,
        type=notification_type,
        status=notification.status,
    )
    return notification


async def _dispatch_all(
    repo: InventoryRepository,
    products: Iterable[Product],
    *,
    seller: Seller | None,
    global_threshold: int,
    notification_type: str,
    sender: EmailSender,
) -> int:
    sent = 0
    stale = False
    for product in products:
        if stale:
            await repo.refresh(product)
        try:
            notification = await dispatch_low_stock_alert(
                repo,
                product,
                seller=seller,
                global_threshold=global_threshold,
                notification_type=notification_type,
                sender=sender,
            )
        except StoreFailure as exc:
            logger.error("alerts.record_failed", type=notification_type, error=exc.detail)
            if seller is not None:
                await repo.refresh(seller)
            stale = True
            continue
        if notification is not None and notification.status == "sent":
            sent += 1
    return sent


async def notify_transitions(
    repo: InventoryRepository,
    seller_id: uuid.UUID,
    transitions: Iterable[ProductTransition],
    *,
    notifications_enabled: bool,
    global_threshold: int,
    sender: EmailSender = send_low_stock_email,
) -> int:
    """Apply the transition policy and dispatch alerts. Returns emails delivered."""
    due = [t.product for t in transitions if should_send_alert(t, notifications_enabled)]
    if not due:
        return 0

    seller = await repo.get_seller(seller_id)
    return await _dispatch_all(
        repo,
        due,
        seller=seller,
        global_threshold=global_threshold,
        notification_type=ALERT_TYPE,
        sender=sender,
    )


async def run_auto_check(
    repo: InventoryRepository,
    seller_id: uuid.UUID,
    sender: EmailSender = send_low_stock_email,
) -> dict[str, Any]:
    """
    Periodic auto-check for one seller:
    1. Skip entirely when email notifications are disabled
    2. Sweep the seller's products
    3. Re-alert every low-stock product with a supplier
    """
    settings_row = await repo.get_settings(seller_id)
    enabled = settings_row.email_notifications_enabled
    threshold = settings_row.global_low_stock_threshold

    if not enabled:
        logger.info("alerts.auto_check_skipped", seller_id=str(seller_id), reason="notifications_disabled")
        return {"status": "skipped", "reason": "notifications_disabled"}

    sweep = await reconcile_tenant(repo, seller_id, threshold)
    low_products = await repo.list_products(seller_id, low_stock_only=True)
    due = [p for p in low_products if should_recheck(StockSnapshot.of(p), enabled)]

    sent = 0
    if due:
        seller = await repo.get_seller(seller_id)
        sent = await _dispatch_all(
            repo,
            due,
            seller=seller,
            global_threshold=threshold,
            notification_type=RECHECK_TYPE,
            sender=sender,
        )

    logger.info("alerts.auto_check_completed", seller_id=str(seller_id), checked=len(due), sent=sent)
    return {
        "status": "success",
        "total_products": sweep.total_products,
        "low_stock_count": len(low_products),
        "notifications_sent": sent,
    }


async def run_auto_reconcile(
    repo: InventoryRepository,
    seller_id: uuid.UUID,
    sender: EmailSender = send_low_stock_email,
) -> dict[str, Any]:
    """Periodic sweep for sellers with auto-reconcile on, alerting on transitions."""
    settings_row = await repo.get_settings(seller_id)
    enabled = settings_row.email_notifications_enabled
    threshold = settings_row.global_low_stock_threshold

    if not settings_row.auto_reconcile_enabled:
        return {"status": "skipped", "reason": "auto_reconcile_disabled"}

    sweep = await reconcile_tenant(repo, seller_id, threshold)
    sent = await notify_transitions(
        repo,
        seller_id,
        sweep.transitions,
        notifications_enabled=enabled,
        global_threshold=threshold,
        sender=sender,
    )
    return {
        "status": "success",
        "total_products": sweep.total_products,
        "low_stock_count": sweep.low_stock_count,
        "notifications_sent": sent,
    }
