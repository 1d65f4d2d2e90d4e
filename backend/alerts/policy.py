"""
Notification Policy — decides when a low-stock alert must be sent.

Two named policies:
  - should_send_alert: per-mutation transition rule (uploads, sweeps, edits)
  - should_recheck:    periodic auto-check, re-alerts unconditionally

Both require the product to be low-stock, to have a supplier, and the seller
to have email notifications enabled. The periodic policy applies no
de-duplication window.
"""

from inventory.reconciliation import MutationKind, ProductTransition, StockSnapshot

ALERT_TYPE = "low_stock_alert"
RECHECK_TYPE = "low_stock_recheck"


def _eligible(after: StockSnapshot, notifications_enabled: bool) -> bool:
    return notifications_enabled and after.is_low_stock and after.supplier_id is not None


def became_low(before: StockSnapshot | None, after: StockSnapshot) -> bool:
    was_low = before.is_low_stock if before is not None else False
    return after.is_low_stock and not was_low


def supplier_newly_assigned(before: StockSnapshot | None, after: StockSnapshot) -> bool:
    """A supplier was set or changed on a product that was already low."""
    if before is None or not before.is_low_stock:
        return False
    return after.supplier_id is not None and after.supplier_id != before.supplier_id


def manual_correction(transition: ProductTransition) -> bool:
    """Explicit quantity edit of a product already low and already supplied."""
    before = transition.before
    if transition.kind is not MutationKind.MANUAL_EDIT or not transition.quantity_edited:
        return False
    return before is not None and before.is_low_stock and before.supplier_id is not None


def should_send_alert(transition: ProductTransition, notifications_enabled: bool) -> bool:
    if not _eligible(transition.after, notifications_enabled):
        return False
    return (
        became_low(transition.before, transition.after)
        or supplier_newly_assigned(transition.before, transition.after)
        or manual_correction(transition)
    )


def should_recheck(snapshot: StockSnapshot, notifications_enabled: bool) -> bool:
    return _eligible(snapshot, notifications_enabled)
