"""
Reconciliation Engine — multi-channel stock merge and whole-tenant recompute.

Product invariants maintained by every path in this module:
  - total_quantity == sum of channel quantities
  - is_low_stock == (total_quantity <= effective threshold)
  - at most one channel entry per channel name

Each mutation reports a ProductTransition (state before and after) so the
notification policy can decide whether an alert fires. A merge replaces a
channel's quantity, it never adds to it.
"""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

from db.models import Product
from ingest.formats import Channel
from ingest.row_transformer import InventoryRow
from inventory.repository import InventoryRepository, StoreFailure

logger = structlog.get_logger()


class MutationKind(str, Enum):
    ROW_MERGE = "row_merge"
    SWEEP = "sweep"
    MANUAL_EDIT = "manual_edit"


@dataclass(frozen=True)
class StockSnapshot:
    """The parts of a product's state the notification policy looks at."""

    is_low_stock: bool
    supplier_id: uuid.UUID | None
    total_quantity: int

    @classmethod
    def of(cls, product: Product) -> "StockSnapshot":
        return cls(
            is_low_stock=bool(product.is_low_stock),
            supplier_id=product.supplier_id,
            total_quantity=product.total_quantity or 0,
        )


@dataclass
class ProductTransition:
    product: Product
    before: StockSnapshot | None  # None when the product was just created
    after: StockSnapshot
    kind: MutationKind
    quantity_edited: bool = False

    @property
    def is_new(self) -> bool:
        return self.before is None


@dataclass
class SweepResult:
    total_products: int = 0
    low_stock_count: int = 0
    updated_count: int = 0
    failed_count: int = 0
    transitions: list[ProductTransition] = field(default_factory=list)


# ──────────────────────────────────────────────────────────────────────────
# Pure helpers
# ──────────────────────────────────────────────────────────────────────────


def effective_threshold(product: Product, global_threshold: int) -> int:
    if product.low_stock_threshold is not None:
        return product.low_stock_threshold
    return global_threshold


def is_low(total_quantity: int, threshold: int) -> bool:
    return total_quantity <= threshold


def channel_total(channels: Iterable[dict[str, Any]]) -> int:
    return sum(int(entry.get("quantity", 0)) for entry in channels or [])


def upsert_channel(channels: Iterable[dict[str, Any]], channel: Channel | str, quantity: int) -> list[dict[str, Any]]:
    """Return a new channel list with ``channel`` set to ``quantity``.

    Entries for other channels keep their position; the updated entry goes last.
    """
    name = channel.value if isinstance(channel, Channel) else str(channel)
    kept = [dict(entry) for entry in channels or [] if entry.get("channel") != name]
    kept.append({"channel": name, "quantity": int(quantity)})
    return kept


def channel_quantity(product: Product, channel: Channel | str) -> int | None:
    name = channel.value if isinstance(channel, Channel) else str(channel)
    for entry in product.channels or []:
        if entry.get("channel") == name:
            return int(entry.get("quantity", 0))
    return None


def _apply_invariants(product: Product, global_threshold: int) -> None:
    product.total_quantity = channel_total(product.channels)
    product.is_low_stock = is_low(product.total_quantity, effective_threshold(product, global_threshold))


# ──────────────────────────────────────────────────────────────────────────
# Per-row merge
# ──────────────────────────────────────────────────────────────────────────


async def merge_row(
    repo: InventoryRepository,
    seller_id: uuid.UUID,
    channel: Channel,
    row: InventoryRow,
    global_threshold: int,
) -> ProductTransition:
    """Merge one validated row into the seller's product store.

    Raises:
        StoreFailure: the product could not be read or written
    """
    product = await repo.get_product_by_sku(seller_id, row.sku)

    if product is None:
        before = None
        product = Product(
            seller_id=seller_id,
            sku=row.sku,
            name=row.name,
            channels=[{"channel": channel.value, "quantity": row.quantity}],
            total_quantity=row.quantity,
            low_stock_threshold=global_threshold,
            is_low_stock=is_low(row.quantity, global_threshold),
        )
    else:
        before = StockSnapshot.of(product)
        # Reassign rather than mutate so the JSON column change is tracked
        product.channels = upsert_channel(product.channels, channel, row.quantity)
        _apply_invariants(product, global_threshold)

    await repo.save_product(product, record_history=True)

    return ProductTransition(
        product=product,
        before=before,
        after=StockSnapshot.of(product),
        kind=MutationKind.ROW_MERGE,
    )


# ──────────────────────────────────────────────────────────────────────────
# Whole-tenant sweep
# ──────────────────────────────────────────────────────────────────────────


async def reconcile_tenant(
    repo: InventoryRepository,
    seller_id: uuid.UUID,
    global_threshold: int,
) -> SweepResult:
    """Recompute totals and low-stock flags for every product of a seller.

    The threshold actually used is written back, so a product without its
    own threshold is pinned to the current global one. Products whose stored
    state already matches are not written. A failed write is logged and the
    sweep continues with the next product.
    """
    products = await repo.list_products(seller_id)
    result = SweepResult(total_products=len(products))
    stale = False
    # Transitions recorded before the most recent rollback
    expired = 0

    for product in products:
        if stale:
            # A rollback expired every loaded instance
            await repo.refresh(product)

        total = channel_total(product.channels)
        threshold = effective_threshold(product, global_threshold)
        low = is_low(total, threshold)

        if (product.total_quantity, product.low_stock_threshold, product.is_low_stock) == (total, threshold, low):
            if low:
                result.low_stock_count += 1
            continue

        before = StockSnapshot.of(product)
        sku = product.sku
        product.total_quantity = total
        product.low_stock_threshold = threshold
        product.is_low_stock = low

        try:
            await repo.save_product(product)
        except StoreFailure as exc:
            logger.error("reconcile.product_store_failed", seller_id=str(seller_id), sku=sku, error=exc.detail)
            result.failed_count += 1
            stale = True
            expired = len(result.transitions)
            continue

        result.updated_count += 1
        if low:
            result.low_stock_count += 1
        result.transitions.append(
            ProductTransition(
                product=product,
                before=before,
                after=StockSnapshot.of(product),
                kind=MutationKind.SWEEP,
            )
        )

    for transition in result.transitions[:expired]:
        await repo.refresh(transition.product)

    logger.info(
        "reconcile.sweep_completed",
        seller_id=str(seller_id),
        total_products=result.total_products,
        updated=result.updated_count,
        failed=result.failed_count,
        low_stock=result.low_stock_count,
    )
    return result


# ──────────────────────────────────────────────────────────────────────────
# Manual edit
# ──────────────────────────────────────────────────────────────────────────

_UNSET: Any = object()


async def apply_manual_edit(
    repo: InventoryRepository,
    product: Product,
    global_threshold: int,
    *,
    channel_quantities: dict[Channel, int] | None = None,
    low_stock_threshold: int | None = _UNSET,
    name: str | None = None,
    supplier_id: uuid.UUID | None = _UNSET,
) -> ProductTransition:
    """Apply an explicit edit from the products API and re-derive invariants.

    ``low_stock_threshold=None`` clears the product threshold and
    ``supplier_id=None`` unassigns the supplier; leaving either out keeps the
    current value.

    Raises:
        ValueError: a channel quantity or threshold is negative
        StoreFailure: the product could not be written
    """
    before = StockSnapshot.of(product)
    quantity_edited = False

    if channel_quantities:
        channels = list(product.channels or [])
        for channel, quantity in channel_quantities.items():
            if quantity < 0:
                raise ValueError(f"Quantity for {channel.value} must be non-negative")
            if channel_quantity(product, channel) != quantity:
                quantity_edited = True
            channels = upsert_channel(channels, channel, quantity)
        product.channels = channels

    if low_stock_threshold is not _UNSET:
        if low_stock_threshold is not None and low_stock_threshold < 0:
            raise ValueError("Low stock threshold must be non-negative")
        product.low_stock_threshold = low_stock_threshold

    if name is not None:
        product.name = name

    if supplier_id is not _UNSET:
        product.supplier_id = supplier_id

    _apply_invariants(product, global_threshold)
    await repo.save_product(product, record_history=quantity_edited)

    return ProductTransition(
        product=product,
        before=before,
        after=StockSnapshot.of(product),
        kind=MutationKind.MANUAL_EDIT,
        quantity_edited=quantity_edited,
    )
