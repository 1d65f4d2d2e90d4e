"""
Tests for the Reconciliation Engine — per-row merge, sweep, manual edits.

Covers:
  - Channel replace (not add) semantics
  - Low-stock boundary (total == threshold is low)
  - Sweep idempotency and threshold pinning
  - Store failure isolation
"""

import uuid

import pytest
from sqlalchemy import select

from db.models import Product, StockHistory
from ingest.formats import Channel
from ingest.row_transformer import InventoryRow
from inventory.reconciliation import (
    MutationKind,
    apply_manual_edit,
    channel_quantity,
    merge_row,
    reconcile_tenant,
    upsert_channel,
)
from inventory.repository import InventoryRepository, StoreFailure

# ── Pure helpers ───────────────────────────────────────────────────────


class TestUpsertChannel:
    def test_replaces_existing_entry(self):
        channels = [{"channel": "Amazon", "quantity": 10}, {"channel": "Shopify", "quantity": 3}]
        result = upsert_channel(channels, Channel.AMAZON, 4)
        assert result == [{"channel": "Shopify", "quantity": 3}, {"channel": "Amazon", "quantity": 4}]

    def test_does_not_mutate_input(self):
        channels = [{"channel": "Amazon", "quantity": 10}]
        upsert_channel(channels, Channel.SHOPIFY, 2)
        assert channels == [{"channel": "Amazon", "quantity": 10}]


# ── Per-row merge ──────────────────────────────────────────────────────


@pytest.mark.asyncio
class TestMergeRow:
    async def test_new_product(self, repo, seller):
        transition = await merge_row(repo, seller.seller_id, Channel.AMAZON, InventoryRow("X", "Widget", 25), 10)
        product = transition.product
        assert transition.is_new
        assert transition.kind is MutationKind.ROW_MERGE
        assert product.channels == [{"channel": "Amazon", "quantity": 25}]
        assert product.total_quantity == 25
        assert product.low_stock_threshold == 10
        assert product.is_low_stock is False

    async def test_same_channel_replaces_quantity(self, repo, seller):
        seller_id = seller.seller_id
        await merge_row(repo, seller_id, Channel.SHOPIFY, InventoryRow("X", "Widget", 7), 10)
        await merge_row(repo, seller_id, Channel.AMAZON, InventoryRow("X", "Widget", 10), 10)
        transition = await merge_row(repo, seller_id, Channel.AMAZON, InventoryRow("X", "Widget", 4), 10)

        product = transition.product
        assert channel_quantity(product, Channel.AMAZON) == 4
        assert channel_quantity(product, Channel.SHOPIFY) == 7
        assert len(product.channels) == 2
        assert product.total_quantity == 11

    async def test_total_equal_to_threshold_is_low(self, repo, seller):
        transition = await merge_row(repo, seller.seller_id, Channel.AMAZON, InventoryRow("X", "Widget", 10), 10)
        assert transition.product.is_low_stock is True

    async def test_existing_name_is_kept(self, repo, seller):
        await merge_row(repo, seller.seller_id, Channel.AMAZON, InventoryRow("X", "Widget", 5), 10)
        transition = await merge_row(repo, seller.seller_id, Channel.SHOPIFY, InventoryRow("X", "Renamed", 5), 10)
        assert transition.product.name == "Widget"

    async def test_records_stock_history(self, repo, seller, test_db):
        await merge_row(repo, seller.seller_id, Channel.AMAZON, InventoryRow("X", "Widget", 5), 10)
        await merge_row(repo, seller.seller_id, Channel.AMAZON, InventoryRow("X", "Widget", 3), 10)
        rows = (await test_db.execute(select(StockHistory))).scalars().all()
        assert sorted(r.total_quantity for r in rows) == [3, 5]

    async def test_transition_to_low(self, repo, seller):
        await merge_row(repo, seller.seller_id, Channel.AMAZON, InventoryRow("X", "Widget", 50), 10)
        transition = await merge_row(repo, seller.seller_id, Channel.AMAZON, InventoryRow("X", "Widget", 2), 10)
        assert transition.before.is_low_stock is False
        assert transition.after.is_low_stock is True

    async def test_tenants_are_isolated(self, repo, seller):
        other = uuid.UUID("00000000-0000-0000-0000-000000000002")
        await merge_row(repo, seller.seller_id, Channel.AMAZON, InventoryRow("X", "Widget", 5), 10)
        await merge_row(repo, other, Channel.AMAZON, InventoryRow("X", "Widget", 99), 10)
        mine = await repo.get_product_by_sku(seller.seller_id, "X")
        assert mine.total_quantity == 5


# ── Whole-tenant sweep ─────────────────────────────────────────────────


@pytest.mark.asyncio
class TestReconcileTenant:
    async def test_repairs_drifted_totals(self, repo, seller, test_db):
        product = Product(
            seller_id=seller.seller_id,
            sku="DRIFT",
            name="Drifted",
            channels=[{"channel": "Amazon", "quantity": 3}, {"channel": "Shopify", "quantity": 4}],
            total_quantity=100,
            low_stock_threshold=None,
            is_low_stock=False,
        )
        test_db.add(product)
        await test_db.commit()

        result = await reconcile_tenant(repo, seller.seller_id, 10)
        assert result.updated_count == 1
        assert result.low_stock_count == 1
        assert product.total_quantity == 7
        assert product.is_low_stock is True
        # Null threshold pinned to the global one
        assert product.low_stock_threshold == 10
        assert result.transitions[0].kind is MutationKind.SWEEP

    async def test_second_sweep_changes_nothing(self, repo, seller):
        for sku, qty in [("A", 3), ("B", 30), ("C", 10)]:
            await merge_row(repo, seller.seller_id, Channel.AMAZON, InventoryRow(sku, sku, qty), 10)

        await reconcile_tenant(repo, seller.seller_id, 10)
        before = {p.sku: (p.total_quantity, p.is_low_stock, p.updated_at) for p in await repo.list_products(seller.seller_id)}

        second = await reconcile_tenant(repo, seller.seller_id, 10)
        after = {p.sku: (p.total_quantity, p.is_low_stock, p.updated_at) for p in await repo.list_products(seller.seller_id)}

        assert second.updated_count == 0
        assert second.transitions == []
        assert second.low_stock_count == 2
        assert before == after

    async def test_store_failure_skips_product(self, test_db, seller):
        class FlakyRepository(InventoryRepository):
            async def save_product(self, product, record_history=False):
                if product.sku == "BAD":
                    await self.db.rollback()
                    raise StoreFailure("save_product", "disk full", sku="BAD")
                return await super().save_product(product, record_history)

        for sku in ("BAD", "GOOD"):
            test_db.add(
                Product(
                    seller_id=seller.seller_id,
                    sku=sku,
                    name=sku,
                    channels=[{"channel": "Amazon", "quantity": 1}],
                    total_quantity=50,
                    low_stock_threshold=10,
                    is_low_stock=False,
                )
            )
        await test_db.commit()

        result = await reconcile_tenant(FlakyRepository(test_db), seller.seller_id, 10)
        assert result.failed_count == 1
        assert result.updated_count == 1
        assert [t.product.sku for t in result.transitions] == ["GOOD"]


# ── Manual edit ────────────────────────────────────────────────────────


@pytest.mark.asyncio
class TestManualEdit:
    async def test_quantity_edit_recomputes(self, repo, seller):
        transition = await merge_row(repo, seller.seller_id, Channel.AMAZON, InventoryRow("X", "Widget", 50), 10)
        edit = await apply_manual_edit(
            repo, transition.product, 10, channel_quantities={Channel.SHOPIFY: 2, Channel.AMAZON: 3}
        )
        assert edit.kind is MutationKind.MANUAL_EDIT
        assert edit.quantity_edited is True
        assert edit.product.total_quantity == 5
        assert edit.after.is_low_stock is True

    async def test_unchanged_quantity_is_not_an_edit(self, repo, seller):
        transition = await merge_row(repo, seller.seller_id, Channel.AMAZON, InventoryRow("X", "Widget", 5), 10)
        edit = await apply_manual_edit(repo, transition.product, 10, channel_quantities={Channel.AMAZON: 5})
        assert edit.quantity_edited is False

    async def test_clearing_threshold_uses_global(self, repo, seller):
        transition = await merge_row(repo, seller.seller_id, Channel.AMAZON, InventoryRow("X", "Widget", 15), 10)
        edit = await apply_manual_edit(repo, transition.product, 20, low_stock_threshold=None)
        assert edit.product.low_stock_threshold is None
        assert edit.product.is_low_stock is True

    async def test_negative_quantity_rejected(self, repo, seller):
        transition = await merge_row(repo, seller.seller_id, Channel.AMAZON, InventoryRow("X", "Widget", 15), 10)
        with pytest.raises(ValueError):
            await apply_manual_edit(repo, transition.product, 10, channel_quantities={Channel.AMAZON: -1})
