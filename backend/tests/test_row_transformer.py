"""
Tests for the Row Transformer — validation and strict quantity parsing.
"""

import pytest

from ingest.formats import ColumnMapping
from ingest.row_transformer import (
    InventoryRow,
    RejectionReason,
    RowRejection,
    parse_quantity,
    transform_row,
    transform_rows,
)

MAPPING = ColumnMapping(sku_column="SKU", name_column="Product Name", quantity_column="Quantity")


def _row(sku="A-1", name="Widget", quantity="5"):
    return {"SKU": sku, "Product Name": name, "Quantity": quantity}


class TestTransformRow:
    def test_valid_row_is_trimmed(self):
        result = transform_row(_row(sku="  A-1 ", name=" Widget  ", quantity=" 12 "), MAPPING, 2)
        assert result == InventoryRow(sku="A-1", name="Widget", quantity=12, line_number=2)

    def test_zero_quantity_is_valid(self):
        assert transform_row(_row(quantity="0"), MAPPING).quantity == 0

    @pytest.mark.parametrize(
        "row, reason",
        [
            (_row(sku=""), RejectionReason.MISSING_SKU),
            (_row(name="   "), RejectionReason.MISSING_NAME),
            (_row(quantity=""), RejectionReason.MISSING_QUANTITY),
            (_row(quantity="12.5"), RejectionReason.INVALID_QUANTITY),
            (_row(quantity="ten"), RejectionReason.INVALID_QUANTITY),
            (_row(quantity="1,000"), RejectionReason.INVALID_QUANTITY),
            (_row(quantity="-3"), RejectionReason.NEGATIVE_QUANTITY),
        ],
    )
    def test_rejections(self, row, reason):
        result = transform_row(row, MAPPING, 7)
        assert isinstance(result, RowRejection)
        assert result.reason is reason
        assert result.line_number == 7

    def test_unmapped_column_rejects(self):
        mapping = ColumnMapping(sku_column="SKU", name_column="Product Name", quantity_column=None)
        result = transform_row(_row(), mapping)
        assert result.reason is RejectionReason.MISSING_QUANTITY

    def test_short_row_missing_cell(self):
        """csv.DictReader fills missing trailing cells with None."""
        result = transform_row({"SKU": "A-1", "Product Name": "Widget", "Quantity": None}, MAPPING)
        assert result.reason is RejectionReason.MISSING_QUANTITY


class TestParseQuantity:
    def test_plain_integers(self):
        assert parse_quantity("42") == 42
        assert parse_quantity("+7") == 7
        assert parse_quantity("007") == 7

    def test_rejects_non_integers(self):
        assert parse_quantity("1e3") is None
        assert parse_quantity("1_000") is None
        assert parse_quantity("") is None
        assert parse_quantity("٣") is None


class TestTransformRows:
    def test_counts_valid_and_skipped(self):
        rows = [(2, _row(sku="A")), (3, _row(sku="B", quantity="")), (4, _row(sku="C", quantity="3"))]
        result = transform_rows(rows, MAPPING)
        assert result.total_rows == 3
        assert [r.sku for r in result.valid_rows] == ["A", "C"]
        assert result.skipped_count == 1
        assert result.rejections[0].line_number == 3

    def test_preserves_file_order(self):
        rows = [(i + 2, _row(sku=f"S{i}")) for i in range(5)]
        result = transform_rows(rows, MAPPING)
        assert [r.sku for r in result.valid_rows] == ["S0", "S1", "S2", "S3", "S4"]
