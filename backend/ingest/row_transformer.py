"""
Row Transformer — raw CSV rows to validated inventory rows.

A row is valid only when SKU, name and quantity are all present and non-empty
after trimming and the quantity is a non-negative base-10 integer. Invalid rows
are rejected with a reason and line number; they are never coerced.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from ingest.formats import ColumnMapping

_INTEGER = re.compile(r"[+-]?[0-9]+")


class RejectionReason(str, Enum):
    MISSING_SKU = "missing_sku"
    MISSING_NAME = "missing_name"
    MISSING_QUANTITY = "missing_quantity"
    INVALID_QUANTITY = "invalid_quantity"
    NEGATIVE_QUANTITY = "negative_quantity"


@dataclass(frozen=True)
class InventoryRow:
    sku: str
    name: str
    quantity: int
    line_number: int = 0


@dataclass(frozen=True)
class RowRejection:
    line_number: int
    reason: RejectionReason
    value: str | None = None


@dataclass
class TransformResult:
    valid_rows: list[InventoryRow] = field(default_factory=list)
    rejections: list[RowRejection] = field(default_factory=list)
    total_rows: int = 0

    @property
    def skipped_count(self) -> int:
        return self.total_rows - len(self.valid_rows)


def _cell(row: dict[str, str | None], column: str | None) -> str:
    if column is None:
        return ""
    value = row.get(column)
    if not isinstance(value, str):
        return ""
    return value.strip()


def parse_quantity(value: str) -> int | None:
    """Strict base-10 integer parse. Returns None for anything else."""
    if not _INTEGER.fullmatch(value):
        return None
    return int(value, 10)


def transform_row(
    row: dict[str, str | None],
    mapping: ColumnMapping,
    line_number: int = 0,
) -> InventoryRow | RowRejection:
    """Validate one raw row against the resolved column mapping."""
    sku = _cell(row, mapping.sku_column)
    if not sku:
        return RowRejection(line_number, RejectionReason.MISSING_SKU)

    name = _cell(row, mapping.name_column)
    if not name:
        return RowRejection(line_number, RejectionReason.MISSING_NAME)

    raw_quantity = _cell(row, mapping.quantity_column)
    if not raw_quantity:
        return RowRejection(line_number, RejectionReason.MISSING_QUANTITY)

    quantity = parse_quantity(raw_quantity)
    if quantity is None:
        return RowRejection(line_number, RejectionReason.INVALID_QUANTITY, raw_quantity)
    if quantity < 0:
        return RowRejection(line_number, RejectionReason.NEGATIVE_QUANTITY, raw_quantity)

    return InventoryRow(sku=sku, name=name, quantity=quantity, line_number=line_number)


def transform_rows(
    rows: Iterable[tuple[int, dict[str, str | None]]],
    mapping: ColumnMapping,
) -> TransformResult:
    """Transform rows in file order, collecting valid rows and rejections."""
    result = TransformResult()
    for line_number, row in rows:
        result.total_rows += 1
        outcome = transform_row(row, mapping, line_number)
        if isinstance(outcome, RowRejection):
            result.rejections.append(outcome)
        else:
            result.valid_rows.append(outcome)
    return result
