"""
Inventory export — one CSV row per product with per-channel quantities.
"""

import csv
import io
from collections.abc import Iterable

from db.models import Product
from ingest.formats import Channel
from inventory.reconciliation import channel_quantity, effective_threshold

EXPORT_HEADER = [
    "SKU",
    "Product Name",
    "Amazon Quantity",
    "Shopify Quantity",
    "Total Quantity",
    "Low Stock Threshold",
    "Stock Status",
]

EXPORT_FILENAME = "inventory-report.csv"


def export_row(product: Product, global_threshold: int) -> list[str]:
    amazon = channel_quantity(product, Channel.AMAZON) or 0
    shopify = channel_quantity(product, Channel.SHOPIFY) or 0
    return [
        product.sku,
        product.name,
        str(amazon),
        str(shopify),
        str(product.total_quantity),
        str(effective_threshold(product, global_threshold)),
        "Low Stock" if product.is_low_stock else "In Stock",
    ]


def render_inventory_csv(products: Iterable[Product], global_threshold: int) -> str:
    """Render the export with standard CSV quoting (names may contain commas)."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    for product in products:
        writer.writerow(export_row(product, global_threshold))
    return buffer.getvalue()
