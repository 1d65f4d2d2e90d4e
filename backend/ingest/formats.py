"""
Format vocabulary shared by header detection, column mapping and row transforms.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Platform(str, Enum):
    """Commerce platform that produced an uploaded export."""

    AMAZON = "Amazon"
    SHOPIFY = "Shopify"
    GENERIC = "Generic"


class Channel(str, Enum):
    """Sales channel a quantity figure belongs to."""

    AMAZON = "Amazon"
    SHOPIFY = "Shopify"


@dataclass(frozen=True)
class ColumnMapping:
    """Which header supplies each logical field. ``None`` means unresolved."""

    sku_column: str | None = None
    name_column: str | None = None
    quantity_column: str | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.sku_column and self.name_column and self.quantity_column)

    def to_dict(self) -> dict[str, str | None]:
        return {
            "sku_column": self.sku_column,
            "name_column": self.name_column,
            "quantity_column": self.quantity_column,
        }


@dataclass(frozen=True)
class DetectedFormat:
    """Result of analysing one header row."""

    platform: Platform
    channel: Channel
    confidence: float
    mapping: ColumnMapping

    def to_dict(self) -> dict[str, Any]:
        return {
            "platform": self.platform.value,
            "channel": self.channel.value,
            "confidence": round(self.confidence, 2),
        }
