"""
Smart column mapping for exports that match no known platform signature.

Each header is tested, case-insensitively, against three keyword lists
(SKU, then name, then quantity). The first header to match a field fills that
field's slot and the slot is never overwritten. A header that fills one slot
stays eligible for the others, so a column such as ``Product ID`` can supply
both the SKU and the name.
"""

from dataclasses import dataclass

from ingest.formats import ColumnMapping


@dataclass(frozen=True)
class KeywordRule:
    keyword: str
    exact: bool = False

    def matches(self, normalized_header: str) -> bool:
        if self.exact:
            return normalized_header == self.keyword
        return self.keyword in normalized_header


SKU_RULES = (
    KeywordRule("sku"),
    KeywordRule("id"),
    KeywordRule("code"),
    KeywordRule("item", exact=True),
    KeywordRule("product id"),
)

NAME_RULES = (
    KeywordRule("name"),
    KeywordRule("title"),
    KeywordRule("product"),
    KeywordRule("item name"),
    KeywordRule("description"),
)

QUANTITY_RULES = (
    KeywordRule("quantity"),
    KeywordRule("qty"),
    KeywordRule("stock"),
    KeywordRule("inventory"),
    KeywordRule("units"),
    KeywordRule("count"),
    KeywordRule("available"),
)

# Assignment order per header
FIELD_RULES = (
    ("sku", SKU_RULES),
    ("name", NAME_RULES),
    ("quantity", QUANTITY_RULES),
)


def normalize_header(header: str | None) -> str:
    """Trim and lowercase a header so matching ignores formatting."""
    if header is None:
        return ""
    return header.strip().lower()


def matching_rule(header: str, rules: tuple[KeywordRule, ...]) -> KeywordRule | None:
    """Return the highest-priority rule the header satisfies, if any."""
    normalized = normalize_header(header)
    if not normalized:
        return None
    for rule in rules:
        if rule.matches(normalized):
            return rule
    return None


def map_columns(headers: list[str]) -> ColumnMapping:
    """Resolve SKU / name / quantity columns from header text alone."""
    slots: dict[str, str | None] = {field: None for field, _ in FIELD_RULES}

    for header in headers:
        for field, rules in FIELD_RULES:
            if slots[field] is not None:
                continue
            if matching_rule(header, rules) is not None:
                slots[field] = header

    return ColumnMapping(
        sku_column=slots["sku"],
        name_column=slots["name"],
        quantity_column=slots["quantity"],
    )
