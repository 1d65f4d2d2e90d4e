"""
Tests for the Header Analyzer — platform detection from header rows.

Covers:
  - Amazon and Shopify signature recognition
  - Generic fallback with keyword mapping
  - Filename channel guessing and confidence boost
  - Scoring details (indicators, clamping, slot exclusivity)
"""

from ingest.formats import Channel, Platform
from ingest.headers import (
    AMAZON_SIGNATURE,
    SHOPIFY_SIGNATURE,
    analyze_headers,
    guess_channel_from_filename,
    primary_candidate,
    score_signature,
)

# ── Known platforms ────────────────────────────────────────────────────


class TestKnownPlatforms:
    def test_amazon_basic_headers(self):
        detected = analyze_headers(["SKU", "Product Name", "Quantity"])
        assert detected.platform is Platform.AMAZON
        assert detected.channel is Channel.AMAZON
        assert detected.confidence >= 0.9
        assert detected.mapping.sku_column == "SKU"
        assert detected.mapping.name_column == "Product Name"
        assert detected.mapping.quantity_column == "Quantity"

    def test_amazon_seller_central_export(self):
        headers = ["seller-sku", "asin", "item-name", "afn-fulfillable-quantity", "fulfillment-channel"]
        detected = analyze_headers(headers)
        assert detected.platform is Platform.AMAZON
        # 0.9 exact + asin + fulfillment, clamped
        assert detected.confidence == 1.0
        assert detected.mapping.sku_column == "seller-sku"
        assert detected.mapping.quantity_column == "afn-fulfillable-quantity"

    def test_shopify_headers(self):
        detected = analyze_headers(["Variant SKU", "Title", "Variant Inventory Qty", "Handle"])
        assert detected.platform is Platform.SHOPIFY
        assert detected.channel is Channel.SHOPIFY
        assert detected.confidence >= 0.9
        assert detected.mapping.sku_column == "Variant SKU"
        assert detected.mapping.name_column == "Title"
        assert detected.mapping.quantity_column == "Variant Inventory Qty"

    def test_headers_are_trimmed_and_case_insensitive(self):
        detected = analyze_headers(["  sku ", "PRODUCT NAME", "quantity"])
        assert detected.platform is Platform.AMAZON
        assert detected.mapping.sku_column == "  sku "

    def test_platform_path_ignores_filename(self):
        detected = analyze_headers(["SKU", "Product Name", "Quantity"], filename="shopify-export.csv")
        assert detected.platform is Platform.AMAZON
        assert detected.channel is Channel.AMAZON

    def test_header_order_does_not_matter(self):
        a = analyze_headers(["Quantity", "SKU", "Product Name"])
        b = analyze_headers(["SKU", "Product Name", "Quantity"])
        assert a == b


# ── Generic fallback ───────────────────────────────────────────────────


class TestGenericFallback:
    def test_generic_mapping(self):
        detected = analyze_headers(["Item Code", "Description", "Stock Count"])
        assert detected.platform is Platform.GENERIC
        assert detected.confidence == 0.6
        assert detected.channel is Channel.AMAZON
        assert detected.mapping.sku_column == "Item Code"
        assert detected.mapping.name_column == "Description"
        assert detected.mapping.quantity_column == "Stock Count"

    def test_generic_with_filename_hint(self):
        detected = analyze_headers(["Item Code", "Description", "Stock Count"], filename="my-shop-stock.csv")
        assert detected.platform is Platform.GENERIC
        assert detected.channel is Channel.SHOPIFY
        assert detected.confidence == 0.8

    def test_two_exact_matches_below_threshold(self):
        """0.6 from two exact fields is not trusted."""
        detected = analyze_headers(["SKU", "Quantity", "Label"])
        assert detected.platform is Platform.GENERIC
        assert detected.confidence == 0.6

    def test_two_exact_matches_with_indicator_trusted(self):
        detected = analyze_headers(["SKU", "Quantity", "ASIN"])
        assert detected.platform is Platform.AMAZON
        assert detected.confidence == 0.7
        assert detected.mapping.name_column is None

    def test_empty_headers(self):
        detected = analyze_headers([])
        assert detected.platform is Platform.GENERIC
        assert not detected.mapping.is_complete


# ── Scoring ────────────────────────────────────────────────────────────


class TestScoring:
    def test_indicators_count_once_each(self):
        score = score_signature(["Variant SKU", "Variant Price", "Variant Grams"], SHOPIFY_SIGNATURE)
        assert score.score == 0.4

    def test_header_fills_one_slot_per_signature(self):
        score = score_signature(["sku"], AMAZON_SIGNATURE)
        assert score.score == 0.3
        assert score.mapping.sku_column == "sku"
        assert score.mapping.name_column is None

    def test_first_matching_header_wins(self):
        score = score_signature(["sku", "seller-sku"], AMAZON_SIGNATURE)
        assert score.mapping.sku_column == "sku"

    def test_primary_candidate_baseline(self):
        candidate = primary_candidate(["foo", "bar"])
        assert candidate.platform is Platform.GENERIC
        assert candidate.score == 0.3

    def test_tie_prefers_amazon(self):
        candidate = primary_candidate(["sku", "title", "asin", "handle"])
        assert candidate.platform is Platform.AMAZON
        assert candidate.score == 0.4


# ── Filename channel guess ─────────────────────────────────────────────


class TestFilenameGuess:
    def test_amazon_names(self):
        assert guess_channel_from_filename("Amazon_Inventory.csv") is Channel.AMAZON
        assert guess_channel_from_filename("amz-report.csv") is Channel.AMAZON

    def test_shopify_names(self):
        assert guess_channel_from_filename("shopify_products.csv") is Channel.SHOPIFY
        assert guess_channel_from_filename("SHOP.csv") is Channel.SHOPIFY

    def test_no_hint(self):
        assert guess_channel_from_filename("inventory.csv") is None
        assert guess_channel_from_filename(None) is None
