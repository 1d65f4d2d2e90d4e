"""
Header Analyzer — infer which platform produced a CSV export.

Scoring, per signature:
  - each canonical field (SKU, name, quantity) matched exactly by a header
    (trimmed, case-insensitive) adds 0.3
  - each indicator substring found in any header adds 0.1

A signature scoring at least 0.7 is trusted and its exact-match columns are
used as the mapping. Anything weaker falls back to a Generic format mapped by
keyword (see ingest.column_mapper) at a fixed 0.6 confidence, with the channel
guessed from the filename (+0.2 when the guess succeeds).

Everything here is pure: the same header list always yields the same result,
and row content is never inspected.
"""

from dataclasses import dataclass

from ingest.column_mapper import map_columns, normalize_header
from ingest.formats import Channel, ColumnMapping, DetectedFormat, Platform

EXACT_MATCH_WEIGHT = 0.3
INDICATOR_WEIGHT = 0.1
BASELINE_CONFIDENCE = 0.3
TRUSTED_CONFIDENCE = 0.7
GENERIC_CONFIDENCE = 0.6
FILENAME_CHANNEL_BOOST = 0.2

FIELDS = ("sku", "name", "quantity")


@dataclass(frozen=True)
class PlatformSignature:
    """Header vocabulary one platform uses in its inventory exports."""

    platform: Platform
    channel: Channel
    # field -> accepted exact spellings (already normalized)
    exact_headers: dict[str, tuple[str, ...]]
    indicators: tuple[str, ...]


@dataclass(frozen=True)
class SignatureScore:
    platform: Platform
    channel: Channel
    score: float
    mapping: ColumnMapping


AMAZON_SIGNATURE = PlatformSignature(
    platform=Platform.AMAZON,
    channel=Channel.AMAZON,
    exact_headers={
        "sku": ("sku", "seller-sku"),
        "name": ("product name", "item-name"),
        "quantity": ("quantity", "afn-fulfillable-quantity"),
    },
    indicators=("asin", "fulfillment", "fnsku"),
)

SHOPIFY_SIGNATURE = PlatformSignature(
    platform=Platform.SHOPIFY,
    channel=Channel.SHOPIFY,
    exact_headers={
        "sku": ("variant sku",),
        "name": ("title",),
        "quantity": ("variant inventory qty",),
    },
    indicators=("variant", "handle", "vendor"),
)

SIGNATURES = (AMAZON_SIGNATURE, SHOPIFY_SIGNATURE)

# Checked in order; "shopify" also contains "shop" but reads clearer listed.
FILENAME_CHANNEL_HINTS = (
    ("amazon", Channel.AMAZON),
    ("amz", Channel.AMAZON),
    ("shopify", Channel.SHOPIFY),
    ("shop", Channel.SHOPIFY),
)


def _round(score: float) -> float:
    # 3 × 0.3 must compare equal to 0.9
    return round(score, 4)


def score_signature(headers: list[str], signature: PlatformSignature) -> SignatureScore:
    """Score one signature against a header row."""
    normalized = [normalize_header(header) for header in headers]
    claimed: set[int] = set()
    matched: dict[str, str] = {}

    for field in FIELDS:
        spellings = signature.exact_headers[field]
        for index, value in enumerate(normalized):
            if index in claimed or value not in spellings:
                continue
            matched[field] = headers[index]
            claimed.add(index)
            break

    score = EXACT_MATCH_WEIGHT * len(matched)
    for indicator in signature.indicators:
        if any(indicator in value for value in normalized):
            score += INDICATOR_WEIGHT

    return SignatureScore(
        platform=signature.platform,
        channel=signature.channel,
        score=_round(min(score, 1.0)),
        mapping=ColumnMapping(
            sku_column=matched.get("sku"),
            name_column=matched.get("name"),
            quantity_column=matched.get("quantity"),
        ),
    )


def primary_candidate(headers: list[str]) -> SignatureScore:
    """Best-scoring signature, or a Generic baseline when none beats 0.3.

    Ties go to the signature listed first in SIGNATURES.
    """
    best: SignatureScore | None = None
    for signature in SIGNATURES:
        candidate = score_signature(headers, signature)
        if best is None or candidate.score > best.score:
            best = candidate

    if best is None or best.score <= BASELINE_CONFIDENCE:
        return SignatureScore(
            platform=Platform.GENERIC,
            channel=Channel.AMAZON,
            score=BASELINE_CONFIDENCE,
            mapping=ColumnMapping(),
        )
    return best


def guess_channel_from_filename(filename: str | None) -> Channel | None:
    """Channel implied by the upload's filename, if any."""
    if not filename:
        return None
    lowered = filename.lower()
    for hint, channel in FILENAME_CHANNEL_HINTS:
        if hint in lowered:
            return channel
    return None


def analyze_headers(headers: list[str], filename: str | None = None) -> DetectedFormat:
    """Detect platform, channel and column mapping for a header row."""
    candidate = primary_candidate(headers)
    if candidate.platform is not Platform.GENERIC and candidate.score >= TRUSTED_CONFIDENCE:
        return DetectedFormat(
            platform=candidate.platform,
            channel=candidate.channel,
            confidence=candidate.score,
            mapping=candidate.mapping,
        )

    guessed = guess_channel_from_filename(filename)
    confidence = GENERIC_CONFIDENCE
    if guessed is not None:
        # Not clamped: a filename hint may lift generic confidence to 0.8.
        confidence += FILENAME_CHANNEL_BOOST

    return DetectedFormat(
        platform=Platform.GENERIC,
        channel=guessed or Channel.AMAZON,
        confidence=_round(confidence),
        mapping=map_columns(headers),
    )
