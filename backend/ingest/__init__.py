"""
CSV ingest package.

Turns a marketplace inventory export into validated rows:
  - csv_reader       structural parse (bytes -> header + rows)
  - headers          platform/channel detection from the header row
  - column_mapper    keyword mapping for unrecognized exports
  - row_transformer  per-row validation and quantity parsing

Usage:
    from ingest import analyze_headers, read_csv, transform_rows

    parsed = read_csv(content)
    detected = analyze_headers(parsed.headers, filename="amazon-inventory.csv")
    result = transform_rows(parsed.rows, detected.mapping)
"""

from ingest.column_mapper import map_columns, normalize_header
from ingest.csv_reader import ParsedCsv, ParseError, read_csv
from ingest.formats import Channel, ColumnMapping, DetectedFormat, Platform
from ingest.headers import analyze_headers, guess_channel_from_filename, score_signature
from ingest.row_transformer import (
    InventoryRow,
    RejectionReason,
    RowRejection,
    TransformResult,
    transform_row,
    transform_rows,
)

__all__ = [
    "Channel",
    "ColumnMapping",
    "DetectedFormat",
    "InventoryRow",
    "ParseError",
    "ParsedCsv",
    "Platform",
    "RejectionReason",
    "RowRejection",
    "TransformResult",
    "analyze_headers",
    "guess_channel_from_filename",
    "map_columns",
    "normalize_header",
    "read_csv",
    "score_signature",
    "transform_row",
    "transform_rows",
]
