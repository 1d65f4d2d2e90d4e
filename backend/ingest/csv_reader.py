"""
CSV structure parsing for inventory uploads.

Turns raw upload bytes into a header row plus data rows tagged with their
physical line number. Structural problems (undecodable bytes, broken quoting,
no header) raise ParseError and abort the upload; per-row content problems are
left to ingest.row_transformer.
"""

import csv
import io
from dataclasses import dataclass, field

import structlog

logger = structlog.get_logger()


class ParseError(ValueError):
    """The upload is not a readable CSV file."""


@dataclass
class ParsedCsv:
    headers: list[str]
    # (line_number, row) with line numbers 1-based; the header is line 1
    rows: list[tuple[int, dict[str, str | None]]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def decode_upload(content: bytes | str) -> str:
    """Decode upload bytes as UTF-8, dropping a leading BOM."""
    if isinstance(content, str):
        return content.lstrip("\ufeff")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ParseError(f"File is not valid UTF-8 text: {exc.reason} at byte {exc.start}") from exc


def _is_blank(row: dict[str, str | None]) -> bool:
    for value in row.values():
        if isinstance(value, list):
            if any(item.strip() for item in value):
                return False
        elif value is not None and value.strip():
            return False
    return True


def read_csv(content: bytes | str, delimiter: str = ",") -> ParsedCsv:
    """
    Parse an uploaded CSV export.

    Args:
        content: Raw upload body
        delimiter: Column separator

    Raises:
        ParseError: the body cannot be decoded, is malformed, or has no header
    """
    text = decode_upload(content)
    reader = csv.DictReader(io.StringIO(text, newline=""), delimiter=delimiter, strict=True)

    try:
        headers = reader.fieldnames
        if not headers or not any(header.strip() for header in headers):
            raise ParseError("CSV file has no header row")

        parsed = ParsedCsv(headers=list(headers))
        for row in reader:
            # Rows with only blank cells are not data
            if _is_blank(row):
                continue
            parsed.rows.append((reader.line_num, row))
    except csv.Error as exc:
        raise ParseError(f"Malformed CSV near line {reader.line_num}: {exc}") from exc

    logger.debug("csv.parsed", headers=parsed.headers, rows=parsed.row_count)
    return parsed
