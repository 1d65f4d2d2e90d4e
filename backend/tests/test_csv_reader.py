"""
Tests for CSV structure parsing.
"""

import pytest

from ingest.csv_reader import ParseError, read_csv


class TestReadCsv:
    def test_headers_and_line_numbers(self):
        parsed = read_csv(b"SKU,Product Name,Quantity\nA-1,Widget,5\nA-2,Gadget,0\n")
        assert parsed.headers == ["SKU", "Product Name", "Quantity"]
        assert parsed.rows[0] == (2, {"SKU": "A-1", "Product Name": "Widget", "Quantity": "5"})
        assert parsed.rows[1][0] == 3

    def test_utf8_bom_is_stripped(self):
        parsed = read_csv("\ufeffSKU,Title\nA,B\n".encode("utf-8"))
        assert parsed.headers[0] == "SKU"

    def test_crlf_line_endings(self):
        parsed = read_csv(b"SKU,Title,Qty\r\nA,Widget,1\r\nB,Gadget,2\r\n")
        assert parsed.row_count == 2
        assert parsed.rows[1][1]["Qty"] == "2"

    def test_quoted_fields_with_commas(self):
        parsed = read_csv(b'SKU,Title,Qty\nA,"Widget, large",1\n')
        assert parsed.rows[0][1]["Title"] == "Widget, large"

    def test_blank_rows_are_ignored(self):
        parsed = read_csv(b"SKU,Title,Qty\nA,Widget,1\n\n,,\nB,Gadget,2\n")
        assert parsed.row_count == 2
        assert [line for line, _ in parsed.rows] == [2, 5]

    def test_empty_file(self):
        with pytest.raises(ParseError):
            read_csv(b"")

    def test_blank_header(self):
        with pytest.raises(ParseError):
            read_csv(b",,\nA,B,C\n")

    def test_invalid_utf8(self):
        with pytest.raises(ParseError, match="UTF-8"):
            read_csv(b"SKU,Title\n\xff\xfe,bad\n")

    def test_unterminated_quote(self):
        with pytest.raises(ParseError):
            read_csv(b'SKU,Title,Qty\nA,"Widget,1\n')
