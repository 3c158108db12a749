"""Tests for the CSV row parser."""

import io

import pytest

from inventory.core.header_aliases import HeaderAliasTable
from inventory.core.row_parser import parse_csv, read_csv
from inventory.errors import CsvFormatError


class TestParseCsv:
    """Tests for turning CSV bytes into field-named records."""

    def test_aliases_applied(self, aliases: HeaderAliasTable):
        data = b"SKU,Product Name,Price\nA1,Shampoo,12.50\n"

        records = read_csv(data, aliases)

        assert records == [{"code": "A1", "name": "Shampoo", "price": "12.50"}]

    def test_dropped_columns_and_blank_header(self, aliases: HeaderAliasTable):
        data = b",Barcode,CODE,PRODUCT NAME\n1,8412345678901,A1,Shampoo\n"

        records = read_csv(data, aliases)

        assert records == [{"code": "A1", "name": "Shampoo"}]

    def test_unknown_headers_kept(self, aliases: HeaderAliasTable):
        records = read_csv(b"code,name, colour \nA1,Soap,red\n", aliases)
        assert records == [{"code": "A1", "name": "Soap", "colour": "red"}]

    def test_values_trimmed_and_empty_cells_omitted(self, aliases: HeaderAliasTable):
        records = read_csv(b"code,name,brand\n  A1 , Soap ,\n", aliases)
        assert records == [{"code": "A1", "name": "Soap"}]

    def test_rightmost_non_empty_duplicate_wins(self, aliases: HeaderAliasTable):
        data = b"SKU,Code,Title,Name\nA1,B2,Soap,\n"

        records = read_csv(data, aliases)

        assert records == [{"code": "B2", "name": "Soap"}]

    def test_short_rows_allowed(self, aliases: HeaderAliasTable):
        records = read_csv(b"code,name,brand\nA1\n", aliases)
        assert records == [{"code": "A1"}]

    def test_blank_lines_skipped(self, aliases: HeaderAliasTable):
        records = read_csv(b"code,name\n\nA1,Soap\n,\nA2,Gel\n", aliases)
        assert [r["code"] for r in records] == ["A1", "A2"]

    def test_quoted_fields(self, aliases: HeaderAliasTable):
        data = b'code,name,description\nA1,"Soap, lavender","Says ""hi"""\n'

        records = read_csv(data, aliases)

        assert records[0]["name"] == "Soap, lavender"
        assert records[0]["description"] == 'Says "hi"'

    def test_utf8_bom_stripped(self, aliases: HeaderAliasTable):
        data = "\ufeffSKU,Name\nA1,Crème\n".encode("utf-8")
        records = read_csv(data, aliases)
        assert records == [{"code": "A1", "name": "Crème"}]

    def test_accepts_stream(self, aliases: HeaderAliasTable):
        records = read_csv(io.BytesIO(b"code,name\nA1,Soap\n"), aliases)
        assert records == [{"code": "A1", "name": "Soap"}]

    def test_empty_input(self, aliases: HeaderAliasTable):
        assert read_csv(b"", aliases) == []

    def test_header_only(self, aliases: HeaderAliasTable):
        assert read_csv(b"code,name\n", aliases) == []

    def test_parse_is_lazy(self, aliases: HeaderAliasTable):
        rows = parse_csv(b"code,name\nA1,Soap\nA2,Gel\n", aliases)
        assert next(rows) == {"code": "A1", "name": "Soap"}


class TestParseCsvErrors:
    """Structural problems fail the whole stream."""

    def test_unterminated_quote(self, aliases: HeaderAliasTable):
        with pytest.raises(CsvFormatError):
            read_csv(b'code,name\nA1,"Soap\n', aliases)

    def test_stray_quote(self, aliases: HeaderAliasTable):
        with pytest.raises(CsvFormatError):
            read_csv(b'code,name\nA1,"Soap"x\n', aliases)

    def test_row_wider_than_header(self, aliases: HeaderAliasTable):
        with pytest.raises(CsvFormatError, match="expected at most 2 fields"):
            read_csv(b"code,name\nA1,Soap,extra\n", aliases)

    def test_invalid_utf8(self, aliases: HeaderAliasTable):
        with pytest.raises(CsvFormatError, match="UTF-8"):
            read_csv(b"code,name\nA1,\xff\xfe\n", aliases)

    def test_error_after_good_rows_still_raises(self, aliases: HeaderAliasTable):
        with pytest.raises(CsvFormatError):
            read_csv(b"code,name\nA1,Soap\nA2,Gel,extra\n", aliases)
