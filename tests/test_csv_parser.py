"""Tests for CSV decoding and column mapping."""

from pathlib import Path

import pytest

from spending_insights.parsers.base import ParseError, ValidationError
from spending_insights.parsers.csv_parser import ColumnMapping, CSVParser


class TestReadRows:
    """Tests for CSVParser.read_rows."""

    def test_comma_file_with_bom(self) -> None:
        """Test a UTF-8 BOM is removed from the first header cell."""
        payload = "\ufeffDate,Description,Amount\n2024-03-15,NETFLIX,-99.90\n".encode("utf-8")
        rows = CSVParser().read_rows(payload)

        assert rows == [["Date", "Description", "Amount"], ["2024-03-15", "NETFLIX", "-99.90"]]

    def test_semicolon_file_with_decimal_commas(self) -> None:
        """Test semicolon delimiter wins over commas inside amounts."""
        text = "Tarih;Aciklama;Tutar\n15.03.2024;MIGROS;-1.234,56\n16.03.2024;A101;-45,10\n"
        rows = CSVParser().read_rows(text)

        assert rows[1] == ["15.03.2024", "MIGROS", "-1.234,56"]
        assert rows[2] == ["16.03.2024", "A101", "-45,10"]

    def test_quoted_fields(self) -> None:
        """Test quoted cells may contain the delimiter and newlines."""
        text = 'date,description,amount\n2024-03-15,"ACME, INC\nSUITE 4","-1,200.00"\n'
        rows = CSVParser().read_rows(text)

        assert rows[1] == ["2024-03-15", "ACME, INC\nSUITE 4", "-1,200.00"]

    def test_blank_lines_dropped(self) -> None:
        """Test empty and whitespace-only lines produce no rows."""
        text = "date,description,amount\n\n2024-03-15,A,1\n , , \n2024-03-16,B,2\n"
        rows = CSVParser().read_rows(text)

        assert len(rows) == 3

    def test_numbered_rows_keep_source_lines(self) -> None:
        """Test line numbers count skipped blank lines and multi-line records."""
        text = (
            "date,description,amount\n"
            "\n"
            "2024-03-15,A,1\n"
            "2024-03-16,\"B\nSUITE 4\",2\n"
            "2024-03-17,C,3\n"
        )
        numbered = CSVParser().read_numbered_rows(text)

        assert [line for line, _ in numbered] == [1, 3, 4, 6]
        assert numbered[2][1] == ["2024-03-16", "B\nSUITE 4", "2"]

    def test_cells_are_stripped(self) -> None:
        """Test surrounding whitespace is removed from cells."""
        rows = CSVParser().read_rows("date , description\n 2024-03-15 ,  NETFLIX \n")
        assert rows[1] == ["2024-03-15", "NETFLIX"]

    def test_cp1254_fallback(self) -> None:
        """Test non-UTF-8 Turkish exports are decoded."""
        payload = "tarih,aciklama,tutar\n15.03.2024,MİGROS ŞUBE,-10\n".encode("cp1254")
        rows = CSVParser().read_rows(payload)

        assert rows[1][1] == "MİGROS ŞUBE"

    def test_path_payload(self, tmp_path: Path) -> None:
        """Test reading from a file path."""
        csv_file = tmp_path / "statement.csv"
        csv_file.write_text("date,description,amount\n2024-03-15,NETFLIX,-99.90\n", encoding="utf-8")

        assert len(CSVParser().read_rows(csv_file)) == 2

    def test_missing_path(self, tmp_path: Path) -> None:
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            CSVParser().read_rows(tmp_path / "missing.csv")

    def test_explicit_delimiter(self) -> None:
        """Test a fixed delimiter bypasses detection."""
        rows = CSVParser(delimiter="|").read_rows("a|b|c\n1|2|3\n")
        assert rows == [["a", "b", "c"], ["1", "2", "3"]]

    def test_oversized_payload(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test payloads above the size limit are refused."""
        monkeypatch.setattr("spending_insights.parsers.csv_parser.MAX_CSV_FILE_SIZE", 10)
        with pytest.raises(ParseError, match="too large"):
            CSVParser().read_rows("date,description,amount\n")


class TestPreview:
    """Tests for CSVParser.preview."""

    def test_preview_limits_rows(self) -> None:
        """Test preview returns the header and at most `limit` rows."""
        lines = ["date,description,amount"] + [f"2024-03-{d:02d},SHOP {d},-{d}" for d in range(1, 31)]
        preview = CSVParser().preview("\n".join(lines), limit=5)

        assert preview.headers == ["date", "description", "amount"]
        assert len(preview.rows) == 5
        assert preview.delimiter == ","

    def test_preview_empty(self) -> None:
        """Test an empty payload yields no headers."""
        preview = CSVParser().preview("")
        assert preview.headers == []
        assert preview.rows == []


class TestColumnMapping:
    """Tests for ColumnMapping construction and validation."""

    def test_from_form_dict(self) -> None:
        """Test string indexes and empty optional columns."""
        mapping = ColumnMapping.from_dict({"date": "0", "description": "2", "amount": "3", "type": ""})

        assert (mapping.date, mapping.description, mapping.amount) == (0, 2, 3)
        assert mapping.type is None
        assert mapping.max_index == 3

    def test_missing_required_column(self) -> None:
        """Test a missing amount column is rejected."""
        with pytest.raises(ValidationError, match="amount"):
            ColumnMapping.from_dict({"date": 0, "description": 1})

    def test_non_integer_column(self) -> None:
        """Test non-numeric positions are rejected."""
        with pytest.raises(ValidationError):
            ColumnMapping.from_dict({"date": "first", "description": 1, "amount": 2})

    def test_negative_column(self) -> None:
        """Test negative positions are rejected."""
        with pytest.raises(ValidationError):
            ColumnMapping(date=-1, description=1, amount=2).validate()

    def test_overlapping_columns(self) -> None:
        """Test required fields must use distinct columns."""
        with pytest.raises(ValidationError, match="different columns"):
            ColumnMapping(date=0, description=0, amount=1).validate()
