"""Test CSV bulk import."""
import pytest

from tabledesk.errors import ColumnMismatchError, ValidationError
from tabledesk.loader import ImportResult, ImportRowError, import_csv, parse_csv
from tabledesk.registry import SourceRegistry


class TestParse:

    def test_everything_read_as_text(self):
        df = parse_csv(b"id,Name,Code\n1,France,007\n2,,\n")
        assert df.to_dict("records") == [
            {"id": "1", "Name": "France", "Code": "007"},
            {"id": "2", "Name": "", "Code": ""},
        ]

    def test_byte_order_mark_stripped(self):
        df = parse_csv(b"\xef\xbb\xbfName,ISO2\nItaly,IT\n")
        assert list(df.columns) == ["Name", "ISO2"]

    def test_too_large(self):
        with pytest.raises(ValidationError, match="File too large"):
            parse_csv(b"Name\nx\n", max_bytes=4)

    def test_empty(self):
        with pytest.raises(ValidationError, match="CSV file is empty"):
            parse_csv(b"")

    def test_header_only(self):
        with pytest.raises(ValidationError, match="CSV file is empty"):
            parse_csv(b"Name,ISO2\n")


class TestImportTextFiles:

    def test_invalid_column_aborts_before_insert(self, registry):
        data = b"id,Name,Capital\n4,Italy,Rome\n"
        with pytest.raises(ColumnMismatchError) as exc:
            import_csv(registry, "files", "countries", data)

        assert exc.value.invalid_columns == ["Capital"]
        assert exc.value.valid_columns == ["id", "Name", "ISO2"]
        assert exc.value.status == 400
        assert len(registry.get_table("files", "countries").rows) == 3

    def test_imports_every_row(self, registry):
        data = b"id,Name,ISO2\n99,Italy,IT\n,Spain,ES\n"
        result = import_csv(registry, "files", "countries", data)

        assert result.to_dict() == {"imported": 2, "total": 2}
        rows = registry.get_table("files", "countries").rows
        assert rows[-2:] == [["4", "Italy", "IT"], ["5", "Spain", "ES"]]

    def test_subset_of_columns(self, registry):
        result = import_csv(registry, "files", "countries", b"Name\nPeru\n")
        assert result.imported == 1
        assert registry.get_row("files", "countries", 4).row == ["4", "Peru", ""]


@pytest.mark.postgres
class TestImportPartialFailure:

    def test_failed_row_reported_and_skipped(self, pg_provider, fake_db):
        registry = SourceRegistry.from_providers([pg_provider])
        data = b"name,iso2\nJapan,JP\nDuplicate,ZA\nItaly,IT\n"

        result = import_csv(registry, "pg", "countries", data)

        assert result.imported == 2
        assert result.total == 3
        assert result.failed == 1
        assert result.errors[0].row == 2
        assert "duplicate key" in result.errors[0].message
        assert [r["name"] for r in fake_db.tables["countries"].rows][-2:] == ["Japan", "Italy"]


class TestResult:

    def test_errors_omitted_when_clean(self):
        assert ImportResult(imported=1, total=1).to_dict() == {"imported": 1, "total": 1}

    def test_errors_listed(self):
        result = ImportResult(imported=0, total=1, errors=[ImportRowError(1, "bad")])
        assert result.to_dict()["errors"] == [{"row": 1, "message": "bad"}]
