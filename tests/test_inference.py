"""Test field type inference and lookup classification."""
from datetime import date, datetime
from decimal import Decimal

import pytest

from tabledesk.schema import (
    FieldDescriptor, apply_lookups, display_field, infer_type, normalize_fields,
)


class TestInferTypeByName:
    """Column names win over whatever the value looks like."""

    def test_date_in_name(self):
        assert infer_type("hello", "birth_date") == "date"
        assert infer_type(42, "DateOfBirth") == "date"
        assert infer_type(None, "update_date_col") == "date"

    def test_at_suffix(self):
        assert infer_type("x", "deleted_at") == "date"
        assert infer_type(None, "Created_At") == "date"

    def test_at_not_suffix(self):
        assert infer_type("x", "attendee") == "text"
        assert infer_type("x", "flat_rate") == "text"


class TestInferTypeByValue:

    def test_none_is_text(self):
        assert infer_type(None, "name") == "text"

    def test_bool_before_int(self):
        assert infer_type(True, "active") == "boolean"
        assert infer_type(False, "active") == "boolean"

    def test_whole_numbers(self):
        assert infer_type(42, "count") == "integer"
        assert infer_type(3.0, "count") == "integer"
        assert infer_type(Decimal("10"), "count") == "integer"

    def test_fractional_numbers(self):
        assert infer_type(3.14, "ratio") == "number"
        assert infer_type(Decimal("2.50"), "price") == "number"

    def test_date_values(self):
        assert infer_type(date(2024, 1, 31), "founded") == "date"
        assert infer_type(datetime(2024, 1, 31, 12, 0), "seen") == "date"

    def test_iso_date_strings(self):
        assert infer_type("2024-01-31", "founded") == "date"
        assert infer_type("2024-01-31T10:00:00Z", "seen") == "date"

    def test_not_quite_dates(self):
        assert infer_type("2024-13-45", "code") == "text"
        assert infer_type("31/01/2024", "code") == "text"
        assert infer_type("abc", "code") == "text"


class TestApplyLookups:

    def _fields(self):
        return [
            FieldDescriptor("id", "integer", readonly=True),
            FieldDescriptor("name", "text"),
            FieldDescriptor("country_id", "integer"),
        ]

    def test_foreign_key_becomes_lookup(self):
        fields = apply_lookups("cities", self._fields(), {"country_id": "countries"})
        assert fields[2].type == "lookup"
        assert fields[2].lookup_target == "countries"
        assert fields[1].type == "text"

    def test_manual_lookup_wins_over_foreign_key(self):
        fields = apply_lookups(
            "cities", self._fields(),
            foreign_keys={"country_id": "countries"},
            manual_lookups={"cities": {"country_id": "nations"}},
        )
        assert fields[2].lookup_target == "nations"

    def test_manual_lookup_for_other_table_ignored(self):
        fields = apply_lookups("cities", self._fields(), manual_lookups={"towns": {"name": "x"}})
        assert [f.type for f in fields] == ["integer", "text", "integer"]

    def test_id_never_a_lookup(self):
        fields = apply_lookups("cities", self._fields(), {"id": "other"})
        assert fields[0].type == "integer"
        assert fields[0].lookup_target is None


class TestNormalizeFields:

    def test_id_moved_first_and_readonly(self):
        fields = normalize_fields([FieldDescriptor("name"), FieldDescriptor("id", "integer")])
        assert [f.name for f in fields] == ["id", "name"]
        assert fields[0].readonly

    def test_missing_id_prepended(self):
        fields = normalize_fields([FieldDescriptor("name")])
        assert [f.name for f in fields] == ["id", "name"]
        assert fields[0].type == "integer"

    def test_display_field_skips_id_and_audit(self):
        fields = [
            FieldDescriptor("id", "integer"),
            FieldDescriptor("created_at", "date"),
            FieldDescriptor("label"),
        ]
        assert display_field(fields).name == "label"
        assert display_field(fields[:2]) is None

    def test_display_field_skips_any_timestamp_column(self):
        fields = [
            FieldDescriptor("id", "integer"),
            FieldDescriptor("deleted_at", "date"),
            FieldDescriptor("Published_At", "date"),
            FieldDescriptor("title"),
        ]
        assert display_field(fields).name == "title"


class TestFieldDescriptor:

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            FieldDescriptor("x", "blob")

    def test_to_dict_includes_lookup_target_only_when_set(self):
        assert FieldDescriptor("name").to_dict() == {"name": "name", "type": "text", "readonly": False}
        data = FieldDescriptor("country", "lookup", "countries").to_dict()
        assert data["lookupTarget"] == "countries"
        assert FieldDescriptor.from_dict(data) == FieldDescriptor("country", "lookup", "countries")
