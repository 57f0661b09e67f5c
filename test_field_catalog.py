"""
Unit tests for the field category catalog and field models.
"""

import pytest
from pydantic import ValidationError

from form_builder.field_catalog import (
    FIELD_CATEGORIES,
    get_category_entry,
    get_category_for_type,
    list_field_types,
    resolve_field_type,
)
from form_builder.models import CategoryEntry, FieldType, FormField, FormSnapshot
from form_builder.store_exceptions import UnknownFieldTypeError


class TestFieldCatalog:
    """Test cases for catalog lookups."""

    def test_every_field_type_listed_once(self):
        types = list_field_types()

        assert len(types) == len(set(types))
        assert set(types) == set(FieldType)

    def test_get_category_entry_by_string(self):
        entry = get_category_entry("rating-scale")

        assert entry == CategoryEntry(type=FieldType.RATING_SCALE, label="Rating Scale")

    def test_get_category_entry_by_enum(self):
        assert get_category_entry(FieldType.MEDICATIONS).label == "Medications List"

    def test_get_category_for_type(self):
        assert get_category_for_type("patient-phone") == "Patient Info"
        assert get_category_for_type(FieldType.SIGNATURE) == "Upload"

    def test_unknown_type_raises(self):
        with pytest.raises(UnknownFieldTypeError) as exc_info:
            get_category_entry("teleport")

        assert exc_info.value.context == {'field_type': 'teleport'}
        assert isinstance(exc_info.value, KeyError)

    def test_resolve_field_type(self):
        assert resolve_field_type("date-of-birth") is FieldType.DATE_OF_BIRTH
        with pytest.raises(UnknownFieldTypeError):
            resolve_field_type(None)

    def test_catalog_entries_are_frozen(self):
        entry = FIELD_CATEGORIES[0].fields[0]

        with pytest.raises(ValidationError):
            entry.label = "Changed"

    def test_category_order(self):
        assert [category.name for category in FIELD_CATEGORIES] == [
            "Patient Info", "Structure", "Text", "Date & Time", "Upload", "Options"
        ]
        assert [entry.label for entry in FIELD_CATEGORIES[5].fields] == [
            "Checkboxes", "Radio Buttons", "Dropdown", "Rating Scale"
        ]


class TestModels:
    """Test cases for model validation."""

    def test_field_defaults(self):
        field = FormField(id=1, type="email", label="Email")

        assert field.required is False
        assert field.questions is None
        assert field.next_medication_id is None

    def test_snapshot_requires_a_page(self):
        with pytest.raises(ValidationError):
            FormSnapshot(pages=[])

    def test_snapshot_rejects_duplicate_page_ids(self):
        with pytest.raises(ValidationError):
            FormSnapshot(
                pages=[{'id': 1, 'name': 'A'}, {'id': 1, 'name': 'B'}],
                next_page_id=2
            )

    def test_snapshot_rejects_stale_counter(self):
        with pytest.raises(ValidationError):
            FormSnapshot(
                pages=[{'id': 1, 'name': 'A'}],
                fields=[{'id': 4, 'type': 'email', 'label': 'Email'}],
                next_page_id=2,
                next_field_id=4
            )
