"""
Static field category catalog used by the picker to originate new fields.
The catalog is read-only reference data and is never mutated at runtime.
"""

from typing import List, Tuple, Union
import logging

from form_builder.models import CategoryEntry, FieldCategory, FieldType
from form_builder.store_exceptions import UnknownFieldTypeError

logger = logging.getLogger(__name__)


def _category(name: str, *entries: Tuple[FieldType, str]) -> FieldCategory:
    return FieldCategory(
        name=name,
        fields=tuple(CategoryEntry(type=field_type, label=label) for field_type, label in entries)
    )


FIELD_CATEGORIES: Tuple[FieldCategory, ...] = (
    _category(
        "Patient Info",
        (FieldType.PATIENT_NAME, "Name"),
        (FieldType.PATIENT_ADDRESS, "Address"),
        (FieldType.PATIENT_PHONE, "Phone Number"),
    ),
    _category(
        "Structure",
        (FieldType.HEADING, "Heading"),
        (FieldType.PARAGRAPH, "Paragraph"),
    ),
    _category(
        "Text",
        (FieldType.SHORT_TEXT, "Short Text"),
        (FieldType.LONG_TEXT, "Long Text"),
        (FieldType.EMAIL, "Email"),
        (FieldType.NUMBER, "Number Input"),
    ),
    _category(
        "Date & Time",
        (FieldType.DATE, "Date"),
        (FieldType.DATE_OF_BIRTH, "Date of Birth"),
    ),
    _category(
        "Upload",
        (FieldType.FILE_UPLOAD, "File Upload"),
        (FieldType.IMAGE_UPLOAD, "Image Upload"),
        (FieldType.CARD_PHOTO, "Card Photo (Front & Back)"),
        (FieldType.MEDICATIONS, "Medications List"),
        (FieldType.SIGNATURE, "Signature"),
    ),
    _category(
        "Options",
        (FieldType.CHECKBOXES, "Checkboxes"),
        (FieldType.RADIO, "Radio Buttons"),
        (FieldType.DROPDOWN, "Dropdown"),
        (FieldType.RATING_SCALE, "Rating Scale"),
    ),
)


def resolve_field_type(field_type: Union[FieldType, str]) -> FieldType:
    """Coerce a FieldType member or string value to FieldType."""
    try:
        return FieldType(field_type)
    except ValueError:
        raise UnknownFieldTypeError(field_type) from None


def get_category_entry(field_type: Union[FieldType, str]) -> CategoryEntry:
    """
    Look up the picker entry for a field type.

    Args:
        field_type: FieldType member or its string value (e.g. "rating-scale")

    Returns:
        The catalog entry for the type

    Raises:
        UnknownFieldTypeError: If the type is not in the catalog
    """
    wanted = resolve_field_type(field_type)
    for category in FIELD_CATEGORIES:
        for entry in category.fields:
            if entry.type == wanted:
                return entry
    raise UnknownFieldTypeError(field_type)


def get_category_for_type(field_type: Union[FieldType, str]) -> str:
    """Return the name of the category that lists the given type."""
    wanted = resolve_field_type(field_type)
    for category in FIELD_CATEGORIES:
        if any(entry.type == wanted for entry in category.fields):
            return category.name
    raise UnknownFieldTypeError(field_type)


def list_field_types() -> List[FieldType]:
    """All field types in catalog order."""
    return [entry.type for category in FIELD_CATEGORIES for entry in category.fields]
