"""
Pydantic models for the form builder schema.
Defines pages, fields, rating questions, medication entries and the store snapshot.
"""

from enum import Enum
from typing import List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, model_validator
import logging

logger = logging.getLogger(__name__)


class FieldType(str, Enum):
    """Field types a form can contain."""
    PATIENT_NAME = "patient-name"
    PATIENT_ADDRESS = "patient-address"
    PATIENT_PHONE = "patient-phone"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    SHORT_TEXT = "short-text"
    LONG_TEXT = "long-text"
    EMAIL = "email"
    NUMBER = "number"
    DATE = "date"
    DATE_OF_BIRTH = "date-of-birth"
    CHECKBOXES = "checkboxes"
    RADIO = "radio"
    DROPDOWN = "dropdown"
    RATING_SCALE = "rating-scale"
    FILE_UPLOAD = "file-upload"
    IMAGE_UPLOAD = "image-upload"
    CARD_PHOTO = "card-photo"
    MEDICATIONS = "medications"
    SIGNATURE = "signature"


class RatingQuestion(BaseModel):
    """One question row of a rating-scale field."""
    id: int
    text: str = ""


class MedicationEntry(BaseModel):
    """One entry of a medications-list field."""
    id: int
    name: str = ""


def default_questions() -> List[RatingQuestion]:
    """Default question set for a fresh rating-scale field."""
    return [RatingQuestion(id=i, text=f"Question {i}") for i in range(1, 4)]


def default_medications() -> List[MedicationEntry]:
    """Default medication list for a fresh medications field."""
    return [MedicationEntry(id=1, name="")]


class FormField(BaseModel):
    """
    A single form element.

    ``questions`` and ``medications`` are only populated for rating-scale and
    medications fields; each carries its own id counter.
    """
    id: int
    type: FieldType
    label: str = ""
    required: bool = False
    questions: Optional[List[RatingQuestion]] = None
    next_question_id: Optional[int] = None
    medications: Optional[List[MedicationEntry]] = None
    next_medication_id: Optional[int] = None

    @model_validator(mode="after")
    def check_sub_entities(self) -> "FormField":
        for items_attr, counter_attr in (('questions', 'next_question_id'),
                                         ('medications', 'next_medication_id')):
            items = getattr(self, items_attr)
            if not items:
                continue

            item_ids = [item.id for item in items]
            if len(item_ids) != len(set(item_ids)):
                raise ValueError(f"Duplicate {items_attr} ids in field {self.id}: {item_ids}")

            counter = getattr(self, counter_attr)
            if counter is not None and counter <= max(item_ids):
                raise ValueError(
                    f"{counter_attr} {counter} must exceed highest {items_attr} id {max(item_ids)} in field {self.id}"
                )

        return self


class FormPage(BaseModel):
    """One step of a multi-page form."""
    id: int
    name: str


class CategoryEntry(BaseModel):
    """Picker entry used to originate a new field."""
    model_config = ConfigDict(frozen=True)

    type: FieldType
    label: str


class FieldCategory(BaseModel):
    """Named group of picker entries."""
    model_config = ConfigDict(frozen=True)

    name: str
    fields: Tuple[CategoryEntry, ...]


class FormSnapshot(BaseModel):
    """
    Complete editor state at one point in time.

    Validation guarantees a non-empty page list, a valid active page index,
    unique ids per collection and counters above every id in use.
    """
    pages: List[FormPage]
    active_page_index: int = 0
    fields: List[FormField] = Field(default_factory=list)
    next_field_id: int = 1
    next_page_id: int = 1

    @model_validator(mode="after")
    def check_invariants(self) -> "FormSnapshot":
        if not self.pages:
            raise ValueError("Form must contain at least one page")

        if not 0 <= self.active_page_index < len(self.pages):
            raise ValueError(
                f"Active page index {self.active_page_index} out of range for {len(self.pages)} pages"
            )

        page_ids = [page.id for page in self.pages]
        if len(page_ids) != len(set(page_ids)):
            raise ValueError(f"Duplicate page ids: {page_ids}")

        field_ids = [field.id for field in self.fields]
        if len(field_ids) != len(set(field_ids)):
            raise ValueError(f"Duplicate field ids: {field_ids}")

        if page_ids and self.next_page_id <= max(page_ids):
            raise ValueError(f"next_page_id {self.next_page_id} must exceed highest page id {max(page_ids)}")

        if field_ids and self.next_field_id <= max(field_ids):
            raise ValueError(f"next_field_id {self.next_field_id} must exceed highest field id {max(field_ids)}")

        return self
