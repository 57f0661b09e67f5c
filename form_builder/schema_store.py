"""
Schema store for the form builder.

Owns the page list, the active page index, the global field list, the field
category catalog and the id counters. Every operation is a synchronous
transition from one consistent snapshot to the next: the operation works on a
deep copy and the copy replaces the current snapshot only when it completes.

Conditions that would break an invariant (deleting the last page, removing the
last question or medication) and references to unknown ids are silent no-ops.
Out-of-range positions are programmer errors and raise InvalidIndexError.
"""

import logging
import threading
from copy import deepcopy
from dataclasses import dataclass, field as dataclass_field
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

from pydantic import ValidationError

from form_builder.config_loader import get_seed_form
from form_builder.diff_utils import calculate_snapshot_diff, get_change_summary
from form_builder.field_catalog import FIELD_CATEGORIES, get_category_entry, resolve_field_type
from form_builder.models import (
    CategoryEntry,
    FieldCategory,
    FieldType,
    FormField,
    FormPage,
    FormSnapshot,
    MedicationEntry,
    RatingQuestion,
    default_medications,
    default_questions,
)
from form_builder.store_exceptions import (
    InvalidIndexError,
    SeedDataError,
    UnknownOperationError,
)

logger = logging.getLogger(__name__)

COPY_SUFFIX = " (Copy)"

# Intent names accepted by SchemaStore.apply, mapped to method names
OPERATIONS: Dict[str, str] = {
    'addField': 'add_field',
    'moveFieldUp': 'move_field_up',
    'moveFieldDown': 'move_field_down',
    'deleteField': 'delete_field',
    'duplicateField': 'duplicate_field',
    'toggleRequired': 'toggle_required',
    'setFieldLabel': 'set_field_label',
    'setQuestionText': 'set_question_text',
    'addQuestion': 'add_question',
    'removeQuestion': 'remove_question',
    'setMedicationName': 'set_medication_name',
    'addMedication': 'add_medication',
    'removeMedication': 'remove_medication',
    'addPage': 'add_page',
    'deletePage': 'delete_page',
    'duplicatePage': 'duplicate_page',
    'renamePage': 'rename_page',
    'setActivePage': 'set_active_page',
    'previousPage': 'previous_page',
    'nextPage': 'next_page',
}


@dataclass
class StoreResult:
    """Outcome of SchemaStore.apply."""
    snapshot: FormSnapshot
    value: Any = None
    changed: bool = False


@dataclass
class StoreChange:
    """Change notification delivered to subscribers."""
    operation: str
    arguments: Dict[str, Any]
    snapshot: FormSnapshot
    diff: Dict[str, Any] = dataclass_field(default_factory=dict)

    @property
    def summary(self) -> Dict[str, int]:
        return get_change_summary(self.diff)


class _SubList(NamedTuple):
    """Attribute layout of a per-field sub-entity list."""
    items_attr: str
    counter_attr: str
    text_attr: str
    item_model: type
    defaults: Callable[[], list]
    new_text: Callable[[int], str]


_QUESTIONS = _SubList(
    items_attr='questions',
    counter_attr='next_question_id',
    text_attr='text',
    item_model=RatingQuestion,
    defaults=default_questions,
    new_text=lambda item_id: f"Question {item_id}",
)

_MEDICATIONS = _SubList(
    items_attr='medications',
    counter_attr='next_medication_id',
    text_attr='name',
    item_model=MedicationEntry,
    defaults=default_medications,
    new_text=lambda item_id: "",
)

Listener = Callable[[StoreChange], None]
EntryLike = Union[CategoryEntry, Dict[str, Any], FieldType, str]


def _as_text(value: Any) -> str:
    """Coerce user-entered text; None becomes an empty string."""
    return "" if value is None else str(value)


class SchemaStore:
    """In-memory store for a multi-page form schema."""

    def __init__(self, pages: Optional[Iterable[Any]] = None, fields: Optional[Iterable[Any]] = None,
                 active_page_index: int = 0, next_field_id: Optional[int] = None,
                 next_page_id: Optional[int] = None):
        """
        Build a store from initial pages and fields.

        With neither pages nor fields given, the configured seed form is used.
        Counters default to one above the highest id present.

        Raises:
            SeedDataError: If the initial data does not form a valid snapshot
        """
        if pages is None and fields is None:
            seed = get_seed_form()
            pages = seed.get('pages')
            fields = seed.get('fields')
            active_page_index = seed.get('active_page_index', active_page_index)

        self._state = self._build_snapshot(
            pages or [], fields or [], active_page_index, next_field_id, next_page_id
        )
        # "New Page N" numbering counts from the first id allocated after seeding
        self._page_name_base = self._state.next_page_id - 1
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []
        self._revision = 0

        logger.debug(
            f"SchemaStore initialized: pages={len(self._state.pages)} fields={len(self._state.fields)} "
            f"next_field_id={self._state.next_field_id} next_page_id={self._state.next_page_id}"
        )

    @classmethod
    def from_seed(cls, seed: Dict[str, Any]) -> "SchemaStore":
        """Create a store from a seed mapping with 'pages', 'fields' and optional counters."""
        if not isinstance(seed, dict):
            raise SeedDataError(TypeError(f"Seed must be a mapping, got {type(seed).__name__}"))
        return cls(
            pages=seed.get('pages') or [],
            fields=seed.get('fields') or [],
            active_page_index=seed.get('active_page_index', 0),
            next_field_id=seed.get('next_field_id'),
            next_page_id=seed.get('next_page_id'),
        )

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "SchemaStore":
        """Create a store from the 'form.seed' section of an application config."""
        return cls.from_seed(get_seed_form(config))

    @staticmethod
    def _build_snapshot(pages: Iterable[Any], fields: Iterable[Any], active_page_index: int,
                        next_field_id: Optional[int], next_page_id: Optional[int]) -> FormSnapshot:
        try:
            page_models = [FormPage.model_validate(deepcopy(page)) for page in pages]
            field_models = [FormField.model_validate(deepcopy(item)) for item in fields]

            highest_page = max((page.id for page in page_models), default=0)
            highest_field = max((item.id for item in field_models), default=0)

            return FormSnapshot(
                pages=page_models,
                fields=field_models,
                active_page_index=active_page_index,
                next_field_id=next_field_id if next_field_id is not None else highest_field + 1,
                next_page_id=next_page_id if next_page_id is not None else highest_page + 1,
            )
        except ValidationError as e:
            raise SeedDataError(e) from e

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> FormSnapshot:
        """Independent copy of the current state."""
        with self._lock:
            return self._state.model_copy(deep=True)

    @property
    def revision(self) -> int:
        """Number of state-changing operations applied so far."""
        with self._lock:
            return self._revision

    @property
    def pages(self) -> List[FormPage]:
        return self.snapshot.pages

    @property
    def fields(self) -> List[FormField]:
        return self.snapshot.fields

    @property
    def active_page_index(self) -> int:
        with self._lock:
            return self._state.active_page_index

    @property
    def active_page(self) -> FormPage:
        state = self.snapshot
        return state.pages[state.active_page_index]

    @property
    def catalog(self) -> Tuple[FieldCategory, ...]:
        return FIELD_CATEGORIES

    def find_field_index(self, field_id: int) -> int:
        """Position of the field with the given id, or -1."""
        with self._lock:
            return self._index_of(self._state.fields, field_id)

    def find_page_index(self, page_id: int) -> int:
        """Position of the page with the given id, or -1."""
        with self._lock:
            return self._index_of(self._state.pages, page_id)

    @staticmethod
    def _index_of(items: List[Any], item_id: Any) -> int:
        for position, item in enumerate(items):
            if item.id == item_id:
                return position
        return -1

    @staticmethod
    def _check_index(collection: str, index: Any, length: int) -> None:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < length:
            raise InvalidIndexError(collection, index, length)

    # ------------------------------------------------------------------
    # Subscription and dispatch
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback invoked after every state-changing operation.

        Returns:
            A callable that removes the listener
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def apply(self, operation: str, **arguments: Any) -> StoreResult:
        """
        Apply a named intent.

        Args:
            operation: camelCase (``duplicateField``) or snake_case (``duplicate_field``) name
            **arguments: Keyword arguments for the operation

        Returns:
            StoreResult with the new snapshot, the operation's return value and
            whether the state changed

        Raises:
            UnknownOperationError: If the name matches no operation
        """
        method_name = OPERATIONS.get(operation)
        if method_name is None and operation in OPERATIONS.values():
            method_name = operation
        if method_name is None:
            raise UnknownOperationError(operation, list(OPERATIONS) + list(OPERATIONS.values()))

        with self._lock:
            revision_before = self._revision
            value = getattr(self, method_name)(**arguments)
            return StoreResult(
                snapshot=self._state.model_copy(deep=True),
                value=value,
                changed=self._revision != revision_before,
            )

    def _run(self, operation: str, arguments: Dict[str, Any],
             mutate: Callable[[FormSnapshot], Any]) -> Any:
        with self._lock:
            before = self._state
            working = before.model_copy(deep=True)
            value = mutate(working)

            if working == before:
                logger.debug(f"{operation} made no change: {arguments}")
                return value

            self._state = working
            self._revision += 1
            logger.info(f"Applied {operation}: {arguments}")

            if self._listeners:
                change = StoreChange(
                    operation=operation,
                    arguments=arguments,
                    snapshot=working.model_copy(deep=True),
                    diff=calculate_snapshot_diff(before, working),
                )
                self._notify(change)

            return value

    def _notify(self, change: StoreChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as e:
                logger.error(f"Store listener failed for {change.operation}: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Field operations
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve_entry(category_entry: EntryLike) -> CategoryEntry:
        if isinstance(category_entry, CategoryEntry):
            return category_entry
        if isinstance(category_entry, dict):
            field_type = category_entry.get('type')
            label = category_entry.get('label')
            if label is None:
                return get_category_entry(field_type)
            return CategoryEntry(type=resolve_field_type(field_type), label=str(label))
        return get_category_entry(category_entry)

    def add_field(self, category_entry: EntryLike) -> int:
        """
        Append a new field built from a catalog entry.

        Rating-scale fields start with three default questions and medications
        fields with one empty medication.

        Returns:
            The new field's id
        """
        entry = self._resolve_entry(category_entry)

        def mutate(state: FormSnapshot) -> int:
            field_id = state.next_field_id
            state.next_field_id += 1

            new_field = FormField(id=field_id, type=entry.type, label=entry.label, required=False)
            if entry.type == FieldType.RATING_SCALE:
                self._materialize(new_field, _QUESTIONS)
            elif entry.type == FieldType.MEDICATIONS:
                self._materialize(new_field, _MEDICATIONS)

            state.fields.append(new_field)
            return field_id

        return self._run('addField', {'category_entry': entry.model_dump(mode='json')}, mutate)

    def move_field_up(self, index: int) -> None:
        """Swap the field at index with its predecessor; no-op at the top."""
        def mutate(state: FormSnapshot) -> None:
            self._check_index('field', index, len(state.fields))
            if index == 0:
                return
            fields = state.fields
            fields[index], fields[index - 1] = fields[index - 1], fields[index]

        self._run('moveFieldUp', {'index': index}, mutate)

    def move_field_down(self, index: int) -> None:
        """Swap the field at index with its successor; no-op at the bottom."""
        def mutate(state: FormSnapshot) -> None:
            self._check_index('field', index, len(state.fields))
            fields = state.fields
            if index == len(fields) - 1:
                return
            fields[index], fields[index + 1] = fields[index + 1], fields[index]

        self._run('moveFieldDown', {'index': index}, mutate)

    def delete_field(self, field_id: int) -> None:
        """Remove the field with the given id; unknown ids are ignored."""
        def mutate(state: FormSnapshot) -> None:
            state.fields = [item for item in state.fields if item.id != field_id]

        self._run('deleteField', {'id': field_id}, mutate)

    def duplicate_field(self, field_id: int) -> Optional[int]:
        """
        Insert a copy of a field directly after it.

        The copy gets a fresh id, the label suffix " (Copy)" and its own deep
        copy of any questions or medications together with their counters.

        Returns:
            The copy's id, or None if the source id is unknown
        """
        def mutate(state: FormSnapshot) -> Optional[int]:
            position = self._index_of(state.fields, field_id)
            if position == -1:
                return None

            source = state.fields[position]
            new_id = state.next_field_id
            state.next_field_id += 1

            duplicate = source.model_copy(deep=True, update={
                'id': new_id,
                'label': f"{source.label}{COPY_SUFFIX}",
            })
            state.fields.insert(position + 1, duplicate)
            return new_id

        return self._run('duplicateField', {'id': field_id}, mutate)

    def toggle_required(self, index: int) -> None:
        """Flip the required flag of the field at index."""
        def mutate(state: FormSnapshot) -> None:
            self._check_index('field', index, len(state.fields))
            target = state.fields[index]
            target.required = not target.required

        self._run('toggleRequired', {'index': index}, mutate)

    def set_field_label(self, index: int, text: str) -> None:
        """Replace the label of the field at index."""
        label = _as_text(text)

        def mutate(state: FormSnapshot) -> None:
            self._check_index('field', index, len(state.fields))
            state.fields[index].label = label

        self._run('setFieldLabel', {'index': index, 'text': label}, mutate)

    # ------------------------------------------------------------------
    # Sub-entity operations
    # ------------------------------------------------------------------

    @staticmethod
    def _materialize(target: FormField, spec: _SubList) -> None:
        setattr(target, spec.items_attr, spec.defaults())
        setattr(target, spec.counter_attr, len(getattr(target, spec.items_attr)) + 1)

    def _set_item_text(self, operation: str, spec: _SubList, field_index: int,
                       item_id: int, text: str) -> None:
        text = _as_text(text)

        def mutate(state: FormSnapshot) -> None:
            self._check_index('field', field_index, len(state.fields))
            items = getattr(state.fields[field_index], spec.items_attr)
            if not items:
                return
            for item in items:
                if item.id == item_id:
                    setattr(item, spec.text_attr, text)
                    return

        arguments = {'field_index': field_index, 'item_id': item_id, 'text': text}
        self._run(operation, arguments, mutate)

    def _add_item(self, operation: str, spec: _SubList, field_index: int) -> int:
        def mutate(state: FormSnapshot) -> int:
            self._check_index('field', field_index, len(state.fields))
            target = state.fields[field_index]
            items = getattr(target, spec.items_attr)

            if items is None:
                self._materialize(target, spec)
                return getattr(target, spec.items_attr)[-1].id

            item_id = getattr(target, spec.counter_attr)
            if item_id is None:
                item_id = max((item.id for item in items), default=0) + 1
            items.append(spec.item_model(id=item_id, **{spec.text_attr: spec.new_text(item_id)}))
            setattr(target, spec.counter_attr, item_id + 1)
            return item_id

        return self._run(operation, {'field_index': field_index}, mutate)

    def _remove_item(self, operation: str, spec: _SubList, field_index: int, item_id: int) -> None:
        def mutate(state: FormSnapshot) -> None:
            self._check_index('field', field_index, len(state.fields))
            target = state.fields[field_index]
            items = getattr(target, spec.items_attr)
            # At least one item always remains
            if not items or len(items) <= 1:
                return
            setattr(target, spec.items_attr, [item for item in items if item.id != item_id])

        self._run(operation, {'field_index': field_index, 'item_id': item_id}, mutate)

    def set_question_text(self, field_index: int, question_id: int, text: str) -> None:
        """Update a rating question's text; unknown question ids are ignored."""
        self._set_item_text('setQuestionText', _QUESTIONS, field_index, question_id, text)

    def add_question(self, field_index: int) -> int:
        """
        Append a question to the field at field_index.

        A field without a question list gets the three default questions
        instead of a single new one.

        Returns:
            The id of the last question in the list
        """
        return self._add_item('addQuestion', _QUESTIONS, field_index)

    def remove_question(self, field_index: int, question_id: int) -> None:
        """Remove a question unless it would leave the field with none."""
        self._remove_item('removeQuestion', _QUESTIONS, field_index, question_id)

    def set_medication_name(self, field_index: int, medication_id: int, text: str) -> None:
        """Update a medication entry's name; unknown medication ids are ignored."""
        self._set_item_text('setMedicationName', _MEDICATIONS, field_index, medication_id, text)

    def add_medication(self, field_index: int) -> int:
        """Append an empty medication, or materialize the default list if absent."""
        return self._add_item('addMedication', _MEDICATIONS, field_index)

    def remove_medication(self, field_index: int, medication_id: int) -> None:
        """Remove a medication unless it would leave the field with none."""
        self._remove_item('removeMedication', _MEDICATIONS, field_index, medication_id)

    # ------------------------------------------------------------------
    # Page operations
    # ------------------------------------------------------------------

    def add_page(self) -> int:
        """
        Append a new page and make it active.

        Returns:
            The new page's id
        """
        def mutate(state: FormSnapshot) -> int:
            page_id = state.next_page_id
            state.next_page_id += 1
            number = state.next_page_id - self._page_name_base

            state.pages.append(FormPage(id=page_id, name=f"New Page {number}"))
            state.active_page_index = len(state.pages) - 1
            return page_id

        return self._run('addPage', {}, mutate)

    def delete_page(self, page_id: int) -> None:
        """
        Delete a page, never the last one.

        The active index is repaired by position: it is clamped to the new
        end of the list, or stepped back when the active page itself was
        removed. Otherwise it keeps its numeric value.
        """
        def mutate(state: FormSnapshot) -> None:
            if len(state.pages) <= 1:
                return
            position = self._index_of(state.pages, page_id)
            if position == -1:
                return

            active = state.active_page_index
            del state.pages[position]

            if active >= len(state.pages):
                state.active_page_index = len(state.pages) - 1
            elif active == position:
                state.active_page_index = max(0, active - 1)

        self._run('deletePage', {'id': page_id}, mutate)

    def duplicate_page(self, page_id: int) -> Optional[int]:
        """
        Insert a copy of a page directly after it and make the copy active.

        Returns:
            The copy's id, or None if the source id is unknown
        """
        def mutate(state: FormSnapshot) -> Optional[int]:
            position = self._index_of(state.pages, page_id)
            if position == -1:
                return None

            new_id = state.next_page_id
            state.next_page_id += 1
            source = state.pages[position]

            state.pages.insert(position + 1, FormPage(id=new_id, name=f"{source.name}{COPY_SUFFIX}"))
            state.active_page_index = position + 1
            return new_id

        return self._run('duplicatePage', {'id': page_id}, mutate)

    def rename_page(self, page_id: int, text: str) -> None:
        """Rename a page in place; unknown ids are ignored."""
        name = _as_text(text)

        def mutate(state: FormSnapshot) -> None:
            position = self._index_of(state.pages, page_id)
            if position != -1:
                state.pages[position].name = name

        self._run('renamePage', {'id': page_id, 'text': name}, mutate)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def set_active_page(self, index: int) -> None:
        """Select a page by position."""
        def mutate(state: FormSnapshot) -> None:
            self._check_index('page', index, len(state.pages))
            state.active_page_index = index

        self._run('setActivePage', {'index': index}, mutate)

    def previous_page(self) -> None:
        """Step back one page, stopping at the first."""
        def mutate(state: FormSnapshot) -> None:
            state.active_page_index = max(0, state.active_page_index - 1)

        self._run('previousPage', {}, mutate)

    def next_page(self) -> None:
        """Step forward one page, stopping at the last."""
        def mutate(state: FormSnapshot) -> None:
            state.active_page_index = min(len(state.pages) - 1, state.active_page_index + 1)

        self._run('nextPage', {}, mutate)
