"""
Form builder view.
Streamlit editor for pages and fields. Every user action is forwarded to the
session's SchemaStore; the view itself holds no form state.
"""

import streamlit as st
from typing import Any, Callable, Optional
import logging

from form_builder.error_handler import ErrorHandler, ErrorType
from form_builder.models import FieldType, FormField, FormSnapshot
from form_builder.schema_store import SchemaStore
from form_builder.session_manager import SessionManager
from form_builder.ui_feedback import Notify

logger = logging.getLogger(__name__)

_FAILED = object()


class FormBuilderView:
    """Main controller class for the form builder editor."""

    @staticmethod
    def render() -> None:
        """Render the complete editor."""
        store = SessionManager.get_store()
        state = store.snapshot

        FormBuilderView._render_header()

        with st.sidebar:
            FormBuilderView._render_field_picker(store)

        FormBuilderView._render_page_tabs(store, state)
        st.divider()

        if SessionManager.is_preview_mode():
            FormBuilderView._render_outline(state)
        else:
            FormBuilderView._render_field_list(store, state)

        st.divider()
        FormBuilderView._render_page_navigation(store, state)
        FormBuilderView._render_status()

    @staticmethod
    def _perform(action: Callable[[], Any], context: str, success_message: Optional[str] = None,
                 missing_message: Optional[str] = None) -> None:
        """
        Run a store action, report the outcome and rerun the script.

        Actions that return None when their target id no longer exists pass a
        missing_message, shown as a warning instead of the success toast.
        """
        result = ErrorHandler.with_error_handling(action, context, ErrorType.STORE, default_return=_FAILED)
        if result is _FAILED:
            return
        if result is None and missing_message:
            Notify.warn(missing_message)
        elif success_message:
            Notify.success(success_message)
        st.rerun()

    @staticmethod
    def _render_header() -> None:
        col1, col2, col3 = st.columns([4, 1, 1])

        with col1:
            st.header("🧩 Form Builder")

        with col2:
            label = "✏️ Edit" if SessionManager.is_preview_mode() else "👁️ Preview"
            if st.button(label, key="toggle_preview_btn", help="Switch between editing and outline view"):
                SessionManager.toggle_preview_mode()
                st.rerun()

        with col3:
            if st.button("🔄 Reset", key="reset_form_btn", help="Start again from the configured starting form"):
                FormBuilderView._perform(SessionManager.reset_store, "resetting form", "Form reset")

    # ------------------------------------------------------------------
    # Field picker
    # ------------------------------------------------------------------

    @staticmethod
    def _render_field_picker(store: SchemaStore) -> None:
        """Render the category catalog; clicking an entry appends a field."""
        st.subheader("➕ Add Fields")
        expanded = SessionManager.get_expanded_categories()

        for category_index, category in enumerate(store.catalog):
            arrow = "▾" if expanded[category_index] else "▸"
            if st.button(f"{arrow} {category.name}", key=f"category_{category_index}"):
                SessionManager.toggle_category(category_index)
                st.rerun()

            if not expanded[category_index]:
                continue

            for entry in category.fields:
                if st.button(entry.label, key=f"add_field_{entry.type.value}"):
                    FormBuilderView._perform(
                        lambda entry=entry: store.add_field(entry),
                        "adding field",
                        f"Added field: {entry.label}"
                    )

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    @staticmethod
    def _render_page_tabs(store: SchemaStore, state: FormSnapshot) -> None:
        """Render one tab per page plus the page management buttons."""
        editing_page_id = SessionManager.get_editing_page()
        columns = st.columns(len(state.pages))

        for index, (column, page) in enumerate(zip(columns, state.pages)):
            with column:
                if page.id == editing_page_id:
                    new_name = st.text_input("Page name", value=page.name, key=f"page_name_{page.id}")
                    if new_name != page.name:
                        store.rename_page(page.id, new_name)
                    if st.button("Done", key=f"page_done_{page.id}"):
                        SessionManager.set_editing_page(None)
                        st.rerun()
                    continue

                is_active = index == state.active_page_index
                if st.button(page.name, key=f"page_tab_{page.id}",
                             type="primary" if is_active else "secondary"):
                    FormBuilderView._perform(
                        lambda page_id=page.id: store.set_active_page(store.find_page_index(page_id)),
                        "selecting page"
                    )

                if is_active and st.button("✏️", key=f"page_edit_{page.id}", help="Rename this page"):
                    SessionManager.set_editing_page(page.id)
                    st.rerun()

        active_page = state.pages[state.active_page_index]
        col1, col2, col3 = st.columns(3)

        with col1:
            if st.button("➕ Add Page", key="add_page_btn"):
                FormBuilderView._perform(store.add_page, "adding page", "Added page")

        with col2:
            if st.button("📋 Duplicate Page", key="duplicate_page_btn"):
                FormBuilderView._perform(
                    lambda: store.duplicate_page(active_page.id),
                    "duplicating page",
                    f"Duplicated page: {active_page.name}",
                    f"Page no longer exists: {active_page.name}"
                )

        with col3:
            if st.button("🗑️ Delete Page", key="delete_page_btn", disabled=len(state.pages) <= 1,
                         help="The last remaining page cannot be deleted"):
                FormBuilderView._perform(
                    lambda: store.delete_page(active_page.id),
                    "deleting page",
                    f"Deleted page: {active_page.name}"
                )

    @staticmethod
    def _render_page_navigation(store: SchemaStore, state: FormSnapshot) -> None:
        col1, col2, col3 = st.columns([1, 2, 1])

        with col1:
            if st.button("⬅️ Previous", key="previous_page_btn", disabled=state.active_page_index == 0):
                FormBuilderView._perform(store.previous_page, "navigating pages")

        with col2:
            st.caption(f"Page {state.active_page_index + 1} of {len(state.pages)}")

        with col3:
            if st.button("Next ➡️", key="next_page_btn",
                         disabled=state.active_page_index >= len(state.pages) - 1):
                FormBuilderView._perform(store.next_page, "navigating pages")

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    @staticmethod
    def _render_field_list(store: SchemaStore, state: FormSnapshot) -> None:
        st.subheader(f"🏷️ {state.pages[state.active_page_index].name}")

        if not state.fields:
            st.info("No fields yet. Pick a field type from the sidebar to get started.")
            return

        for index, field in enumerate(state.fields):
            FormBuilderView._render_field_editor(store, index, field, len(state.fields))

    @staticmethod
    def _render_field_editor(store: SchemaStore, index: int, field: FormField, total: int) -> None:
        """Render the editor row for a single field."""
        required_indicator = " 🔴" if field.required else ""
        header = f"{field.label or 'Untitled'} ({field.type.value}){required_indicator}"

        with st.expander(header, expanded=True):
            col1, col2, col3, col4, col5 = st.columns([1, 1, 1, 1, 2])

            with col1:
                if st.button("🔼", key=f"move_up_{field.id}", disabled=index == 0, help="Move field up"):
                    FormBuilderView._perform(
                        lambda: store.move_field_up(store.find_field_index(field.id)), "moving field"
                    )

            with col2:
                if st.button("🔽", key=f"move_down_{field.id}", disabled=index == total - 1,
                             help="Move field down"):
                    FormBuilderView._perform(
                        lambda: store.move_field_down(store.find_field_index(field.id)), "moving field"
                    )

            with col3:
                if st.button("📋", key=f"duplicate_{field.id}", help="Duplicate this field"):
                    FormBuilderView._perform(
                        lambda: store.duplicate_field(field.id),
                        "duplicating field",
                        f"Duplicated field: {field.label}",
                        f"Field no longer exists: {field.label}"
                    )

            with col4:
                if st.button("🗑️", key=f"delete_{field.id}", help="Delete this field"):
                    FormBuilderView._perform(
                        lambda: store.delete_field(field.id),
                        "deleting field",
                        f"Deleted field: {field.label}"
                    )

            with col5:
                st.caption(f"Position: {index + 1} of {total}")

            # Earlier actions in this run may have moved or removed the field
            position = store.find_field_index(field.id)
            if position == -1:
                return

            new_label = st.text_input("Label", value=field.label, key=f"label_{field.id}")
            if new_label != field.label:
                store.set_field_label(position, new_label)

            new_required = st.checkbox("Required", value=field.required, key=f"required_{field.id}")
            if new_required != field.required:
                store.toggle_required(position)

            if field.type == FieldType.RATING_SCALE:
                FormBuilderView._render_question_editor(store, position, field)
            elif field.type == FieldType.MEDICATIONS:
                FormBuilderView._render_medication_editor(store, position, field)

    @staticmethod
    def _render_question_editor(store: SchemaStore, index: int, field: FormField) -> None:
        questions = field.questions or []
        st.markdown("**Rating questions**")

        for question in questions:
            col1, col2 = st.columns([5, 1])
            with col1:
                new_text = st.text_input(
                    f"Question {question.id}", value=question.text,
                    key=f"question_{field.id}_{question.id}"
                )
                if new_text != question.text:
                    store.set_question_text(index, question.id, new_text)
            with col2:
                if st.button("✖️", key=f"remove_question_{field.id}_{question.id}",
                             disabled=len(questions) <= 1, help="Remove question"):
                    FormBuilderView._perform(
                        lambda question_id=question.id: store.remove_question(index, question_id),
                        "removing question"
                    )

        if st.button("➕ Add Question", key=f"add_question_{field.id}"):
            FormBuilderView._perform(lambda: store.add_question(index), "adding question")

    @staticmethod
    def _render_medication_editor(store: SchemaStore, index: int, field: FormField) -> None:
        medications = field.medications or []
        st.markdown("**Medications**")

        for medication in medications:
            col1, col2 = st.columns([5, 1])
            with col1:
                new_name = st.text_input(
                    f"Medication {medication.id}", value=medication.name,
                    key=f"medication_{field.id}_{medication.id}",
                    placeholder="Medication name and dosage"
                )
                if new_name != medication.name:
                    store.set_medication_name(index, medication.id, new_name)
            with col2:
                if st.button("✖️", key=f"remove_medication_{field.id}_{medication.id}",
                             disabled=len(medications) <= 1, help="Remove medication"):
                    FormBuilderView._perform(
                        lambda medication_id=medication.id: store.remove_medication(index, medication_id),
                        "removing medication"
                    )

        if st.button("➕ Add Medication", key=f"add_medication_{field.id}"):
            FormBuilderView._perform(lambda: store.add_medication(index), "adding medication")

    @staticmethod
    def _render_outline(state: FormSnapshot) -> None:
        """Read-only outline of the current form."""
        st.subheader(f"👁️ {state.pages[state.active_page_index].name}")
        for position, field in enumerate(state.fields, start=1):
            marker = " *" if field.required else ""
            st.markdown(f"{position}. **{field.label}**{marker} ({field.type.value})")

    @staticmethod
    def _render_status() -> None:
        last_change = SessionManager.get_last_change()
        if last_change:
            summary = last_change['summary']
            st.caption(
                f"Last change: {last_change['operation']} "
                f"({summary['modified']} modified, {summary['added']} added, {summary['removed']} removed)"
            )

        info = SessionManager.get_session_info()
        st.caption(
            f"Session {info['session_id']} | revision {info['revision']} | "
            f"{info['field_count']} fields on {info['page_count']} pages"
        )
