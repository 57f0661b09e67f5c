from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

import form_builder.builder_view as builder_view
import form_builder.error_handler as error_handler
import form_builder.session_manager as session_manager
import form_builder.ui_feedback as ui_feedback
from form_builder.config_loader import get_default_config
from form_builder.models import FieldType
from form_builder.schema_store import SchemaStore
from form_builder.session_manager import SessionManager
from form_builder.store_exceptions import InvalidIndexError


class _DummyContext:
    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class _SessionState:
    def __init__(self, initial=None):
        super().__setattr__("_data", dict(initial or {}))

    def get(self, key, default=None):
        return self._data.get(key, default)

    def __getitem__(self, key):
        return self._data[key]

    def __setitem__(self, key, value):
        self._data[key] = value

    def __contains__(self, key):
        return key in self._data

    def __getattr__(self, name):
        if name in self._data:
            return self._data[name]
        raise AttributeError(name)

    def __setattr__(self, name, value):
        if name == "_data":
            super().__setattr__(name, value)
        else:
            self._data[name] = value


def _mock_st(clicked=(), text_values=None, checkbox_values=None):
    text_values = text_values or {}
    checkbox_values = checkbox_values or {}

    def _columns(spec, **_kwargs):
        count = spec if isinstance(spec, int) else len(spec)
        return tuple(_DummyContext() for _ in range(count))

    def _button(label, key=None, **_kwargs):
        return key in clicked

    def _text_input(label, value="", key=None, **_kwargs):
        return text_values.get(key, value)

    def _checkbox(label, value=False, key=None, **_kwargs):
        return checkbox_values.get(key, value)

    return SimpleNamespace(
        session_state=_SessionState(),
        sidebar=_DummyContext(),
        header=MagicMock(),
        subheader=MagicMock(),
        divider=MagicMock(),
        caption=MagicMock(),
        markdown=MagicMock(),
        info=MagicMock(),
        error=MagicMock(),
        success=MagicMock(),
        toast=MagicMock(),
        rerun=MagicMock(),
        columns=MagicMock(side_effect=_columns),
        expander=MagicMock(return_value=_DummyContext()),
        button=MagicMock(side_effect=_button),
        text_input=MagicMock(side_effect=_text_input),
        checkbox=MagicMock(side_effect=_checkbox),
    )


@pytest.fixture
def render(monkeypatch):
    """Render the view against a fake streamlit and return (st, store)."""
    def _render(**widget_state):
        st = _mock_st(**widget_state)
        for module in (builder_view, session_manager, ui_feedback, error_handler):
            monkeypatch.setattr(module, "st", st)
        SessionManager.initialize(get_default_config())
        store = SessionManager.get_store()
        builder_view.FormBuilderView.render()
        return st, store

    return _render


def test_render_without_interaction(render):
    st, store = render()

    assert st.expander.call_count == 4
    st.rerun.assert_not_called()
    assert store.revision == 0
    st.caption.assert_any_call("Page 1 of 3")


def test_add_field_from_picker(render):
    st, store = render(clicked={"add_field_rating-scale"})

    added = store.fields[-1]
    assert added.type == FieldType.RATING_SCALE
    assert len(added.questions) == 3
    st.toast.assert_called_once()
    st.rerun.assert_called_once()


def test_duplicate_field_button(render):
    st, store = render(clicked={"duplicate_2"})

    assert [field.id for field in store.fields] == [1, 2, 5, 3, 4]
    assert store.fields[2].label == "Email Address (Copy)"


def test_move_and_delete_buttons(render):
    st, store = render(clicked={"move_down_1", "delete_4"})

    assert [field.id for field in store.fields] == [2, 1, 3]


def test_label_and_required_edits(render):
    st, store = render(text_values={"label_1": "Legal name"}, checkbox_values={"required_2": False})

    assert store.fields[0].label == "Legal name"
    assert store.fields[1].required is False
    st.rerun.assert_not_called()


def test_page_buttons(render):
    st, store = render(clicked={"add_page_btn"})

    assert len(store.pages) == 4
    assert store.active_page_index == 3


def test_page_tab_selects_page(render):
    st, store = render(clicked={"page_tab_3"})

    assert store.active_page_index == 2


def test_next_page_navigation(render):
    st, store = render(clicked={"next_page_btn"})

    assert store.active_page_index == 1


def test_rename_page_in_edit_mode(monkeypatch, render):
    monkeypatch.setattr(SessionManager, "get_editing_page", staticmethod(lambda: 2))

    st, store = render(text_values={"page_name_2": "History"})

    assert store.pages[1].name == "History"


def test_failed_action_shows_error_without_rerun(render):
    with patch.object(SchemaStore, "delete_page", side_effect=InvalidIndexError('page', 0, 0)):
        st, store = render(clicked={"delete_page_btn"})

    st.error.assert_called_once()
    st.rerun.assert_not_called()
    assert len(store.pages) == 3


def test_question_editor(render, monkeypatch):
    st = _mock_st(
        clicked={"add_question_5", "remove_question_5_1"},
        text_values={"question_5_2": "Rate your sleep"},
    )
    for module in (builder_view, session_manager, ui_feedback, error_handler):
        monkeypatch.setattr(module, "st", st)
    SessionManager.initialize(get_default_config())
    store = SessionManager.get_store()
    store.add_field("rating-scale")

    builder_view.FormBuilderView.render()

    questions = store.fields[-1].questions
    assert [q.id for q in questions] == [2, 3, 4]
    assert questions[0].text == "Rate your sleep"


def test_medication_editor(render, monkeypatch):
    st = _mock_st(clicked={"add_medication_5"}, text_values={"medication_5_1": "Lisinopril 10mg"})
    for module in (builder_view, session_manager, ui_feedback, error_handler):
        monkeypatch.setattr(module, "st", st)
    SessionManager.initialize(get_default_config())
    store = SessionManager.get_store()
    store.add_field("medications")

    builder_view.FormBuilderView.render()

    medications = store.fields[-1].medications
    assert [(m.id, m.name) for m in medications] == [(1, "Lisinopril 10mg"), (2, "")]


def test_preview_mode_renders_outline(monkeypatch, render):
    monkeypatch.setattr(SessionManager, "is_preview_mode", staticmethod(lambda: True))

    st, store = render()

    st.expander.assert_not_called()
    st.markdown.assert_any_call("1. **Full Name** * (patient-name)")


def test_collapsed_category_hides_entries(monkeypatch, render):
    monkeypatch.setattr(SessionManager, "get_expanded_categories", staticmethod(lambda: [False] * 6))

    st, store = render()

    button_keys = [call.kwargs.get("key") for call in st.button.call_args_list]
    assert "category_0" in button_keys
    assert not any(key.startswith("add_field_") for key in button_keys if key)


def test_status_line_reports_session_info(render):
    st, store = render()

    captions = [call.args[0] for call in st.caption.call_args_list]
    assert any(caption.endswith("revision 0 | 4 fields on 3 pages") for caption in captions)


def test_actions_use_current_field_position(render):
    """A move after a delete in the same run targets the field, not its old slot."""
    st, store = render(clicked={"delete_1", "move_up_3"})

    assert [field.id for field in store.fields] == [3, 2, 4]


def test_duplicate_of_missing_field_warns(render):
    with patch.object(SchemaStore, "duplicate_field", return_value=None):
        st, store = render(clicked={"duplicate_2"})

    st.toast.assert_called_once_with("Field no longer exists: Email Address", icon='⚠️')
    st.rerun.assert_called_once()


def test_reset_button_restores_seed(monkeypatch):
    st = _mock_st(clicked={"reset_form_btn"})
    for module in (builder_view, session_manager, ui_feedback, error_handler):
        monkeypatch.setattr(module, "st", st)
    monkeypatch.setattr(session_manager, "load_config", get_default_config)
    SessionManager.initialize(get_default_config())
    old_store = SessionManager.get_store()
    old_store.add_page()

    builder_view.FormBuilderView.render()

    new_store = SessionManager.get_store()
    assert new_store is not old_store
    assert len(new_store.pages) == 3
    assert SessionManager.get_last_change() is None
    st.toast.assert_called_once_with("Form reset", icon='✅')
