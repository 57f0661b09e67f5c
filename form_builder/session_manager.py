"""
Session state management for the form builder.
Keeps one SchemaStore per Streamlit session plus the editor's UI state.
"""

import streamlit as st
from typing import Dict, Any, List, Optional
from datetime import datetime
import logging

from form_builder.config_loader import load_config
from form_builder.diff_utils import list_changed_paths
from form_builder.field_catalog import FIELD_CATEGORIES
from form_builder.schema_store import SchemaStore, StoreChange

logger = logging.getLogger(__name__)

STORE_KEY = 'form_store'
LAST_CHANGE_KEY = 'last_change'
UNSUBSCRIBE_KEY = 'store_unsubscribe'


class SessionManager:
    """Manages Streamlit session state for the form builder."""

    @staticmethod
    def initialize(config: Optional[Dict[str, Any]] = None):
        """
        Initialize session state with default values.
        Safe to call on every rerun: existing keys are left untouched.
        """
        defaults = {
            'editing_page_id': None,
            'expanded_categories': [True] * len(FIELD_CATEGORIES),
            'preview_mode': False,
            LAST_CHANGE_KEY: None,
            'session_id': None
        }

        for key, default_value in defaults.items():
            if key not in st.session_state:
                st.session_state[key] = default_value

        if STORE_KEY not in st.session_state:
            SessionManager._install_store(SessionManager._create_store(config))

        if not st.session_state.session_id:
            st.session_state.session_id = f"session_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
            logger.info(f"Session initialized: {st.session_state.session_id}")

    @staticmethod
    def _create_store(config: Optional[Dict[str, Any]] = None) -> SchemaStore:
        if config is None:
            config = load_config()
        return SchemaStore.from_config(config)

    @staticmethod
    def _install_store(store: SchemaStore) -> None:
        previous_unsubscribe = st.session_state.get(UNSUBSCRIBE_KEY)
        if previous_unsubscribe is not None:
            previous_unsubscribe()

        st.session_state[UNSUBSCRIBE_KEY] = store.subscribe(SessionManager._record_change)
        st.session_state[STORE_KEY] = store

    @staticmethod
    def _record_change(change: StoreChange) -> None:
        """Store listener: remember the latest change for the status line."""
        st.session_state[LAST_CHANGE_KEY] = {
            'operation': change.operation,
            'summary': change.summary,
            'paths': list_changed_paths(change.diff)
        }

    @staticmethod
    def get_store() -> SchemaStore:
        """Get the session's store, creating it on first use."""
        if STORE_KEY not in st.session_state:
            SessionManager.initialize()
        return st.session_state[STORE_KEY]

    @staticmethod
    def reset_store(config: Optional[Dict[str, Any]] = None) -> SchemaStore:
        """Discard the current form and start again from the configured seed."""
        logger.info(f"Resetting form for session {SessionManager.get_session_id()}")
        store = SessionManager._create_store(config)
        SessionManager._install_store(store)
        st.session_state.editing_page_id = None
        st.session_state[LAST_CHANGE_KEY] = None
        return store

    @staticmethod
    def get_last_change() -> Optional[Dict[str, Any]]:
        return st.session_state.get(LAST_CHANGE_KEY)

    @staticmethod
    def get_editing_page() -> Optional[int]:
        """Id of the page whose name is being edited, if any."""
        return st.session_state.get('editing_page_id')

    @staticmethod
    def set_editing_page(page_id: Optional[int]):
        """Enter (or with None, leave) page-name edit mode."""
        st.session_state.editing_page_id = page_id

    @staticmethod
    def get_expanded_categories() -> List[bool]:
        expanded = st.session_state.get('expanded_categories')
        if not expanded or len(expanded) != len(FIELD_CATEGORIES):
            expanded = [True] * len(FIELD_CATEGORIES)
            st.session_state.expanded_categories = expanded
        return expanded

    @staticmethod
    def toggle_category(index: int):
        """Collapse or expand one picker category."""
        expanded = list(SessionManager.get_expanded_categories())
        if 0 <= index < len(expanded):
            expanded[index] = not expanded[index]
            st.session_state.expanded_categories = expanded

    @staticmethod
    def is_preview_mode() -> bool:
        return st.session_state.get('preview_mode', False)

    @staticmethod
    def toggle_preview_mode():
        st.session_state.preview_mode = not SessionManager.is_preview_mode()

    @staticmethod
    def get_session_id() -> str:
        """Get the session ID."""
        return st.session_state.get('session_id') or 'unknown'

    @staticmethod
    def get_session_info() -> Dict[str, Any]:
        """Get session information for debugging."""
        store = SessionManager.get_store()
        return {
            'session_id': SessionManager.get_session_id(),
            'revision': store.revision,
            'page_count': len(store.pages),
            'field_count': len(store.fields),
            'active_page_index': store.active_page_index,
            'editing_page_id': SessionManager.get_editing_page(),
            'preview_mode': SessionManager.is_preview_mode()
        }
