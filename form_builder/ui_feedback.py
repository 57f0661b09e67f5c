"""
UI feedback utilities for the form builder.
Provides toast notifications for editor actions.
"""

import streamlit as st
import logging

logger = logging.getLogger(__name__)


class Notify:
    """
    Toast-first notification helper.
    Uses st.toast when available and falls back to inline messages otherwise.

    Usage:
    Notify.success("Field added")
    """

    _ICONS = {
        'success': '✅',
        'info': 'ℹ️',
        'warning': '⚠️'
    }

    @staticmethod
    def _display_notification(message: str, notification_type: str = 'info') -> None:
        """Internal method to display notification based on type."""
        icon = Notify._ICONS.get(notification_type, 'ℹ️')

        try:
            if hasattr(st, 'toast'):
                st.toast(message, icon=icon)
                return
        except Exception as e:
            logger.error(f"Error using st.toast: {e}", exc_info=True)

        full_message = f"{icon} {message}"
        if notification_type == 'success':
            st.success(full_message)
        elif notification_type == 'warning':
            st.warning(full_message)
        else:
            st.info(full_message)

    @staticmethod
    def success(message: str) -> None:
        """Show success notification."""
        Notify._display_notification(message, 'success')

    @staticmethod
    def warn(message: str) -> None:
        """Show warning notification."""
        Notify._display_notification(message, 'warning')
