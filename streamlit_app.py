"""
Main Streamlit application for the form builder.
Visual editor for multi-page data-collection forms.
"""

import streamlit as st
import logging

from form_builder.config_loader import load_config, get_config_value
from form_builder.logging_config import configure_logging

# Configure logging dynamically from config
try:
    configure_logging(load_config())
    logger = logging.getLogger(__name__)
except Exception as e:
    # Fallback to INFO if config reading fails
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)
    logger.error(f"Failed to configure logging from config: {e}, using INFO level")

page_title = get_config_value('ui', 'page_title', 'Form Builder')
logger.info(f"Starting app version: {get_config_value('app', 'version', 'Unknown')}")

st.set_page_config(
    page_title=page_title,
    page_icon="🧩",
    layout="wide",
    initial_sidebar_state="expanded"
)


def main():
    """Main application entry point."""
    from form_builder.builder_view import FormBuilderView
    from form_builder.error_handler import ErrorHandler, ErrorType
    from form_builder.session_manager import SessionManager
    from form_builder.store_exceptions import SeedDataError

    try:
        SessionManager.initialize()
    except SeedDataError as e:
        ErrorHandler.handle_error(e, "loading the starting form", ErrorType.CONFIGURATION)
        return

    FormBuilderView.render()


if __name__ == "__main__":
    main()
