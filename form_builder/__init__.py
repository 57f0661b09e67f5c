"""Form builder package: schema store, field catalog and Streamlit editor."""
