"""Structured-note browser: extraction session and Streamlit preview."""
