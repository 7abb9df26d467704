from __future__ import annotations

from pathlib import Path
from typing import Optional

import streamlit as st

from structnote_browser.structnote_data import ALL_TYPES, ExtractionSession, run_extraction
from structnote_common.config import load_settings
from structnote_common.errors import ConfigError, StructNoteError

SESSION_KEY = "extraction_session"


def render_status(message: str, *, error: bool = False) -> None:
    """Status area: progress text, nothing on success, or the failure description."""

    if not message:
        return
    if error:
        st.error(message)
    else:
        st.info(message)


def run_preview(uploads) -> None:
    """Run a fresh extraction and replace any previous session."""

    st.session_state.pop(SESSION_KEY, None)
    st.session_state.pop("product_type_filter", None)
    try:
        settings = load_settings()
    except ConfigError as exc:
        render_status(f"Config error: {exc}", error=True)
        return

    xml_count = sum(1 for upload in uploads if upload.name.endswith(".xml"))
    with st.spinner(f"Processing {xml_count} file(s)..."):
        try:
            session = run_extraction(list(uploads), settings)
        except StructNoteError as exc:
            render_status(str(exc), error=True)
            return
    st.session_state[SESSION_KEY] = session


def render_filter(session: ExtractionSession) -> Optional[str]:
    options = session.filter_options()
    labels = dict(options)
    selected = st.selectbox(
        "Product type",
        options=[value for value, _ in options],
        format_func=lambda value: labels.get(value, value),
        key="product_type_filter",
    )
    return None if selected == ALL_TYPES else selected


def render_session(session: ExtractionSession) -> None:
    if session.is_empty:
        render_status(session.status_message)
        return

    product_type = render_filter(session)
    frame = session.preview_frame(product_type)
    st.markdown(f"### Extracted products ({frame.height} of {len(session.records)} rows)")
    st.dataframe(frame.to_pandas(), use_container_width=True, hide_index=True)

    if frame.is_empty():
        render_status("There is no data to export.")
        return

    try:
        payload = session.export_bytes(product_type)
    except StructNoteError as exc:
        render_status(str(exc), error=True)
        return
    st.download_button(
        label="Export Excel",
        data=payload,
        file_name=Path(session.settings.output_filename).name,
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )


def main() -> None:
    st.set_page_config(page_title="Structured Note XML Extractor", layout="wide")
    st.title("Structured Note XML Extractor")
    st.caption("Preview term sheet / pricing supplement XML data and export it to Excel, grouped by product type.")

    uploads = st.file_uploader("XML files", type=["xml"], accept_multiple_files=True, key="xml_upload")
    if st.button("Preview data"):
        if not uploads:
            render_status("Please select at least one XML file.")
            st.session_state.pop(SESSION_KEY, None)
        else:
            run_preview(uploads)

    session: Optional[ExtractionSession] = st.session_state.get(SESSION_KEY)
    if session is not None:
        render_session(session)


if __name__ == "__main__":
    main()
