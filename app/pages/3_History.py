"""
History Page

Browse, annotate, export and remove saved analyses.
"""
import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import streamlit as st

from insight.config import load_config
from insight.report.export import default_filename, export_history_csv
from insight.report.pdf import generate_report
from insight.storage.history import HistoryStore

st.set_page_config(page_title="History", page_icon="🕘", layout="wide")

st.title("🕘 Analysis History")


@st.cache_resource
def get_history():
    """Initialize database connection."""
    config = load_config()
    return HistoryStore(config.db_path, max_items=config.max_history_items)


history = get_history()
items = history.list_all()

if not items:
    st.info("No saved analyses yet. Analyze an image and save it to see it here.")
    st.stop()

st.markdown(f"**{len(items)}** saved analys{'is' if len(items) == 1 else 'es'} "
            f"(newest first, at most {history.max_items} kept)")

# Export
col_json, col_csv, col_clear = st.columns(3)
with col_json:
    st.download_button(
        "Export JSON",
        data=history.export_json(),
        file_name=default_filename("history", "json"),
        mime="application/json",
    )
with col_csv:
    st.download_button(
        "Export CSV",
        data=export_history_csv(items),
        file_name=default_filename("history", "csv"),
        mime="text/csv",
    )
with col_clear:
    confirm = st.checkbox("Confirm clear")
    if st.button("Clear History", disabled=not confirm):
        deleted = history.clear()
        st.success(f"Deleted {deleted} entr{'y' if deleted == 1 else 'ies'}")
        st.rerun()

query = st.text_input("Filter by file name", "")
if query:
    items = [item for item in items if query.lower() in item.file_name.lower()]

for item in items:
    result = item.analysis_result
    date = datetime.fromtimestamp(item.timestamp / 1000).strftime("%Y-%m-%d %H:%M:%S")
    with st.expander(f"{item.file_name} | {result.overall}% | {date}"):
        col_preview, col_info = st.columns([1, 3])
        with col_preview:
            if item.preview:
                st.image(item.preview, width=160)
        with col_info:
            st.write(f"**ID:** `{item.id}`")
            st.write(f"**Size:** {item.file_size} bytes | **Provider:** {result.provider}")
            st.write(
                f"**GenAI:** {result.categories['genai']}% | "
                f"**Face Manipulation:** {result.categories['face_manipulation']}%"
            )
            if item.metadata.camera:
                st.write(f"**Camera:** {item.metadata.camera}")
            if item.hashes:
                st.code(f"SHA256 {item.hashes.sha256}", language=None)

        notes = st.text_area("Notes", value=item.notes or "", key=f"notes-{item.id}")
        col_save, col_pdf, col_delete = st.columns(3)
        with col_save:
            if st.button("Save Notes", key=f"save-{item.id}"):
                history.update_notes(item.id, notes)
                st.success("Notes saved")
        with col_pdf:
            st.download_button(
                "PDF Report",
                data=generate_report(result, item.metadata, item.hashes, item.file_name),
                file_name=default_filename("report", "pdf"),
                mime="application/pdf",
                key=f"pdf-{item.id}",
            )
        with col_delete:
            if st.button("Delete", key=f"delete-{item.id}"):
                history.delete(item.id)
                st.rerun()
