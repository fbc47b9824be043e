"""
Batch Analysis Page

Analyze several images in one go and optionally keep the results.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import streamlit as st

from insight.config import MAX_BATCH_FILES, load_config
from insight.core.analyzer import analyze_file
from insight.core.validation import UploadValidationError, validate_batch
from insight.report.export import default_filename, export_history_csv
from insight.storage.history import HistoryStore
from insight.storage.settings import SettingsStore

st.set_page_config(page_title="Batch Analysis", page_icon="📚", layout="wide")

st.title("📚 Batch Analysis")

st.markdown(f"Analyze up to **{MAX_BATCH_FILES}** images at once.")


@st.cache_resource
def get_stores():
    """Initialize database connections."""
    config = load_config()
    history = HistoryStore(config.db_path, max_items=config.max_history_items)
    settings = SettingsStore(config.db_path)
    return config, history, settings


config, history, settings_store = get_stores()
settings = settings_store.load()

uploaded_files = st.file_uploader(
    "Choose images",
    type=["jpg", "jpeg", "png", "webp", "heic"],
    accept_multiple_files=True,
)

save_results = st.checkbox("Save results to history", value=settings.enable_history,
                           disabled=not settings.enable_history)

if uploaded_files and st.button("Analyze", type="primary"):
    files = [(f.name, f.type, len(f.getvalue())) for f in uploaded_files]
    try:
        content_types = validate_batch(files)
    except UploadValidationError as e:
        st.error(str(e))
        st.stop()

    progress_bar = st.progress(0)
    status_text = st.empty()

    items = []
    rows = []
    for i, (uploaded_file, content_type) in enumerate(zip(uploaded_files, content_types)):
        status_text.text(f"Analyzing {uploaded_file.name}...")
        file_bytes = uploaded_file.getvalue()
        try:
            item = analyze_file(file_bytes, uploaded_file.name, content_type, settings, config)
            if save_results:
                history.save(item)
            items.append(item)
            result = item.analysis_result
            rows.append({
                "filename": uploaded_file.name,
                "overall": result.overall,
                "genai": result.categories["genai"],
                "face": result.categories["face_manipulation"],
                "camera": item.metadata.camera or "-",
                "status": "ok",
            })
        except Exception as e:
            rows.append({
                "filename": uploaded_file.name,
                "overall": None,
                "genai": None,
                "face": None,
                "camera": "-",
                "status": f"error: {e}",
            })

        progress_bar.progress((i + 1) / len(uploaded_files))

    status_text.text("Done!")

    successful = len(items)
    c1, c2, c3 = st.columns(3)
    c1.metric("Total", len(rows))
    c2.metric("Successful", successful)
    c3.metric("Failed", len(rows) - successful)

    st.dataframe(
        rows,
        column_config={
            "filename": "Filename",
            "overall": st.column_config.ProgressColumn(
                "AI Likelihood", format="%d%%", min_value=0, max_value=100,
            ),
            "genai": st.column_config.NumberColumn("GenAI", format="%d%%"),
            "face": st.column_config.NumberColumn("Face Manipulation", format="%d%%"),
            "camera": "Camera",
            "status": "Status",
        },
        hide_index=True,
        width="stretch",
    )

    if items:
        st.download_button(
            "Download results (CSV)",
            data=export_history_csv(items),
            file_name=default_filename("batch", "csv"),
            mime="text/csv",
        )

    # Show preview of analyzed images
    st.header("Preview")
    cols = st.columns(4)
    for i, uploaded_file in enumerate(uploaded_files):
        with cols[i % 4]:
            st.image(uploaded_file.getvalue(), caption=uploaded_file.name, width="stretch")
