"""
Analyze Image Page

Upload one image, score it and inspect its metadata, hashes and quality.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import streamlit as st
import streamlit.components.v1 as components

from insight.config import MAX_FILE_SIZE, load_config
from insight.core.analyzer import analyze_file
from insight.core.characteristics import analyze_characteristics
from insight.core.image_utils import (
    ImageDecodeError,
    color_histogram,
    extract_dominant_colors,
    get_image_stats,
    quality_metrics,
)
from insight.core.models import CATEGORY_LABELS
from insight.core.validation import UploadValidationError, validate_upload
from insight.report.charts import FAMILY_TITLES, chart_html
from insight.report.export import default_filename, export_csv, export_json
from insight.report.pdf import generate_report
from insight.storage.history import HistoryStore
from insight.storage.settings import SettingsStore

st.set_page_config(page_title="Analyze Image", page_icon="🔍", layout="wide")

st.title("🔍 Analyze Image")


@st.cache_resource
def get_stores():
    """Initialize database connections."""
    config = load_config()
    history = HistoryStore(config.db_path, max_items=config.max_history_items)
    settings = SettingsStore(config.db_path)
    return config, history, settings


config, history, settings_store = get_stores()
settings = settings_store.load()

st.sidebar.header("Analysis")
st.sidebar.write(f"Provider: **{settings.api_provider}**")
st.sidebar.caption(f"Max upload size: {MAX_FILE_SIZE // (1024 * 1024)}MB")

uploaded_file = st.file_uploader(
    "Choose an image",
    type=["jpg", "jpeg", "png", "webp", "heic"],
)

if uploaded_file is None:
    st.info("Upload a JPEG, PNG, WEBP or HEIC image to start.")
    st.stop()

file_bytes = uploaded_file.getvalue()
try:
    content_type = validate_upload(uploaded_file.name, uploaded_file.type, len(file_bytes))
except UploadValidationError as e:
    st.error(str(e))
    st.stop()

# Re-run the analysis only when a different file is uploaded
cache_key = (uploaded_file.name, len(file_bytes), uploaded_file.file_id)
if st.session_state.get("analysis_key") != cache_key:
    with st.spinner("Analyzing image..."):
        try:
            item = analyze_file(file_bytes, uploaded_file.name, content_type, settings, config)
        except Exception as e:
            st.error(f"Analysis failed: {e}")
            st.stop()
    st.session_state["analysis_key"] = cache_key
    st.session_state["analysis_item"] = item
    st.session_state["analysis_saved"] = None

item = st.session_state["analysis_item"]
result = item.analysis_result

col_image, col_score = st.columns([1, 2])

with col_image:
    st.image(file_bytes, caption=uploaded_file.name, width="stretch")

with col_score:
    st.metric("AI Likelihood", f"{result.overall}%")
    st.progress(result.overall / 100)
    if result.provider == "mock":
        st.caption("Heuristic estimate (mock analysis)")
    else:
        st.caption(f"Provider: {result.provider}")

    st.subheader("Category Breakdown")
    st.dataframe(
        [
            {"category": label, "score": result.categories.get(name, 0)}
            for name, label in CATEGORY_LABELS.items()
        ],
        column_config={
            "category": "Category",
            "score": st.column_config.ProgressColumn(
                "Likelihood", format="%d%%", min_value=0, max_value=100,
            ),
        },
        hide_index=True,
        width="stretch",
    )

# Charts
tab_charts, tab_models, tab_meta, tab_tech, tab_colors = st.tabs(
    ["Charts", "Models", "Metadata & Hashes", "Technical Details", "Colors & Quality"]
)

with tab_charts:
    components.html(chart_html(result, uploaded_file.name), height=900, scrolling=True)

with tab_models:
    for family, scores in result.families().items():
        detected = {name: value for name, value in scores.items() if value > 0}
        if not detected:
            continue
        st.subheader(FAMILY_TITLES[family])
        st.dataframe(
            sorted(
                ({"model": name, "score": value} for name, value in detected.items()),
                key=lambda r: r["score"], reverse=True,
            ),
            column_config={
                "model": "Model",
                "score": st.column_config.ProgressColumn(
                    "Likelihood", format="%d%%", min_value=0, max_value=100,
                ),
            },
            hide_index=True,
            width="stretch",
        )

with tab_meta:
    col_meta, col_hash = st.columns(2)
    with col_meta:
        st.subheader("EXIF Metadata")
        if item.metadata.is_empty():
            st.info("No EXIF metadata found")
        else:
            st.json(item.metadata.to_dict())
    with col_hash:
        st.subheader("Hashes")
        if item.hashes:
            st.text(f"MD5:        {item.hashes.md5}")
            st.text(f"SHA256:     {item.hashes.sha256}")
            if item.hashes.perceptual:
                st.text(f"Perceptual: {item.hashes.perceptual}")
        else:
            st.info("Hash calculation is disabled in Settings")

with tab_tech:
    details = result.technical_details
    if not settings.show_technical_details:
        st.info("Technical details are hidden in Settings")
    elif details is None:
        st.info("No technical details available for this provider")
    else:
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Dimensions", f"{details.width} x {details.height}")
        c2.metric("Entropy", f"{details.entropy:.2f}")
        c3.metric("Noise Level", f"{details.noise_level:.2f}")
        c4.metric("Sharpness", f"{details.sharpness:.2f}")

        if settings.technical_detail_level in ("intermediate", "advanced"):
            c1, c2, c3, c4 = st.columns(4)
            c1.metric("Edge Density", f"{details.edge_density:.2f}")
            c2.metric("Color Complexity", f"{details.color_complexity:.2f}")
            c3.metric("Compression Ratio", f"{details.compression_ratio:.2f}")
            c4.metric("Color Depth", f"{details.color_depth} bit")

        if settings.technical_detail_level == "advanced":
            st.subheader("Artifacts")
            st.json(details.to_dict()["artifacts"])
            if details.metadata_anomalies:
                st.subheader("Metadata Anomalies")
                for anomaly in details.metadata_anomalies:
                    st.write(f"- {anomaly}")
            if details.processing_history:
                st.subheader("Processing History")
                for step in details.processing_history:
                    st.write(f"- {step}")

with tab_colors:
    try:
        stats = get_image_stats(file_bytes, content_type)
        quality = quality_metrics(file_bytes)
        colors = extract_dominant_colors(file_bytes, 10)
        histogram = color_histogram(file_bytes)
        chars = analyze_characteristics(file_bytes)
    except ImageDecodeError as e:
        st.warning(f"Color analysis unavailable: {e}")
    else:
        c1, c2, c3 = st.columns(3)
        c1.metric("Quality", f"{quality['quality_score']}/100 ({quality['quality_label']})")
        c2.metric("Bytes per Pixel", f"{quality['bytes_per_pixel']:.2f}")
        c3.metric("Aspect Ratio", f"{stats['aspect_ratio']:.2f}")
        for detail in quality["artifacts"]["details"]:
            st.write(f"- {detail}")

        st.subheader("Dominant Colors")
        swatches = "".join(
            f"<div style='display:inline-block;width:48px;height:48px;margin:2px;"
            f"background:{c};border:1px solid #ccc' title='{c}'></div>"
            for c in colors
        )
        st.markdown(swatches, unsafe_allow_html=True)

        st.subheader("Color Histogram")
        st.line_chart(histogram, color=["#ff0000", "#00aa00", "#0000ff"])

        st.caption(
            f"Faces likely: {'yes' if chars.has_faces else 'no'} | "
            f"Text likely: {'yes' if chars.has_text else 'no'}"
        )

# Export and save
st.header("Export")
col_json, col_csv, col_pdf, col_save = st.columns(4)

with col_json:
    st.download_button(
        "Download JSON",
        data=export_json(result, item.metadata, item.hashes),
        file_name=default_filename("analysis", "json"),
        mime="application/json",
    )
with col_csv:
    st.download_button(
        "Download CSV",
        data=export_csv(result, item.metadata),
        file_name=default_filename("analysis", "csv"),
        mime="text/csv",
    )
with col_pdf:
    st.download_button(
        "Download PDF Report",
        data=generate_report(result, item.metadata, item.hashes, uploaded_file.name),
        file_name=default_filename("report", "pdf"),
        mime="application/pdf",
    )
with col_save:
    if not settings.enable_history:
        st.caption("History is disabled in Settings")
    elif st.session_state.get("analysis_saved"):
        st.success(f"Saved: {st.session_state['analysis_saved']}")
    else:
        notes = st.text_input("Notes (optional)")
        if st.button("Save to History"):
            item.notes = notes or None
            st.session_state["analysis_saved"] = history.save(item)
            st.rerun()
