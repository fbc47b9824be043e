"""
Image Insight - Streamlit App

Root page providing navigation and system status.
"""
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import streamlit as st
from insight.config import load_config
from insight.storage.history import HistoryStore
from insight.storage.settings import SettingsStore

st.set_page_config(
    page_title="Image Insight",
    page_icon="🔍",
    layout="wide"
)

st.title("Image Insight")

st.markdown("""
Estimate how likely an image is to be AI-generated or manipulated.

- **Analyze**: Score a single image, inspect its metadata, hashes and quality, and export a report
- **Batch**: Analyze up to 10 images at once
- **History**: Browse, annotate and export saved analyses
- **Compare**: Check whether two images are the same or visually similar
- **Settings**: Choose the detection provider and analysis options

Use the sidebar to navigate between pages.
""")

st.warning(
    "Results from the built-in analysis are heuristic estimates, not forensic evidence. "
    "Configure Sightengine in Settings for a real detection service."
)

config = load_config()

# Display system status
st.header("System Status")

col1, col2 = st.columns(2)

with col1:
    st.subheader("History Database")
    try:
        history = HistoryStore(config.db_path, max_items=config.max_history_items)
        st.metric("Saved Analyses", history.count())
        st.success(f"Connected: {config.db_path}")
    except Exception as e:
        st.error(f"Error connecting to database: {e}")

with col2:
    st.subheader("Detection Provider")
    try:
        settings = SettingsStore(config.db_path).load()
        st.metric("Provider", settings.api_provider)
        if settings.api_provider == "sightengine":
            if settings.sightengine_api_user or config.has_sightengine_credentials:
                st.success("Sightengine credentials configured")
            else:
                st.warning("Sightengine selected but no credentials found; using mock analysis")
        elif settings.api_provider != "mock":
            st.info(f"{settings.api_provider} has no client yet; using mock analysis")
    except Exception as e:
        st.error(f"Error loading settings: {e}")

# Configuration info
st.header("Configuration")
st.markdown("""
**Environment Variables:**
- `INSIGHT_DATA_DIR`: Directory for the SQLite database (default: `data`)
- `INSIGHT_DB_PATH`: Explicit database path
- `INSIGHT_CONFIG`: Optional YAML config file
- `SIGHTENGINE_API_USER` / `SIGHTENGINE_API_SECRET`: Sightengine credentials (optional)
""")
