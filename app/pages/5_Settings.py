"""
Settings Page

Detection provider, analysis options and display preferences.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import streamlit as st

from insight.config import load_config
from insight.storage.settings import API_PROVIDERS, DETAIL_LEVELS, THEMES, SettingsStore

st.set_page_config(page_title="Settings", page_icon="⚙️", layout="wide")

st.title("⚙️ Settings")


@st.cache_resource
def get_settings_store():
    """Initialize database connection."""
    config = load_config()
    return config, SettingsStore(config.db_path)


config, store = get_settings_store()
current = store.load()

with st.form("settings"):
    st.header("Detection Provider")
    api_provider = st.selectbox(
        "Provider",
        options=API_PROVIDERS,
        index=API_PROVIDERS.index(current.api_provider),
        help="mock runs the built-in heuristic analysis. huggingface and hiveai fall back to it.",
    )
    sightengine_api_user = st.text_input("Sightengine API user", value=current.sightengine_api_user)
    sightengine_api_secret = st.text_input(
        "Sightengine API secret", value=current.sightengine_api_secret, type="password",
    )
    if config.has_sightengine_credentials:
        st.caption("Sightengine credentials are also set in the environment; values here take precedence.")
    huggingface_api_key = st.text_input(
        "Hugging Face API key", value=current.huggingface_api_key, type="password",
    )
    huggingface_model = st.text_input("Hugging Face model", value=current.huggingface_model)
    hiveai_api_key = st.text_input("Hive AI API key", value=current.hiveai_api_key, type="password")

    st.header("Analysis")
    auto_optimize = st.checkbox("Downscale large images before analysis", value=current.auto_optimize)
    max_image_size = st.number_input(
        "Maximum image dimension (px)", min_value=1, max_value=16384,
        value=current.max_image_size, step=256,
    )
    default_quality = st.slider(
        "Re-encoding quality", min_value=0.1, max_value=1.0,
        value=float(current.default_quality), step=0.05,
    )
    enable_hashes = st.checkbox("Compute image hashes", value=current.enable_hashes)
    enable_history = st.checkbox("Allow saving to history", value=current.enable_history)

    st.header("Display")
    theme = st.selectbox("Theme", options=THEMES, index=THEMES.index(current.theme))
    show_technical_details = st.checkbox(
        "Show technical details", value=current.show_technical_details,
    )
    technical_detail_level = st.selectbox(
        "Technical detail level",
        options=DETAIL_LEVELS,
        index=DETAIL_LEVELS.index(current.technical_detail_level),
    )

    submitted = st.form_submit_button("Save Settings", type="primary")

if submitted:
    try:
        store.update({
            "api_provider": api_provider,
            "sightengine_api_user": sightengine_api_user,
            "sightengine_api_secret": sightengine_api_secret,
            "huggingface_api_key": huggingface_api_key,
            "huggingface_model": huggingface_model,
            "hiveai_api_key": hiveai_api_key,
            "auto_optimize": auto_optimize,
            "max_image_size": int(max_image_size),
            "default_quality": float(default_quality),
            "enable_hashes": enable_hashes,
            "enable_history": enable_history,
            "theme": theme,
            "show_technical_details": show_technical_details,
            "technical_detail_level": technical_detail_level,
        })
        st.success("Settings saved")
    except ValueError as e:
        st.error(f"Invalid settings: {e}")

st.divider()
if st.button("Reset to Defaults"):
    store.reset()
    st.success("Settings reset")
    st.rerun()

with st.expander("Current settings"):
    st.json(store.load().public_dict())
