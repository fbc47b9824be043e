"""
Compare Images Page

Check whether two images are byte-identical or visually similar.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import streamlit as st

from insight.core.hashing import compute_hashes, hamming_distance, similarity
from insight.core.validation import UploadValidationError, validate_upload

st.set_page_config(page_title="Compare Images", page_icon="⚖️", layout="wide")

st.title("⚖️ Compare Images")

st.markdown("""
Compares two images by cryptographic hash (exact copies) and perceptual hash
(visually similar images, e.g. re-encoded or resized copies).
""")

col_a, col_b = st.columns(2)
with col_a:
    first = st.file_uploader("First image", type=["jpg", "jpeg", "png", "webp", "heic"], key="first")
with col_b:
    second = st.file_uploader("Second image", type=["jpg", "jpeg", "png", "webp", "heic"], key="second")

if not first or not second:
    st.info("Upload two images to compare them.")
    st.stop()

hashes = []
for uploaded_file, column in ((first, col_a), (second, col_b)):
    file_bytes = uploaded_file.getvalue()
    try:
        validate_upload(uploaded_file.name, uploaded_file.type, len(file_bytes))
    except UploadValidationError as e:
        st.error(f"{uploaded_file.name}: {e}")
        st.stop()
    hashes.append(compute_hashes(file_bytes))
    with column:
        st.image(file_bytes, caption=uploaded_file.name, width="stretch")

hashes_a, hashes_b = hashes

st.header("Result")
if hashes_a.sha256 == hashes_b.sha256:
    st.success("The files are identical (same SHA256)")
elif hashes_a.perceptual and hashes_b.perceptual:
    distance = hamming_distance(hashes_a.perceptual, hashes_b.perceptual)
    score = similarity(hashes_a.perceptual, hashes_b.perceptual)
    c1, c2 = st.columns(2)
    c1.metric("Visual Similarity", f"{score:.1f}%")
    c2.metric("Hamming Distance", f"{distance} / 64 bits")
    if distance <= 5:
        st.info("Visually near-identical images")
    elif distance <= 10:
        st.info("Visually similar images")
    else:
        st.warning("Images look different")
else:
    st.warning("Perceptual hash unavailable for at least one image")

st.dataframe(
    [
        {"hash": "MD5", "first": hashes_a.md5, "second": hashes_b.md5},
        {"hash": "SHA256", "first": hashes_a.sha256, "second": hashes_b.sha256},
        {"hash": "Perceptual", "first": hashes_a.perceptual or "-", "second": hashes_b.perceptual or "-"},
    ],
    column_config={"hash": "Hash", "first": "First", "second": "Second"},
    hide_index=True,
    width="stretch",
)
