"""Image decoding, resizing and pixel statistics used by the presentation layer."""

import base64
import io
from collections import Counter
from typing import Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

# Default maximum dimension (width or height) for optimized uploads
DEFAULT_MAX_DIMENSION = 2048

# Thumbnails stored alongside history entries
PREVIEW_MAX_DIMENSION = 160

# Color analysis works on a reduced copy of the image
ANALYSIS_MAX_DIMENSION = 200

# Larger images are refused before their pixels are decoded
MAX_IMAGE_PIXELS = 64_000_000


class ImageDecodeError(ValueError):
    """Raised when bytes cannot be decoded as an image."""
    pass


def open_image(image_bytes: bytes) -> Image.Image:
    """Decode image bytes with Pillow (lazy, original mode)."""
    try:
        img = Image.open(io.BytesIO(image_bytes))
        width, height = img.size
        if width * height > MAX_IMAGE_PIXELS:
            raise ImageDecodeError(
                f"Image too large: {width}x{height} exceeds {MAX_IMAGE_PIXELS} pixels"
            )
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
        raise ImageDecodeError(f"Cannot decode image: {e}") from e
    return img


def load_rgb(image_bytes: bytes) -> Image.Image:
    """Decode image bytes and convert to RGB."""
    img = open_image(image_bytes)
    if img.mode != "RGB":
        img = img.convert("RGB")
    return img


def downscale_image(
    img: Image.Image,
    max_width: int = DEFAULT_MAX_DIMENSION,
    max_height: Optional[int] = None,
) -> Image.Image:
    """Downscale image if it exceeds the maximum dimensions.

    Maintains aspect ratio. Only downscales; never upscales images.
    """
    if max_height is None:
        max_height = max_width
    width, height = img.size

    if width <= max_width and height <= max_height:
        return img

    scale = min(max_width / width, max_height / height)
    new_width = max(1, int(width * scale))
    new_height = max(1, int(height * scale))

    return img.resize((new_width, new_height), Image.Resampling.LANCZOS)


def clamp_resize(img: Image.Image, max_dimension: int = ANALYSIS_MAX_DIMENSION) -> Image.Image:
    """Clamp each side independently to max_dimension (aspect is not kept)."""
    width, height = img.size
    size = (min(width, max_dimension), min(height, max_dimension))
    if size == img.size:
        return img
    return img.resize(size, Image.Resampling.BILINEAR)


def format_image_data_url(png_base64: str) -> str:
    """Format PNG base64 data as a data URL."""
    return f"data:image/png;base64,{png_base64}"


def make_preview(image_bytes: bytes, max_dimension: int = PREVIEW_MAX_DIMENSION) -> Optional[str]:
    """Build a small PNG data URL for history entries, or None if undecodable."""
    try:
        img = load_rgb(image_bytes)
    except ImageDecodeError:
        return None
    img = downscale_image(img, max_dimension)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return format_image_data_url(base64.b64encode(buffer.getvalue()).decode("utf-8"))


def optimize_image(
    image_bytes: bytes,
    max_width: int = DEFAULT_MAX_DIMENSION,
    max_height: int = DEFAULT_MAX_DIMENSION,
    quality: float = 0.9,
) -> bytes:
    """Downscale an oversized image and re-encode it in its original format.

    Args:
        image_bytes: Raw image bytes
        max_width: Maximum width in pixels
        max_height: Maximum height in pixels
        quality: Encoder quality in 0..1 (used by lossy formats)

    Returns:
        Re-encoded bytes, or the input unchanged when no resize is needed
    """
    img = open_image(image_bytes)
    fmt = img.format or "PNG"
    resized = downscale_image(img, max_width, max_height)
    if resized is img:
        return image_bytes

    if fmt == "JPEG" and resized.mode not in ("RGB", "L"):
        resized = resized.convert("RGB")

    buffer = io.BytesIO()
    save_kwargs = {}
    if fmt in ("JPEG", "WEBP"):
        save_kwargs["quality"] = int(round(quality * 100))
    resized.save(buffer, format=fmt, **save_kwargs)
    return buffer.getvalue()


def get_image_stats(image_bytes: bytes, content_type: Optional[str] = None) -> dict:
    """Basic statistics: dimensions, aspect ratio, size, format and color depth."""
    img = open_image(image_bytes)
    width, height = img.size
    fmt = content_type or Image.MIME.get(img.format or "", "application/octet-stream")
    return {
        "width": width,
        "height": height,
        "aspect_ratio": width / height if height else 0.0,
        "file_size": len(image_bytes),
        "format": fmt,
        "color_depth": len(img.getbands()),
    }


def detect_compression_artifacts(image_bytes: bytes) -> dict:
    """Look for 8x8 block boundaries and heavy compression.

    Returns:
        Dict with has_artifacts, confidence (0-100) and human-readable details
    """
    img = load_rgb(image_bytes)
    pixels = np.asarray(img, dtype=np.float64)
    height, width = pixels.shape[:2]
    block = 8

    details = []
    artifact_score = 0.0

    ys = np.arange(0, height - block, block)
    nx = len(range(0, width - block, block))
    if len(ys) and nx:
        # Mean color difference across each horizontal block boundary
        diff = np.abs(pixels[ys] - pixels[ys + block]).sum(axis=2) / 3
        boundary = diff[:, : nx * block].reshape(len(ys), nx, block).mean(axis=2) / 255
        artifact_score += 0.1 * int((boundary > 0.3).sum())

    if artifact_score > 0.5:
        details.append("Block artifacts detected (possible JPEG compression)")

    bytes_per_pixel = len(image_bytes) / (width * height)
    if bytes_per_pixel < 0.5:
        details.append("Low bytes-per-pixel ratio (possible heavy compression)")
        artifact_score += 0.3

    return {
        "has_artifacts": artifact_score > 0.3,
        "confidence": min(100.0, artifact_score * 100),
        "details": details,
    }


def extract_dominant_colors(image_bytes: bytes, count: int = 5) -> list[str]:
    """Most frequent colors after quantizing each channel to 32 levels.

    Returns:
        Hex color strings, most frequent first
    """
    img = downscale_image(load_rgb(image_bytes), ANALYSIS_MAX_DIMENSION)
    pixels = np.asarray(img, dtype=np.uint32).reshape(-1, 3)
    quantized = (pixels // 32) * 32
    keys = (quantized[:, 0] << 16) | (quantized[:, 1] << 8) | quantized[:, 2]

    counts = Counter(keys.tolist())
    return [f"#{key:06x}" for key, _ in counts.most_common(count)]


def color_histogram(image_bytes: bytes) -> dict[str, list[float]]:
    """Per-channel 256-bin histograms, scaled so the tallest bin is 100."""
    img = clamp_resize(load_rgb(image_bytes))
    pixels = np.asarray(img).reshape(-1, 3)

    hists = [np.bincount(pixels[:, c], minlength=256) for c in range(3)]
    peak = max(int(h.max()) for h in hists) or 1
    return {
        name: (hist / peak * 100).tolist()
        for name, hist in zip(("r", "g", "b"), hists)
    }


def quality_label(score: int) -> str:
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Fair"
    return "Poor"


def quality_metrics(image_bytes: bytes) -> dict:
    """Compression artifacts plus a 0-100 overall quality score."""
    artifacts = detect_compression_artifacts(image_bytes)
    width, height = open_image(image_bytes).size
    resolution = width * height
    bytes_per_pixel = len(image_bytes) / resolution
    compression_ratio = len(image_bytes) / (resolution * 3) * 100

    score = 100
    if artifacts["has_artifacts"]:
        score -= 20
    if bytes_per_pixel < 0.5:
        score -= 15
    if compression_ratio > 50:
        score -= 10
    score = max(0, min(100, score))

    return {
        "artifacts": artifacts,
        "bytes_per_pixel": bytes_per_pixel,
        "compression_ratio": compression_ratio,
        "resolution": resolution,
        "file_size": len(image_bytes),
        "quality_score": score,
        "quality_label": quality_label(score),
    }
