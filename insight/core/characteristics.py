"""Pixel statistics that steer the heuristic analysis.

Nothing here is a real detector: color variety, a neighbour-difference edge
count and a skin-tone pixel ratio are computed on a 200x200 (max) copy of the
image.
"""

import logging

import numpy as np

from .image_utils import ImageDecodeError, clamp_resize, load_rgb
from .models import ImageCharacteristics

logger = logging.getLogger(__name__)

# Summed absolute RGB difference above which a pixel counts as an edge
EDGE_THRESHOLD = 30

# Share of skin-tone pixels above which the image is assumed to contain faces
SKIN_TONE_RATIO = 0.1


def skin_tone_mask(pixels: np.ndarray) -> np.ndarray:
    """Boolean mask of skin-tone-like pixels for an (N, 3) int array."""
    r, g, b = pixels[:, 0], pixels[:, 1], pixels[:, 2]
    in_range = (r > 95) & (r < 240) & (g > 40) & (g < 210) & (b > 20) & (b < 200)
    ordered = (r > g) & (g > b) & (r - b > 15)
    return in_range & ordered


def analyze_characteristics(image_bytes: bytes) -> ImageCharacteristics:
    """Compute image characteristics, or defaults when the image can't be decoded."""
    try:
        img = load_rgb(image_bytes)
    except ImageDecodeError as e:
        logger.info("Image analysis unavailable, using defaults: %s", e)
        return ImageCharacteristics()

    width, height = img.size
    small = clamp_resize(img)
    pixels = np.asarray(small, dtype=np.int32).reshape(-1, 3)
    total = len(pixels)

    keys = (pixels[:, 0] << 16) | (pixels[:, 1] << 8) | pixels[:, 2]
    color_complexity = len(np.unique(keys)) / total

    # Compare each pixel with its predecessor in raster order, skipping the
    # first and last pixel
    edge_count = 0
    if total > 2:
        diffs = np.abs(pixels[1:] - pixels[:-1]).sum(axis=1)
        edge_count = int((diffs[:-1] > EDGE_THRESHOLD).sum())
    edge_density = edge_count / total

    compression_level = len(image_bytes) / (width * height)

    skin_ratio = skin_tone_mask(pixels).sum() / total

    return ImageCharacteristics(
        has_faces=bool(skin_ratio > SKIN_TONE_RATIO),
        has_text=False,  # would need OCR
        color_complexity=min(1.0, float(color_complexity)),
        edge_density=min(1.0, float(edge_density)),
        compression_level=min(1.0, float(compression_level)),
        width=width,
        height=height,
    )
