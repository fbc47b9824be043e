"""Content hashes (MD5, SHA-256) and an average-based perceptual hash."""

import hashlib
import logging
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image

from .image_utils import ImageDecodeError, load_rgb
from .models import ImageHashes

logger = logging.getLogger(__name__)

PERCEPTUAL_SIZE = 8  # 8x8 grid -> 64 bits -> 16 hex chars


def perceptual_hash(image_bytes: bytes) -> str:
    """Average hash: 8x8 grayscale, one bit per cell brighter than the mean.

    Raises:
        ImageDecodeError: If the bytes are not a decodable image
    """
    img = load_rgb(image_bytes).resize(
        (PERCEPTUAL_SIZE, PERCEPTUAL_SIZE), Image.Resampling.BILINEAR
    )
    gray = np.asarray(img, dtype=np.float64).sum(axis=2).ravel() / 3
    bits = gray > gray.mean()

    value = 0
    for bit in bits:
        value = (value << 1) | int(bit)
    return f"{value:0{PERCEPTUAL_SIZE * PERCEPTUAL_SIZE // 4}x}"


def compute_hashes(image_bytes: bytes, include_perceptual: bool = True) -> ImageHashes:
    """MD5 + SHA-256 of the bytes, plus the perceptual hash when decodable."""
    perceptual: Optional[str] = None
    if include_perceptual:
        try:
            perceptual = perceptual_hash(image_bytes)
        except ImageDecodeError as e:
            logger.info("Perceptual hash unavailable: %s", e)

    return ImageHashes(
        md5=hashlib.md5(image_bytes).hexdigest(),
        sha256=hashlib.sha256(image_bytes).hexdigest(),
        perceptual=perceptual,
    )


def compute_file_hashes(filepath: str | Path, include_perceptual: bool = True) -> ImageHashes:
    """Hash a file on disk, reading it in chunks for the content digests."""
    md5 = hashlib.md5()
    sha256 = hashlib.sha256()
    with open(filepath, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            md5.update(chunk)
            sha256.update(chunk)

    perceptual = None
    if include_perceptual:
        try:
            perceptual = perceptual_hash(Path(filepath).read_bytes())
        except ImageDecodeError as e:
            logger.info("Perceptual hash unavailable for %s: %s", filepath, e)

    return ImageHashes(md5=md5.hexdigest(), sha256=sha256.hexdigest(), perceptual=perceptual)


def hamming_distance(hash_a: str, hash_b: str) -> int:
    """Number of differing bits between two hex perceptual hashes."""
    if len(hash_a) != len(hash_b):
        raise ValueError("Perceptual hashes must have the same length")
    return bin(int(hash_a, 16) ^ int(hash_b, 16)).count("1")


def similarity(hash_a: str, hash_b: str) -> float:
    """Perceptual similarity in 0..100 (100 = identical hashes)."""
    bits = len(hash_a) * 4
    return (1 - hamming_distance(hash_a, hash_b) / bits) * 100
