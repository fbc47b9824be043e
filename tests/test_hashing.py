import pytest

from insight.core.hashing import (
    compute_file_hashes,
    compute_hashes,
    hamming_distance,
    perceptual_hash,
    similarity,
)


def test_content_digests():
    hashes = compute_hashes(b"abc")
    assert hashes.md5 == "900150983cd24fb0d6963f7d28e17f72"
    assert hashes.sha256 == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    assert hashes.perceptual is None


def test_perceptual_hash_of_uniform_image(png_bytes):
    assert perceptual_hash(png_bytes) == "0000000000000000"


def test_perceptual_hash_of_split_image(split_png_bytes):
    assert perceptual_hash(split_png_bytes) == "0f0f0f0f0f0f0f0f"


def test_perceptual_hash_is_optional(png_bytes):
    assert compute_hashes(png_bytes, include_perceptual=False).perceptual is None
    assert len(compute_hashes(png_bytes).perceptual) == 16


def test_file_hashes_match_bytes(tmp_path, split_png_bytes):
    path = tmp_path / "split.png"
    path.write_bytes(split_png_bytes)
    assert compute_file_hashes(path) == compute_hashes(split_png_bytes)


def test_hamming_and_similarity():
    assert hamming_distance("0f0f", "0f0f") == 0
    assert hamming_distance("0000000000000000", "ffffffffffffffff") == 64
    assert hamming_distance("00", "01") == 1
    assert similarity("0f0f0f0f0f0f0f0f", "0f0f0f0f0f0f0f0f") == 100
    assert similarity("0000000000000000", "ffffffffffffffff") == 0
    assert similarity("0000000000000000", "000000000000000f") == pytest.approx(93.75)


def test_hamming_rejects_mismatched_lengths():
    with pytest.raises(ValueError):
        hamming_distance("00", "0000")


def test_oversized_image_has_no_perceptual_hash(huge_png):
    data = huge_png()
    hashes = compute_hashes(data)
    assert hashes.perceptual is None
    assert len(hashes.sha256) == 64
