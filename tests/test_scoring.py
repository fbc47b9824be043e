import random

from insight.core.models import CATEGORY_NAMES, ImageCharacteristics
from insight.core.scoring import (
    DIFFUSION_LIKELY_AI,
    MANIPULATION_TYPES,
    analyze_image,
    looks_ai_generated,
    score_characteristics,
)


def test_keyword_gating():
    chars = ImageCharacteristics()
    assert looks_ai_generated("my_AI_render.png", chars)
    assert looks_ai_generated("generated.jpg", chars)
    assert looks_ai_generated("test.png", chars)
    assert not looks_ai_generated("beach.jpg", chars)


def test_colorful_smooth_faces_look_generated():
    chars = ImageCharacteristics(has_faces=True, color_complexity=0.4, edge_density=0.1)
    assert looks_ai_generated("beach.jpg", chars)


def test_likely_ai_scores():
    for seed in range(20):
        result = score_characteristics("ai_art.png", 1000, ImageCharacteristics(), random.Random(seed))
        assert 85 <= result.overall <= 100
        assert {name for name, _, _ in DIFFUSION_LIKELY_AI} <= set(result.diffusion)
        assert result.provider == "mock"


def test_test_keyword_always_adds_wan():
    result = score_characteristics("test.png", 1000, ImageCharacteristics(), random.Random(3))
    assert 85 <= result.diffusion["Wan"] <= 99
    assert result.overall >= result.diffusion["Wan"]


def test_background_scores_stay_low():
    for seed in range(20):
        result = score_characteristics("beach.jpg", 1000, ImageCharacteristics(), random.Random(seed))
        assert 0 <= result.overall < 30
        assert "Wan" not in result.diffusion


def test_categories_are_derived_and_clamped():
    result = score_characteristics("ai.png", 1000, ImageCharacteristics(), random.Random(7))
    assert set(result.categories) == set(CATEGORY_NAMES)
    assert all(0 <= v <= 100 for v in result.categories.values())

    model_scores = [*result.diffusion.values(), *result.gan.values(), *result.llm.values()]
    assert result.categories["genai"] == min(100, max(model_scores))
    assert result.categories["deepfake"] == result.manipulation["Deepfake"]
    assert result.categories["face_manipulation"] == max(
        result.manipulation["Face Swap"],
        result.manipulation["Deepfake"],
        result.manipulation["Face Reenactment"],
    )
    assert len(result.manipulation) == len(MANIPULATION_TYPES)


def test_same_seed_same_result():
    chars = ImageCharacteristics(has_faces=True)
    a = score_characteristics("photo.jpg", 500, chars, random.Random(42))
    b = score_characteristics("photo.jpg", 500, chars, random.Random(42))
    assert a.to_dict() == b.to_dict()


def test_technical_details():
    chars = ImageCharacteristics(width=100, height=50, has_faces=True)
    result = score_characteristics("ai.png", 15000, chars, random.Random(1))
    details = result.technical_details
    assert (details.width, details.height) == (100, 50)
    assert details.compression_ratio == 15000 / (100 * 50 * 3)
    assert 1 <= details.face_count <= 3
    assert details.text_regions is None
    assert details.processing_history[-1] == "AI generation detected"
    assert details.metadata_anomalies


def test_analyze_image_reads_pixels(skin_png_bytes):
    result = analyze_image(skin_png_bytes, "portrait.png", random.Random(0))
    assert result.technical_details.has_faces is True
    assert result.technical_details.file_size == len(skin_png_bytes)
