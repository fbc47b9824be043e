"""Mock AI-generation scoring.

The scores are pseudo-random numbers gated by trivial image statistics and
file-name keywords. They exist to drive the UI and reports until a real
detector is plugged in (see insight.api.sightengine).
"""

import random
from typing import Optional

from .characteristics import analyze_characteristics
from .models import AnalysisResult, Artifacts, ImageCharacteristics, TechnicalDetails

AI_NAME_KEYWORDS = ("ai", "generated", "test")

# (model, base, spread): score = base + randrange(spread)
DIFFUSION_LIKELY_AI = [
    ("Stable Diffusion", 45, 20),
    ("MidJourney", 20, 15),
    ("DALL-E 3", 15, 10),
    ("DALL-E 2", 10, 8),
    ("Flux", 8, 7),
    ("Firefly", 5, 5),
    ("Imagen", 3, 4),
    ("Leonardo AI", 2, 3),
    ("Reve", 1, 2),
    ("Qwen", 1, 2),
    ("Ideogram", 1, 2),
    ("Recraft", 0, 2),
]

DIFFUSION_BACKGROUND = [
    ("Stable Diffusion", 0, 15),
    ("MidJourney", 0, 10),
    ("DALL-E 3", 0, 8),
    ("DALL-E 2", 0, 5),
    ("Flux", 0, 4),
    ("Firefly", 0, 3),
    ("Imagen", 0, 2),
    ("Leonardo AI", 0, 2),
    ("Reve", 0, 2),
    ("Qwen", 0, 2),
    ("Ideogram", 0, 2),
    ("Recraft", 0, 1),
]

GAN_MODELS = [
    ("StyleGAN3", 0, 8),
    ("StyleGAN2", 0, 5),
    ("StyleGAN", 0, 4),
    ("BigGAN", 0, 3),
    ("ProGAN", 0, 2),
    ("PGGAN", 0, 2),
]

LLM_MODELS = [
    ("GPT-4 Vision", 0, 5),
    ("GPT-4o", 0, 4),
    ("Claude 3", 0, 3),
    ("Gemini Pro Vision", 0, 3),
]

MANIPULATION_TYPES = [
    ("Face Swap", 0, 12),
    ("Deepfake", 0, 10),
    ("Face Reenactment", 0, 8),
    ("Body Morphing", 0, 7),
    ("Age Progression/Regression", 0, 6),
    ("Expression Transfer", 0, 5),
    ("Hair Style Transfer", 0, 4),
    ("Inpainting", 0, 8),
    ("Object Removal", 0, 6),
    ("Style Transfer", 0, 5),
    ("Color Grading", 0, 4),
    ("Background Replacement", 0, 7),
    ("Super Resolution", 0, 3),
    ("Noise Reduction", 0, 2),
]

OTHER_DETECTIONS = [
    ("Metadata Anomaly", 0, 5),
    ("Compression Artifacts", 0, 4),
    ("Watermark Removal", 0, 3),
]

HIGH_SCORE_THRESHOLD = 70


def _draw(rng: random.Random, table: list[tuple[str, int, int]]) -> dict[str, int]:
    return {name: base + rng.randrange(spread) for name, base, spread in table}


def looks_ai_generated(file_name: str, chars: ImageCharacteristics) -> bool:
    """File-name keywords, or colorful low-edge images with skin tones."""
    name = file_name.lower()
    if any(keyword in name for keyword in AI_NAME_KEYWORDS):
        return True
    return chars.color_complexity > 0.3 and chars.has_faces and chars.edge_density < 0.3


def _technical_details(
    rng: random.Random,
    chars: ImageCharacteristics,
    file_size: int,
    overall: int,
) -> TechnicalDetails:
    width = chars.width or 1920
    height = chars.height or 1080
    high = overall > HIGH_SCORE_THRESHOLD
    return TechnicalDetails(
        width=width,
        height=height,
        file_size=file_size,
        color_depth=24,
        compression_ratio=file_size / (width * height * 3),
        entropy=chars.color_complexity * 8,
        edge_density=chars.edge_density,
        color_complexity=chars.color_complexity,
        has_faces=chars.has_faces,
        face_count=rng.randrange(3) + 1 if chars.has_faces else None,
        has_text=chars.has_text,
        text_regions=rng.randrange(5) + 1 if chars.has_text else None,
        noise_level=rng.random() * 0.3,
        sharpness=0.5 + rng.random() * 0.4,
        artifacts=Artifacts(
            compression=rng.random() * 0.2,
            quantization=rng.random() * 0.15,
            blocking=rng.random() * 0.1,
        ),
        metadata_anomalies=[
            "Missing EXIF data",
            "Inconsistent timestamps",
            "Unusual color profile",
        ] if high else [],
        processing_history=[
            "Image loaded",
            "Color space conversion",
            "Compression applied",
            "AI generation detected" if high else "Standard processing",
        ],
    )


def score_characteristics(
    file_name: str,
    file_size: int,
    chars: ImageCharacteristics,
    rng: Optional[random.Random] = None,
) -> AnalysisResult:
    """Produce mock scores from already computed characteristics."""
    rng = rng or random.Random()
    diffusion: dict[str, int] = {}

    if looks_ai_generated(file_name, chars):
        overall = 85 + rng.randrange(15)
        if (
            "test" in file_name.lower()
            or (chars.has_faces and chars.color_complexity > 0.25)
            or rng.random() > 0.3
        ):
            diffusion["Wan"] = 85 + rng.randrange(15)
            overall = max(overall, diffusion["Wan"])
        diffusion.update(_draw(rng, DIFFUSION_LIKELY_AI))
    else:
        overall = rng.randrange(30)
        if chars.has_faces and rng.random() > 0.5:
            diffusion["Wan"] = 60 + rng.randrange(30)
            overall = max(overall, diffusion["Wan"])
        diffusion.update(_draw(rng, DIFFUSION_BACKGROUND))

    gan = _draw(rng, GAN_MODELS)
    llm = _draw(rng, LLM_MODELS)
    manipulation = _draw(rng, MANIPULATION_TYPES)
    other = _draw(rng, OTHER_DETECTIONS)

    categories = {
        "genai": max([*diffusion.values(), *gan.values(), *llm.values()]),
        "face_manipulation": max(
            manipulation["Face Swap"],
            manipulation["Deepfake"],
            manipulation["Face Reenactment"],
        ),
        "body_manipulation": manipulation["Body Morphing"],
        "deepfake": manipulation["Deepfake"],
        "inpainting": manipulation["Inpainting"],
        "style_transfer": max(
            manipulation["Style Transfer"],
            manipulation["Hair Style Transfer"],
        ),
    }

    return AnalysisResult(
        overall=min(100, overall),
        categories={name: min(100, value) for name, value in categories.items()},
        diffusion=diffusion,
        gan=gan,
        llm=llm,
        manipulation=manipulation,
        other=other,
        technical_details=_technical_details(rng, chars, file_size, overall),
        provider="mock",
    )


def analyze_image(
    image_bytes: bytes,
    file_name: str,
    rng: Optional[random.Random] = None,
) -> AnalysisResult:
    """Run the mock analysis on raw image bytes.

    Args:
        image_bytes: Uploaded file contents
        file_name: Original file name (keywords influence the score)
        rng: Random source, seed it for reproducible results

    Returns:
        AnalysisResult with provider "mock"
    """
    chars = analyze_characteristics(image_bytes)
    return score_characteristics(file_name, len(image_bytes), chars, rng)
