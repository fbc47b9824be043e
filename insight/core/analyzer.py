"""Provider dispatch: Sightengine when configured, the mock analysis otherwise."""

import logging
import random
from typing import Optional

from ..api.sightengine import SightengineAPI, SightengineAPIError
from ..config import DEFAULT_SIGHTENGINE_URL, Config
from ..storage.settings import AppSettings
from .hashing import compute_hashes
from .image_utils import ImageDecodeError, make_preview, optimize_image
from .metadata import extract_metadata
from .models import AnalysisResult, HistoryItem
from .scoring import analyze_image

logger = logging.getLogger(__name__)


def _sightengine_credentials(
    settings: AppSettings,
    config: Optional[Config],
) -> tuple[Optional[str], Optional[str]]:
    """Settings take precedence over the environment."""
    user = settings.sightengine_api_user or (config.sightengine_api_user if config else None)
    secret = settings.sightengine_api_secret or (config.sightengine_api_secret if config else None)
    return user, secret


def _prepare(image_bytes: bytes, settings: AppSettings) -> bytes:
    if not settings.auto_optimize:
        return image_bytes
    try:
        return optimize_image(
            image_bytes,
            settings.max_image_size,
            settings.max_image_size,
            settings.default_quality,
        )
    except ImageDecodeError as e:
        logger.debug("Skipping optimization: %s", e)
        return image_bytes


def run_analysis(
    image_bytes: bytes,
    file_name: str,
    content_type: Optional[str] = None,
    settings: Optional[AppSettings] = None,
    config: Optional[Config] = None,
    rng: Optional[random.Random] = None,
) -> AnalysisResult:
    """Analyze an image with the provider selected in the settings.

    With auto_optimize set, oversized images are downscaled to
    max_image_size before they are analyzed.

    Sightengine failures and missing credentials fall back to the mock
    analysis. The huggingface and hiveai providers are not wired to a client
    and always use the mock analysis.
    """
    settings = settings or AppSettings()
    image_bytes = _prepare(image_bytes, settings)

    if settings.api_provider == "sightengine":
        api_user, api_secret = _sightengine_credentials(settings, config)
        if api_user and api_secret:
            base_url = config.sightengine_api_url if config else DEFAULT_SIGHTENGINE_URL
            client = SightengineAPI(api_user, api_secret, base_url=base_url)
            try:
                return client.analyze(image_bytes, file_name, content_type)
            except SightengineAPIError as e:
                logger.warning("Sightengine API error, falling back to mock: %s", e)
        else:
            logger.warning("Sightengine credentials missing, falling back to mock")
    elif settings.api_provider != "mock":
        logger.info("Provider %s has no client, using mock analysis", settings.api_provider)

    return analyze_image(image_bytes, file_name, rng)


def analyze_file(
    image_bytes: bytes,
    file_name: str,
    content_type: Optional[str] = None,
    settings: Optional[AppSettings] = None,
    config: Optional[Config] = None,
    rng: Optional[random.Random] = None,
) -> HistoryItem:
    """Full pass over one image: scores, EXIF metadata, hashes and a preview.

    The returned HistoryItem has no id yet; pass it to HistoryStore.save to
    persist it.
    """
    settings = settings or AppSettings()
    result = run_analysis(image_bytes, file_name, content_type, settings, config, rng)
    metadata = extract_metadata(image_bytes)
    hashes = compute_hashes(image_bytes) if settings.enable_hashes else None

    return HistoryItem(
        file_name=file_name,
        file_size=len(image_bytes),
        analysis_result=result,
        metadata=metadata,
        hashes=hashes,
        preview=make_preview(image_bytes),
    )
