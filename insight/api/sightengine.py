"""Sightengine API client for real AI-generation and deepfake detection.

Sign up at https://sightengine.com and provide the API user and secret either
through the settings or the SIGHTENGINE_API_USER / SIGHTENGINE_API_SECRET
environment variables.
"""

import logging
from typing import Optional

import requests

from ..config import DEFAULT_SIGHTENGINE_URL
from ..core.models import AnalysisResult

logger = logging.getLogger(__name__)

DEFAULT_MODELS = "genai,deepfake,face-attributes"

# Sightengine response key -> display name
DIFFUSION_NAMES = {
    "wan": "Wan",
    "stable_diffusion": "Stable Diffusion",
    "midjourney": "MidJourney",
    "dall_e": "DALL-E",
    "flux": "Flux",
    "firefly": "Firefly",
    "imagen": "Imagen",
    "reve": "Reve",
    "qwen": "Qwen",
    "ideogram": "Ideogram",
    "recraft": "Recraft",
}

GAN_NAMES = {
    "stylegan": "StyleGAN",
}


class SightengineAPIError(Exception):
    """Raised when the Sightengine API returns an error."""
    pass


def _percent(value: float) -> int:
    return int(round(float(value) * 100))


def transform_response(data: dict) -> AnalysisResult:
    """Convert a Sightengine check.json response into an AnalysisResult."""
    result = AnalysisResult(provider="sightengine")
    categories = result.categories

    genai = data.get("genai")
    if genai:
        categories["genai"] = _percent(genai.get("score", 0))
        result.overall = categories["genai"]

        for key, name in DIFFUSION_NAMES.items():
            value = (genai.get("diffusion") or {}).get(key)
            if value is not None:
                result.diffusion[name] = _percent(value)

        for key, name in GAN_NAMES.items():
            value = (genai.get("gan") or {}).get(key)
            if value is not None:
                result.gan[name] = _percent(value)

    deepfake = data.get("deepfake")
    if deepfake:
        categories["deepfake"] = _percent(deepfake.get("score", 0))
        categories["face_manipulation"] = categories["deepfake"]
        result.manipulation["Deepfake"] = categories["deepfake"]

    face_attributes = data.get("face_attributes")
    if face_attributes and face_attributes.get("manipulation") is not None:
        categories["face_manipulation"] = max(
            categories["face_manipulation"],
            _percent(face_attributes["manipulation"]),
        )

    result.overall = max(
        categories["genai"],
        categories["face_manipulation"],
        categories["deepfake"],
    )
    return result


class SightengineAPI:
    """Client for the Sightengine check endpoint.

    API format:
        POST {base_url}/1.0/check.json?api_user=..&api_secret=..&models=..
        Multipart body with the image under "media".
    """

    def __init__(
        self,
        api_user: str,
        api_secret: str,
        base_url: str = DEFAULT_SIGHTENGINE_URL,
        timeout: float = 30.0,
        models: str = DEFAULT_MODELS,
    ):
        """Initialize the Sightengine client.

        Args:
            api_user: Sightengine API user
            api_secret: Sightengine API secret
            base_url: Base URL of the API
            timeout: Request timeout in seconds
            models: Comma-separated list of Sightengine models to run
        """
        self.api_user = api_user
        self.api_secret = api_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.models = models

    def _get_params(self) -> dict:
        return {
            "api_user": self.api_user,
            "api_secret": self.api_secret,
            "models": self.models,
        }

    def check(
        self,
        image_bytes: bytes,
        file_name: str = "image",
        content_type: Optional[str] = None,
    ) -> dict:
        """Send an image to Sightengine and return the raw JSON response.

        Raises:
            SightengineAPIError: If the API call fails
        """
        url = f"{self.base_url}/1.0/check.json"
        files = {"media": (file_name, image_bytes, content_type or "application/octet-stream")}

        try:
            response = requests.post(
                url,
                params=self._get_params(),
                files=files,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise SightengineAPIError(f"Request failed: {e}") from e

        if response.status_code != 200:
            raise SightengineAPIError(
                f"Sightengine API error {response.status_code}: {response.text}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SightengineAPIError(f"Invalid JSON response: {e}") from e

        if not isinstance(data, dict):
            raise SightengineAPIError(f"Unexpected response format: {data!r}")

        if data.get("status") == "failure":
            error = data.get("error")
            if isinstance(error, dict):
                error = error.get("message")
            raise SightengineAPIError(f"Sightengine API failure: {error or 'unknown error'}")

        return data

    def analyze(
        self,
        image_bytes: bytes,
        file_name: str = "image",
        content_type: Optional[str] = None,
    ) -> AnalysisResult:
        """Check an image and convert the response to an AnalysisResult.

        Raises:
            SightengineAPIError: If the API call fails or the response is malformed
        """
        data = self.check(image_bytes, file_name, content_type)
        logger.debug("Sightengine response for %s: %s", file_name, data)
        try:
            return transform_response(data)
        except (AttributeError, TypeError, ValueError) as e:
            raise SightengineAPIError(f"Unexpected response format: {e}") from e
