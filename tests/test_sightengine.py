import hashlib
import io
import random

import pytest
import requests
from PIL import Image

from insight.api import sightengine
from insight.api.sightengine import SightengineAPI, SightengineAPIError, transform_response
from insight.config import Config
from insight.core.analyzer import analyze_file, run_analysis
from insight.storage.settings import AppSettings

RESPONSE = {
    "status": "success",
    "genai": {
        "score": 0.87,
        "diffusion": {"stable_diffusion": 0.6, "midjourney": 0.123},
        "gan": {"stylegan": 0.05},
    },
    "deepfake": {"score": 0.3},
    "face_attributes": {"manipulation": 0.45},
}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


def test_transform_response():
    result = transform_response(RESPONSE)
    assert result.provider == "sightengine"
    assert result.categories["genai"] == 87
    assert result.categories["deepfake"] == 30
    assert result.categories["face_manipulation"] == 45
    assert result.diffusion == {"Stable Diffusion": 60, "MidJourney": 12}
    assert result.gan == {"StyleGAN": 5}
    assert result.manipulation == {"Deepfake": 30}
    assert result.overall == 87


def test_transform_empty_response():
    result = transform_response({"status": "success"})
    assert result.overall == 0
    assert result.technical_details is None


def test_check_sends_credentials(monkeypatch):
    calls = {}

    def fake_post(url, params=None, files=None, timeout=None):
        calls.update(url=url, params=params, files=files, timeout=timeout)
        return FakeResponse(payload=RESPONSE)

    monkeypatch.setattr(sightengine.requests, "post", fake_post)
    api = SightengineAPI("user", "secret", base_url="https://example.test/", timeout=5)
    result = api.analyze(b"bytes", "photo.jpg", "image/jpeg")

    assert result.overall == 87
    assert calls["url"] == "https://example.test/1.0/check.json"
    assert calls["params"] == {
        "api_user": "user",
        "api_secret": "secret",
        "models": "genai,deepfake,face-attributes",
    }
    assert calls["files"]["media"] == ("photo.jpg", b"bytes", "image/jpeg")
    assert calls["timeout"] == 5


@pytest.mark.parametrize("response, message", [
    (FakeResponse(status_code=401, text="unauthorized"), "401"),
    (FakeResponse(payload=None), "Invalid JSON"),
    (FakeResponse(payload={"status": "failure", "error": {"message": "bad key"}}), "bad key"),
    (FakeResponse(payload={"status": "failure", "error": "quota"}), "quota"),
])
def test_check_errors(monkeypatch, response, message):
    monkeypatch.setattr(sightengine.requests, "post", lambda *a, **kw: response)
    with pytest.raises(SightengineAPIError, match=message):
        SightengineAPI("user", "secret").check(b"bytes")


def test_analyze_rejects_malformed_response(monkeypatch):
    payload = {"status": "success", "genai": {"score": None}}
    monkeypatch.setattr(sightengine.requests, "post", lambda *a, **kw: FakeResponse(payload=payload))
    with pytest.raises(SightengineAPIError, match="Unexpected response format"):
        SightengineAPI("user", "secret").analyze(b"bytes")


def test_check_network_error(monkeypatch):
    def fail(*args, **kwargs):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(sightengine.requests, "post", fail)
    with pytest.raises(SightengineAPIError, match="Request failed"):
        SightengineAPI("user", "secret").check(b"bytes")


# ---------------------------------------------------------------------------
# Provider dispatch
# ---------------------------------------------------------------------------

def test_mock_provider(png_bytes):
    result = run_analysis(png_bytes, "photo.png", "image/png", AppSettings(), rng=random.Random(0))
    assert result.provider == "mock"


def test_sightengine_without_credentials_falls_back(png_bytes, monkeypatch):
    def unexpected(*args, **kwargs):
        raise AssertionError("network should not be used")

    monkeypatch.setattr(sightengine.requests, "post", unexpected)
    settings = AppSettings(api_provider="sightengine")
    assert run_analysis(png_bytes, "photo.png", settings=settings).provider == "mock"


def test_sightengine_uses_config_credentials(png_bytes, monkeypatch, tmp_path):
    seen = {}

    def fake_post(url, params=None, files=None, timeout=None):
        seen["url"] = url
        seen["user"] = params["api_user"]
        return FakeResponse(payload=RESPONSE)

    monkeypatch.setattr(sightengine.requests, "post", fake_post)
    config = Config(
        data_dir=tmp_path,
        sightengine_api_user="env-user",
        sightengine_api_secret="env-secret",
        sightengine_api_url="https://sightengine.test",
    )
    settings = AppSettings(api_provider="sightengine")
    result = run_analysis(png_bytes, "photo.png", "image/png", settings, config)

    assert result.provider == "sightengine"
    assert seen == {"url": "https://sightengine.test/1.0/check.json", "user": "env-user"}


def test_sightengine_error_falls_back(png_bytes, monkeypatch):
    monkeypatch.setattr(
        sightengine.requests, "post", lambda *a, **kw: FakeResponse(status_code=500, text="boom")
    )
    settings = AppSettings(
        api_provider="sightengine",
        sightengine_api_user="user",
        sightengine_api_secret="secret",
    )
    assert run_analysis(png_bytes, "photo.png", settings=settings).provider == "mock"


@pytest.mark.parametrize("payload", [
    {"status": "success", "genai": {"score": None}},
    {"status": "success", "genai": "high"},
    {"status": "success", "deepfake": {"score": "n/a"}},
    ["not", "a", "dict"],
])
def test_malformed_response_falls_back(png_bytes, monkeypatch, payload):
    monkeypatch.setattr(
        sightengine.requests, "post", lambda *a, **kw: FakeResponse(payload=payload)
    )
    settings = AppSettings(
        api_provider="sightengine",
        sightengine_api_user="user",
        sightengine_api_secret="secret",
    )
    assert run_analysis(png_bytes, "photo.png", settings=settings).provider == "mock"


def test_unwired_provider_uses_mock(png_bytes):
    settings = AppSettings(api_provider="hiveai", hiveai_api_key="key")
    assert run_analysis(png_bytes, "photo.png", settings=settings).provider == "mock"


def test_analyze_file_bundles_everything(jpeg_with_exif):
    item = analyze_file(jpeg_with_exif, "camera.jpg", "image/jpeg", rng=random.Random(1))
    assert item.id is None
    assert item.file_size == len(jpeg_with_exif)
    assert item.metadata.make == "Canon"
    assert item.hashes is not None
    assert item.preview.startswith("data:image/png;base64,")


def test_analyze_file_respects_hash_setting(png_bytes):
    item = analyze_file(png_bytes, "photo.png", settings=AppSettings(enable_hashes=False))
    assert item.hashes is None


@pytest.fixture
def wide_png():
    buffer = io.BytesIO()
    Image.new("RGB", (4096, 128), (90, 140, 60)).save(buffer, format="PNG")
    return buffer.getvalue()


def test_auto_optimize_downscales_before_analysis(wide_png):
    settings = AppSettings(max_image_size=512)
    item = analyze_file(wide_png, "wide.png", "image/png", settings, rng=random.Random(2))

    details = item.analysis_result.technical_details
    assert (details.width, details.height) == (512, 16)
    assert item.file_size == len(wide_png)
    assert item.hashes.sha256 == hashlib.sha256(wide_png).hexdigest()


def test_auto_optimize_disabled_keeps_dimensions(wide_png):
    settings = AppSettings(auto_optimize=False, max_image_size=512)
    result = run_analysis(wide_png, "wide.png", "image/png", settings, rng=random.Random(2))
    assert result.technical_details.width == 4096
    assert result.technical_details.height == 128


def test_auto_optimize_applies_to_sightengine_upload(wide_png, monkeypatch):
    sent = {}

    def fake_post(url, params=None, files=None, timeout=None):
        sent["media"] = files["media"][1]
        return FakeResponse(payload=RESPONSE)

    monkeypatch.setattr(sightengine.requests, "post", fake_post)
    settings = AppSettings(
        api_provider="sightengine",
        sightengine_api_user="user",
        sightengine_api_secret="secret",
        max_image_size=512,
    )
    run_analysis(wide_png, "wide.png", "image/png", settings)
    assert Image.open(io.BytesIO(sent["media"])).width == 512
