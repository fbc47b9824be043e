import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from insight.core.models import AnalysisResult
from insight.server import app as server_app
from insight.server.app import create_app


@pytest.fixture
def client(config):
    with TestClient(create_app(config)) as client:
        yield client


def upload(name, data, content_type="image/png"):
    return {"file": (name, data, content_type)}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_analyze(client, png_bytes):
    response = client.post("/api/analyze", files=upload("photo.png", png_bytes))
    assert response.status_code == 200
    data = response.json()
    assert data["provider"] == "mock"
    assert 0 <= data["overall"] <= 100
    assert set(data["categories"]) == {
        "genai", "face_manipulation", "body_manipulation",
        "deepfake", "inpainting", "style_transfer",
    }
    assert data["technical_details"]["image_dimensions"] == {"width": 64, "height": 64}


def test_analyze_with_settings_field(client, png_bytes):
    response = client.post(
        "/api/analyze",
        files=upload("photo.png", png_bytes),
        data={"settings": json.dumps({"api_provider": "sightengine"})},
    )
    # No credentials configured: falls back to the mock analysis
    assert response.status_code == 200
    assert response.json()["provider"] == "mock"


def test_analyze_requires_file(client):
    response = client.post("/api/analyze")
    assert response.status_code == 400
    assert response.json() == {"detail": "No file provided"}


def test_analyze_rejects_wrong_type(client):
    response = client.post("/api/analyze", files=upload("notes.txt", b"hello", "text/plain"))
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid file type. Allowed: JPEG, PNG, WEBP, HEIC"


def test_batch(client, png_bytes, jpeg_with_exif):
    files = [
        ("files", ("a.png", png_bytes, "image/png")),
        ("files", ("b.jpg", jpeg_with_exif, "image/jpeg")),
    ]
    response = client.post("/api/batch", files=files)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["successful"] == 2
    assert data["failed"] == 0
    assert [r["file_name"] for r in data["results"]] == ["a.png", "b.jpg"]
    assert data["results"][1]["metadata"]["make"] == "Canon"


def test_batch_limits(client, png_bytes):
    files = [("files", (f"img{i}.png", png_bytes, "image/png")) for i in range(11)]
    response = client.post("/api/batch", files=files)
    assert response.status_code == 400
    assert response.json()["detail"] == "Maximum 10 files allowed per batch"

    response = client.post("/api/batch")
    assert response.status_code == 400
    assert response.json()["detail"] == "No files provided"


def test_hash(client, png_bytes):
    response = client.post("/api/hash", files=upload("photo.png", png_bytes))
    assert response.status_code == 200
    data = response.json()
    assert len(data["md5"]) == 32
    assert len(data["sha256"]) == 64
    assert data["perceptual"] == "0000000000000000"


def test_oversized_image(client, huge_png):
    data = huge_png()
    response = client.post("/api/hash", files=upload("huge.png", data))
    assert response.status_code == 200
    assert response.json()["perceptual"] is None

    response = client.post("/api/analyze", files=upload("huge.png", data))
    assert response.status_code == 200
    assert response.json()["provider"] == "mock"

    response = client.post("/api/stats", files=upload("huge.png", data))
    assert response.status_code == 400


def test_analysis_runs_in_worker_threads(client, png_bytes, monkeypatch):
    threads = []

    def fake_run_analysis(*args, **kwargs):
        try:
            asyncio.get_running_loop()
            threads.append("event loop")
        except RuntimeError:
            threads.append("worker")
        return AnalysisResult(provider="mock")

    monkeypatch.setattr(server_app, "run_analysis", fake_run_analysis)
    client.post("/api/analyze", files=upload("photo.png", png_bytes))
    client.post("/api/batch", files=[("files", ("a.png", png_bytes, "image/png"))])
    assert threads == ["worker", "worker"]


def test_metadata(client, jpeg_with_exif):
    response = client.post("/api/metadata", files=upload("c.jpg", jpeg_with_exif, "image/jpeg"))
    assert response.status_code == 200
    assert response.json()["model"] == "EOS R5"


def test_stats(client, png_bytes):
    response = client.post("/api/stats", files=upload("photo.png", png_bytes))
    assert response.status_code == 200
    data = response.json()
    assert data["stats"]["width"] == 64
    assert "quality_score" in data["quality"]
    assert data["dominant_colors"]
    assert set(data["histogram"]) == {"r", "g", "b"}


def test_stats_undecodable(client):
    response = client.post("/api/stats", files=upload("broken.png", b"not a png"))
    assert response.status_code == 400


def test_compare(client, png_bytes, split_png_bytes):
    response = client.post("/api/compare", files={
        "first": ("a.png", png_bytes, "image/png"),
        "second": ("b.png", split_png_bytes, "image/png"),
    })
    assert response.status_code == 200
    data = response.json()
    assert data["identical"] is False
    assert data["hamming_distance"] == 32
    assert data["similarity"] == 50.0


def analysis_body(client, png_bytes):
    result = client.post("/api/analyze", files=upload("photo.png", png_bytes)).json()
    return {"analysis_result": result, "metadata": {"make": "Canon"}, "file_name": "photo.png"}


def test_report(client, png_bytes):
    response = client.post("/api/report", json=analysis_body(client, png_bytes))
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert "attachment" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


def test_report_rejects_bad_payload(client):
    response = client.post("/api/report", json={"analysis_result": {"categories": "oops"}})
    assert response.status_code == 400


def test_export(client, png_bytes):
    body = analysis_body(client, png_bytes)

    response = client.post("/api/export/json", json=body)
    assert response.status_code == 200
    assert response.json()["metadata"] == {"make": "Canon"}

    response = client.post("/api/export/csv", json=body)
    assert response.status_code == 200
    assert response.text.startswith("Overall AI Likelihood,")

    assert client.post("/api/export/xml", json=body).status_code == 400


def test_history_lifecycle(client, png_bytes):
    body = analysis_body(client, png_bytes)
    body.update(file_size=len(png_bytes), notes="first look")

    item_id = client.post("/api/history", json=body).json()["id"]
    assert item_id.startswith("analysis-")

    items = client.get("/api/history").json()
    assert [item["id"] for item in items] == [item_id]
    assert items[0]["notes"] == "first look"

    response = client.patch(f"/api/history/{item_id}/notes", json={"notes": "checked"})
    assert response.status_code == 200
    assert client.get(f"/api/history/{item_id}").json()["notes"] == "checked"

    response = client.get("/api/history/export", params={"format": "csv"})
    assert response.status_code == 200
    assert "checked" in response.text

    response = client.get("/api/history/export")
    assert json.loads(response.text)[0]["id"] == item_id

    assert client.delete(f"/api/history/{item_id}").status_code == 200
    assert client.get(f"/api/history/{item_id}").status_code == 404
    assert client.delete(f"/api/history/{item_id}").status_code == 404


def test_history_clear(client, png_bytes):
    body = analysis_body(client, png_bytes)
    body["file_size"] = len(png_bytes)
    client.post("/api/history", json=body)
    client.post("/api/history", json=body)

    assert client.delete("/api/history").json() == {"deleted": 2}
    assert client.get("/api/history").json() == []


def test_settings(client):
    assert client.get("/api/settings").json()["api_provider"] == "mock"

    response = client.put("/api/settings", json={
        "api_provider": "sightengine",
        "sightengine_api_secret": "s3cret",
    })
    assert response.status_code == 200
    assert response.json()["api_provider"] == "sightengine"
    assert response.json()["sightengine_api_secret"] == "********"

    assert client.put("/api/settings", json={"theme": "neon"}).status_code == 400

    assert client.delete("/api/settings").json()["api_provider"] == "mock"
    assert client.get("/api/settings").json()["sightengine_api_secret"] == ""
