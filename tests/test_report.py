import csv
import io
import json
import random

from insight.core.models import HistoryItem, ImageCharacteristics, ImageHashes, MetadataResult
from insight.core.scoring import score_characteristics
from insight.report.charts import (
    bar_figure,
    build_score_chart,
    chart_html,
    save_chart_html,
    score_color_hex,
)
from insight.report.export import (
    ANALYSIS_COLUMNS,
    HISTORY_COLUMNS,
    default_filename,
    export_csv,
    export_history_csv,
    export_json,
)
from insight.report.pdf import _model_section, _styles, generate_report, score_color

METADATA = MetadataResult(make="Canon", model="EOS R5", date="2023-06-15T14:30:00",
                          gps="48.858222, 2.294500", width=800, height=600)
HASHES = ImageHashes(md5="a" * 32, sha256="b" * 64, perceptual="0f0f0f0f0f0f0f0f")


def sample_result():
    return score_characteristics("ai_sample.png", 2048, ImageCharacteristics(), random.Random(5))


def test_export_json():
    result = sample_result()
    data = json.loads(export_json(result, METADATA, HASHES))
    assert data["analysis"]["overall"] == result.overall
    assert data["metadata"]["make"] == "Canon"
    assert data["hashes"]["perceptual"] == "0f0f0f0f0f0f0f0f"
    assert "timestamp" in data


def test_export_csv():
    result = sample_result()
    rows = list(csv.DictReader(io.StringIO(export_csv(result, METADATA))))
    assert len(rows) == 1
    assert list(rows[0]) == ANALYSIS_COLUMNS
    assert rows[0]["Overall AI Likelihood"] == str(result.overall)
    assert rows[0]["GPS"] == "48.858222, 2.294500"
    assert rows[0]["Dimensions"] == "800x600"


def test_export_history_csv():
    item = HistoryItem(
        file_name="a, b.png",
        file_size=10,
        analysis_result=sample_result(),
        metadata=METADATA,
        hashes=HASHES,
        notes="quoted \"note\"",
        id="analysis-1-abc",
        timestamp=1700000000000,
    )
    rows = list(csv.DictReader(io.StringIO(export_history_csv([item]))))
    assert list(rows[0]) == HISTORY_COLUMNS
    assert rows[0]["File Name"] == "a, b.png"
    assert rows[0]["Notes"] == "quoted \"note\""
    assert rows[0]["MD5 Hash"] == "a" * 32
    assert rows[0]["Timestamp"].startswith("2023-11-14T22:13:20")


def test_default_filename():
    name = default_filename("analysis", "json")
    assert name.startswith("insight-analysis-")
    assert name.endswith(".json")


def test_pdf_report():
    pdf = generate_report(sample_result(), METADATA, HASHES, "ai_sample.png")
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000


def test_pdf_report_without_metadata():
    pdf = generate_report(sample_result(), MetadataResult())
    assert pdf.startswith(b"%PDF")


def test_score_colors():
    assert score_color_hex(71) == "#ff3333"
    assert score_color_hex(70) == "#ff9933"
    assert score_color_hex(40) == "#33cc33"
    assert score_color(90) != score_color(10)


def test_bar_figure_sorts_scores():
    p = bar_figure("Models", {"a": 10, "b": 90, "c": 50})
    assert list(p.y_range.factors) == ["a", "c", "b"]


def test_chart_html(tmp_path):
    result = sample_result()
    html = chart_html(result, "ai_sample.png")
    assert "bokeh" in html.lower()
    assert "Category Breakdown" in html

    output = tmp_path / "charts" / "scores.html"
    save_chart_html(result, output)
    assert output.exists()


def test_chart_header_escapes_file_name():
    layout = build_score_chart(sample_result(), "<img src=x onerror=alert(1)>.png")
    header = layout.children[0].text
    assert "<img" not in header
    assert "&lt;img src=x onerror=alert(1)&gt;.png" in header


def test_model_sections_skip_zero_scores():
    styles = _styles()
    assert _model_section("Diffusion Models Detected:", {"Flux": 0, "Imagen": 0}, styles) == []
    section = _model_section("Diffusion Models Detected:", {"Flux": 0, "Imagen": 40}, styles)
    assert len(section) == 2
