"""PDF authenticity report."""

import io
from datetime import datetime
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.graphics.charts.barcharts import HorizontalBarChart
from reportlab.graphics.shapes import Drawing, Rect, String
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..core.models import CATEGORY_LABELS, AnalysisResult, ImageHashes, MetadataResult

TITLE = "Image Insight"
SUBTITLE = "Authenticity Analysis Report"
FOOTER = "Image Insight - AI-Image Authenticity Analyzer"

ACCENT = colors.Color(0.2, 0.4, 1)
MUTED = colors.Color(0.5, 0.5, 0.5)
HASH_GREY = colors.Color(0.4, 0.4, 0.4)

# Always listed, even at 0%
ALWAYS_SHOWN = ("genai", "face_manipulation")

MAX_MANIPULATION_ROWS = 10


def score_color(score: int) -> colors.Color:
    """Red above 70, orange above 40, green otherwise."""
    if score > 70:
        return colors.Color(1, 0.2, 0.2)
    if score > 40:
        return colors.Color(1, 0.6, 0.2)
    return colors.Color(0.2, 0.8, 0.2)


def _styles() -> dict:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle("InsightTitle", parent=base["Title"], alignment=0,
                                fontName="Helvetica-Bold", fontSize=24, leading=28,
                                textColor=ACCENT),
        "subtitle": ParagraphStyle("InsightSubtitle", parent=base["Normal"],
                                   fontName="Helvetica-Oblique", fontSize=14, leading=18,
                                   textColor=colors.Color(0.3, 0.3, 0.3)),
        "heading": ParagraphStyle("InsightHeading", parent=base["Heading3"],
                                  fontName="Helvetica-Bold", fontSize=12, spaceBefore=10),
        "bullet": ParagraphStyle("InsightBullet", parent=base["Normal"],
                                 fontSize=10, leading=14, leftIndent=20),
        "hash": ParagraphStyle("InsightHash", parent=base["Normal"],
                               fontSize=9, leading=12, leftIndent=20, textColor=HASH_GREY),
        "small": ParagraphStyle("InsightSmall", parent=base["Normal"],
                                fontSize=9, textColor=MUTED),
    }


def _bullets(entries: list[tuple[str, int]], style) -> list:
    return [Paragraph(f"&bull; {escape(name)}: {value}%", style) for name, value in entries]


def _score_bar(score: int) -> Drawing:
    d = Drawing(420, 30)
    d.add(Rect(0, 5, 4 * score, 20, fillColor=score_color(score), strokeColor=None))
    d.add(Rect(0, 5, 400, 20, fillColor=None, strokeColor=colors.black))
    d.add(String(405, 10, f"{score}%", fontSize=12))
    return d


def category_chart(result: AnalysisResult) -> Drawing:
    """Horizontal bar chart of the six category scores."""
    names = list(CATEGORY_LABELS)
    chart = HorizontalBarChart()
    chart.x, chart.y = 110, 10
    chart.width, chart.height = 300, 120
    chart.data = [[result.categories.get(name, 0) for name in names]]
    chart.categoryAxis.categoryNames = [CATEGORY_LABELS[name] for name in names]
    chart.categoryAxis.labels.fontSize = 8
    chart.valueAxis.valueMin = 0
    chart.valueAxis.valueMax = 100
    chart.valueAxis.valueStep = 20
    chart.bars[0].fillColor = ACCENT
    d = Drawing(450, 140)
    d.add(chart)
    return d


def _model_section(title: str, scores: dict[str, int], styles: dict, limit: Optional[int] = None) -> list:
    entries = [(name, value) for name, value in scores.items() if value > 0]
    if limit is not None:
        entries = sorted(entries, key=lambda e: e[1], reverse=True)[:limit]
    if not entries:
        return []
    return [Paragraph(title, styles["heading"]), *_bullets(entries, styles["bullet"])]


def _metadata_section(metadata: MetadataResult, styles: dict) -> list:
    lines = []
    if metadata.make or metadata.model:
        lines.append(f"Camera: {metadata.camera}")
    if metadata.date:
        try:
            date = datetime.fromisoformat(metadata.date).strftime("%Y-%m-%d %H:%M:%S")
        except ValueError:
            date = metadata.date
        lines.append(f"Date: {date}")
    if metadata.gps:
        lines.append(f"GPS: {metadata.gps}")
    if metadata.width and metadata.height:
        lines.append(f"Dimensions: {metadata.width} x {metadata.height}")
    if metadata.software:
        lines.append(f"Software: {metadata.software}")

    story = [Paragraph("Image Metadata:", styles["heading"])]
    if not lines:
        story.append(Paragraph("No EXIF metadata found", styles["bullet"]))
    for line in lines:
        story.append(Paragraph(escape(line), styles["bullet"]))
    return story


def _hash_section(hashes: ImageHashes, styles: dict) -> list:
    story = [Paragraph("Image Hashes:", styles["heading"])]
    story.append(Paragraph(f"MD5: {hashes.md5}", styles["hash"]))
    story.append(Paragraph(f"SHA256: {hashes.sha256}", styles["hash"]))
    if hashes.perceptual:
        story.append(Paragraph(f"Perceptual Hash: {hashes.perceptual}", styles["hash"]))
    return story


def _on_page(canvas, doc):
    canvas.saveState()
    canvas.setFillColor(MUTED)
    canvas.setFont("Helvetica", 8)
    canvas.drawString(50, 30, f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    canvas.drawRightString(doc.pagesize[0] - 50, 30, FOOTER)
    canvas.restoreState()


def generate_report(
    result: AnalysisResult,
    metadata: MetadataResult,
    hashes: Optional[ImageHashes] = None,
    file_name: Optional[str] = None,
) -> bytes:
    """Render the analysis as an A4 PDF and return its bytes."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=A4,
        leftMargin=50, rightMargin=50, topMargin=50, bottomMargin=60,
        title=f"{TITLE} - {SUBTITLE}",
    )
    styles = _styles()
    story = [
        Paragraph(TITLE, styles["title"]),
        Paragraph(SUBTITLE, styles["subtitle"]),
        Spacer(1, 0.3 * inch),
    ]

    overall = Table(
        [["Overall AI Likelihood Score:", f"{result.overall}%"]],
        colWidths=[200, 100], hAlign="LEFT",
    )
    overall.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (0, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (0, 0), 14),
        ("FONTNAME", (1, 0), (1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (1, 0), (1, 0), 20),
        ("TEXTCOLOR", (1, 0), (1, 0), score_color(result.overall)),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
    ]))
    story += [overall, Spacer(1, 6), _score_bar(result.overall)]

    categories = [
        (CATEGORY_LABELS[name], result.categories.get(name, 0))
        for name in CATEGORY_LABELS
        if name in ALWAYS_SHOWN or result.categories.get(name, 0) > 0
    ]
    story.append(Paragraph("Category Breakdown:", styles["heading"]))
    story += _bullets(categories, styles["bullet"])
    story += [Spacer(1, 6), category_chart(result)]

    story += _model_section("Diffusion Models Detected:", result.diffusion, styles)
    story += _model_section("GAN Models Detected:", result.gan, styles)
    story += _model_section("LLM-based Generation Detected:", result.llm, styles)
    story += _model_section("Manipulation Types Detected:", result.manipulation, styles,
                            limit=MAX_MANIPULATION_ROWS)

    story += _metadata_section(metadata, styles)
    if hashes:
        story += _hash_section(hashes, styles)

    if file_name:
        story += [Spacer(1, 10), Paragraph(f"File: {escape(file_name)}", styles["small"])]

    doc.build(story, onFirstPage=_on_page, onLaterPages=_on_page)
    return buffer.getvalue()
