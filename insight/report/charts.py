"""Interactive Bokeh charts of analysis scores.

Used by the Streamlit pages (embedded as HTML) and by `insight report --chart`
to write a standalone HTML file.
"""

import html
from pathlib import Path
from typing import Optional

from bokeh.embed import file_html
from bokeh.layouts import column
from bokeh.models import ColumnDataSource, Div, HoverTool
from bokeh.plotting import figure
from bokeh.resources import CDN

from ..core.models import CATEGORY_LABELS, AnalysisResult

FAMILY_TITLES = {
    "diffusion": "Diffusion Models",
    "gan": "GAN Models",
    "llm": "LLM-based Generation",
    "manipulation": "Manipulation Types",
    "other": "Other Detections",
}


def score_color_hex(score: int) -> str:
    if score > 70:
        return "#ff3333"
    if score > 40:
        return "#ff9933"
    return "#33cc33"


def bar_figure(title: str, scores: dict[str, int], width: int = 600):
    """Horizontal bar chart, highest score on top."""
    entries = sorted(scores.items(), key=lambda e: e[1])
    names = [name for name, _ in entries]
    values = [value for _, value in entries]

    source = ColumnDataSource(data=dict(
        name=names,
        score=values,
        color=[score_color_hex(v) for v in values],
    ))

    p = figure(
        title=title,
        y_range=names,
        x_range=(0, 100),
        width=width,
        height=max(120, 28 * len(names) + 60),
        tools="",
        toolbar_location=None,
    )
    p.hbar(y="name", right="score", height=0.7, color="color", source=source)
    p.add_tools(HoverTool(tooltips=[("Model", "@name"), ("Likelihood", "@score%")]))
    p.xaxis.axis_label = "Likelihood (%)"
    p.ygrid.visible = False
    return p


def build_score_chart(
    result: AnalysisResult,
    file_name: Optional[str] = None,
    families: tuple[str, ...] = ("diffusion", "gan", "llm", "manipulation"),
):
    """Bokeh layout: overall header, category chart and one chart per family."""
    header = Div(
        text=f"<h2>AI Likelihood: "
             f"<span style='color:{score_color_hex(result.overall)}'>{result.overall}%</span></h2>"
             + (f"<p>File: <b>{html.escape(file_name)}</b></p>" if file_name else "")
             + f"<p>Provider: {html.escape(result.provider)}</p>",
    )
    categories = {
        CATEGORY_LABELS[name]: value for name, value in result.categories.items()
        if name in CATEGORY_LABELS
    }
    plots = [header, bar_figure("Category Breakdown", categories)]

    for family in families:
        scores = {name: value for name, value in getattr(result, family).items() if value > 0}
        if scores:
            plots.append(bar_figure(FAMILY_TITLES[family], scores))

    return column(*plots)


def chart_html(result: AnalysisResult, file_name: Optional[str] = None) -> str:
    """Standalone HTML page with the score charts."""
    layout = build_score_chart(result, file_name)
    return file_html(layout, resources=CDN, title="Image Insight Analysis")


def save_chart_html(
    result: AnalysisResult,
    output_path: str | Path,
    file_name: Optional[str] = None,
) -> None:
    """Write the score charts to a standalone HTML file."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(chart_html(result, file_name))
