"""JSON and CSV export of analyses and history."""

import csv
import io
import json
from datetime import datetime, timezone
from typing import Iterable, Optional

from ..core.models import AnalysisResult, HistoryItem, ImageHashes, MetadataResult


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _ms_to_iso(timestamp_ms: Optional[int]) -> str:
    if timestamp_ms is None:
        return ""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).isoformat()


def default_filename(kind: str, extension: str) -> str:
    """e.g. insight-analysis-1718000000000.json"""
    stamp = int(datetime.now(timezone.utc).timestamp() * 1000)
    return f"insight-{kind}-{stamp}.{extension}"


def export_json(
    result: AnalysisResult,
    metadata: MetadataResult,
    hashes: Optional[ImageHashes] = None,
) -> str:
    """Pretty-printed JSON document with the analysis, metadata and hashes."""
    data = {
        "timestamp": _now_iso(),
        "analysis": result.to_dict(),
        "metadata": metadata.to_dict(),
        "hashes": hashes.to_dict() if hashes else None,
    }
    return json.dumps(data, indent=2)


def _write_csv(rows: list[dict], fieldnames: list[str]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()


ANALYSIS_COLUMNS = [
    "Overall AI Likelihood",
    "GenAI Score",
    "Face Manipulation Score",
    "Camera Make",
    "Camera Model",
    "Date",
    "GPS",
    "Dimensions",
    "Timestamp",
]


def export_csv(result: AnalysisResult, metadata: MetadataResult) -> str:
    """Single-row CSV summary of one analysis."""
    dimensions = ""
    if metadata.width and metadata.height:
        dimensions = f"{metadata.width}x{metadata.height}"
    row = {
        "Overall AI Likelihood": result.overall,
        "GenAI Score": result.categories["genai"],
        "Face Manipulation Score": result.categories["face_manipulation"],
        "Camera Make": metadata.make or "",
        "Camera Model": metadata.model or "",
        "Date": metadata.date or "",
        "GPS": metadata.gps or "",
        "Dimensions": dimensions,
        "Timestamp": _now_iso(),
    }
    return _write_csv([row], ANALYSIS_COLUMNS)


HISTORY_COLUMNS = [
    "ID",
    "Timestamp",
    "File Name",
    "File Size (bytes)",
    "Overall AI Likelihood",
    "GenAI Score",
    "Face Manipulation Score",
    "Camera Make",
    "Camera Model",
    "Date",
    "GPS",
    "MD5 Hash",
    "SHA256 Hash",
    "Notes",
]


def export_history_csv(items: Iterable[HistoryItem]) -> str:
    """One CSV row per history entry."""
    rows = []
    for item in items:
        result = item.analysis_result
        rows.append({
            "ID": item.id or "",
            "Timestamp": _ms_to_iso(item.timestamp),
            "File Name": item.file_name,
            "File Size (bytes)": item.file_size,
            "Overall AI Likelihood": result.overall,
            "GenAI Score": result.categories["genai"],
            "Face Manipulation Score": result.categories["face_manipulation"],
            "Camera Make": item.metadata.make or "",
            "Camera Model": item.metadata.model or "",
            "Date": item.metadata.date or "",
            "GPS": item.metadata.gps or "",
            "MD5 Hash": item.hashes.md5 if item.hashes else "",
            "SHA256 Hash": item.hashes.sha256 if item.hashes else "",
            "Notes": item.notes or "",
        })
    return _write_csv(rows, HISTORY_COLUMNS)
