"""Pydantic schemas for API requests and responses."""
from typing import Any, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str


class ReportRequest(BaseModel):
    """Body of /api/report and /api/export/{format}."""
    analysis_result: dict[str, Any]
    metadata: dict[str, Any] = Field(default_factory=dict)
    hashes: Optional[dict[str, Any]] = None
    file_name: Optional[str] = None


class HistorySaveRequest(BaseModel):
    """A finished analysis to keep in the history."""
    file_name: str
    file_size: int
    analysis_result: dict[str, Any]
    metadata: dict[str, Any] = Field(default_factory=dict)
    hashes: Optional[dict[str, Any]] = None
    preview: Optional[str] = None
    notes: Optional[str] = None


class HistorySaveResponse(BaseModel):
    id: str


class NotesUpdate(BaseModel):
    notes: str


class BatchItem(BaseModel):
    """Outcome for one file of a batch."""
    file_name: str
    file_size: int
    success: bool
    analysis: Optional[dict[str, Any]] = None
    metadata: Optional[dict[str, Any]] = None
    error: Optional[str] = None


class BatchResponse(BaseModel):
    total: int
    successful: int
    failed: int
    results: list[BatchItem]


class CompareResponse(BaseModel):
    first: dict[str, Any]
    second: dict[str, Any]
    identical: bool
    hamming_distance: Optional[int] = None
    similarity: Optional[float] = None


class SettingsUpdate(BaseModel):
    """Partial settings update; omitted fields keep their stored value."""
    auto_optimize: Optional[bool] = None
    max_image_size: Optional[int] = None
    default_quality: Optional[float] = None
    enable_history: Optional[bool] = None
    enable_hashes: Optional[bool] = None
    theme: Optional[str] = None
    api_provider: Optional[str] = None
    sightengine_api_user: Optional[str] = None
    sightengine_api_secret: Optional[str] = None
    huggingface_api_key: Optional[str] = None
    huggingface_model: Optional[str] = None
    hiveai_api_key: Optional[str] = None
    show_technical_details: Optional[bool] = None
    technical_detail_level: Optional[str] = None
