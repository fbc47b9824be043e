"""Core business logic - data models and upload validation."""

from .models import AnalysisResult, HistoryItem, ImageHashes, MetadataResult
from .validation import UploadValidationError

__all__ = [
    "AnalysisResult",
    "HistoryItem",
    "ImageHashes",
    "MetadataResult",
    "UploadValidationError",
]
