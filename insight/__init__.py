"""Image Insight - Estimate how likely an image is AI-generated.

Package structure:
    insight/
    ├── cli.py              # Command-line interface
    ├── config.py           # Environment / YAML configuration
    ├── core/               # Core business logic
    │   ├── models.py       # Data models (AnalysisResult, HistoryItem, ...)
    │   ├── validation.py   # Upload type and size checks
    │   ├── characteristics.py # Pixel statistics
    │   ├── scoring.py      # Heuristic (mock) detector
    │   ├── analyzer.py     # Provider dispatch
    │   ├── metadata.py     # EXIF extraction
    │   ├── hashing.py      # MD5 / SHA256 / perceptual hashes
    │   └── image_utils.py  # Decoding, previews, color and quality stats
    ├── storage/            # Data persistence
    │   ├── history.py      # SQLite analysis history
    │   └── settings.py     # SQLite user settings
    ├── api/                # External integrations
    │   └── sightengine.py  # Sightengine detection client
    ├── report/             # Output formats
    │   ├── export.py       # JSON / CSV export
    │   ├── pdf.py          # PDF report
    │   └── charts.py       # Bokeh score charts
    └── server/             # FastAPI application
"""

__version__ = "0.1.0"

from .config import Config, load_config
from .core.models import (
    AnalysisResult,
    HistoryItem,
    ImageCharacteristics,
    ImageHashes,
    MetadataResult,
    TechnicalDetails,
)
from .core.validation import UploadValidationError, validate_batch, validate_upload
from .core.analyzer import analyze_file, run_analysis
from .core.hashing import compute_hashes
from .core.metadata import extract_metadata
from .storage.history import HistoryStore
from .storage.settings import AppSettings, SettingsStore
from .api.sightengine import SightengineAPI, SightengineAPIError

__all__ = [
    "__version__",
    # Config
    "Config",
    "load_config",
    # Core
    "AnalysisResult",
    "HistoryItem",
    "ImageCharacteristics",
    "ImageHashes",
    "MetadataResult",
    "TechnicalDetails",
    "UploadValidationError",
    "validate_batch",
    "validate_upload",
    "analyze_file",
    "run_analysis",
    "compute_hashes",
    "extract_metadata",
    # Storage
    "HistoryStore",
    "AppSettings",
    "SettingsStore",
    # API
    "SightengineAPI",
    "SightengineAPIError",
]
