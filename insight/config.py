"""Runtime configuration loaded from the environment and an optional YAML file.

Environment variables:
    INSIGHT_DATA_DIR: Directory for the SQLite database (default: "data")
    INSIGHT_DB_PATH: Explicit database path (default: "<data_dir>/insight.db")
    INSIGHT_CONFIG: Optional YAML file overriding any of the values below
    INSIGHT_LOG_LEVEL: Log level for the server (default: "INFO")
    SIGHTENGINE_API_USER: Sightengine API user (optional)
    SIGHTENGINE_API_SECRET: Sightengine API secret (optional)
    SIGHTENGINE_API_URL: Sightengine base URL (default: https://api.sightengine.com)
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

# Upload limits
ALLOWED_MIME_TYPES = ("image/jpeg", "image/png", "image/webp", "image/heic")
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
MAX_BATCH_FILES = 10

# History
MAX_HISTORY_ITEMS = 100

DEFAULT_SIGHTENGINE_URL = "https://api.sightengine.com"


@dataclass
class Config:
    """Resolved application configuration."""

    data_dir: Path = Path("data")
    db_path: Optional[Path] = None
    log_level: str = "INFO"
    sightengine_api_user: Optional[str] = None
    sightengine_api_secret: Optional[str] = None
    sightengine_api_url: str = DEFAULT_SIGHTENGINE_URL
    max_history_items: int = MAX_HISTORY_ITEMS

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        if self.db_path is None:
            self.db_path = self.data_dir / "insight.db"
        else:
            self.db_path = Path(self.db_path)

    @property
    def has_sightengine_credentials(self) -> bool:
        return bool(self.sightengine_api_user and self.sightengine_api_secret)


def _read_yaml(config_path: str | Path) -> dict:
    """Load overrides from a YAML file."""
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path) as f:
        data = yaml.safe_load(f)

    if not data:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    known = {f.name for f in fields(Config)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")
    return data


def load_config(config_path: Optional[str | Path] = None) -> Config:
    """Build a Config from .env, the process environment and a YAML file.

    YAML values win over environment variables.
    """
    load_dotenv()

    values = {
        "data_dir": os.environ.get("INSIGHT_DATA_DIR", "data"),
        "db_path": os.environ.get("INSIGHT_DB_PATH") or None,
        "log_level": os.environ.get("INSIGHT_LOG_LEVEL", "INFO").upper(),
        "sightengine_api_user": os.environ.get("SIGHTENGINE_API_USER") or None,
        "sightengine_api_secret": os.environ.get("SIGHTENGINE_API_SECRET") or None,
        "sightengine_api_url": os.environ.get("SIGHTENGINE_API_URL", DEFAULT_SIGHTENGINE_URL),
    }

    config_path = config_path or os.environ.get("INSIGHT_CONFIG")
    if config_path:
        values.update(_read_yaml(config_path))

    return Config(**values)
