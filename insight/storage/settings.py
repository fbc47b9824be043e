"""User settings persisted in SQLite."""

import json
import sqlite3
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

API_PROVIDERS = ("mock", "sightengine", "huggingface", "hiveai")
THEMES = ("light", "dark", "auto")
DETAIL_LEVELS = ("basic", "intermediate", "advanced")


@dataclass
class AppSettings:
    """User-adjustable settings with their defaults."""

    auto_optimize: bool = True
    max_image_size: int = 2048
    default_quality: float = 0.9
    enable_history: bool = True
    enable_hashes: bool = True
    theme: str = "light"
    # API
    api_provider: str = "mock"
    sightengine_api_user: str = ""
    sightengine_api_secret: str = ""
    huggingface_api_key: str = ""
    huggingface_model: str = "vikhyatk/moondream2"
    hiveai_api_key: str = ""
    # Technical details
    show_technical_details: bool = True
    technical_detail_level: str = "intermediate"

    def __post_init__(self):
        if self.api_provider not in API_PROVIDERS:
            raise ValueError(f"Unknown API provider: {self.api_provider}")
        if self.theme not in THEMES:
            raise ValueError(f"Unknown theme: {self.theme}")
        if self.technical_detail_level not in DETAIL_LEVELS:
            raise ValueError(f"Unknown detail level: {self.technical_detail_level}")
        if not 0 < self.default_quality <= 1:
            raise ValueError("default_quality must be in (0, 1]")
        if self.max_image_size <= 0:
            raise ValueError("max_image_size must be positive")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "AppSettings":
        """Build settings from a partial dict; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def public_dict(self) -> dict:
        """Settings with secrets masked, for display."""
        data = self.to_dict()
        for key in ("sightengine_api_secret", "huggingface_api_key", "hiveai_api_key"):
            if data[key]:
                data[key] = "********"
        return data


class SettingsStore:
    """Stores one AppSettings document in a key/value table."""

    KEY = "app_settings"

    def __init__(self, db_path: str | Path = "data/insight.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Create the settings table if it doesn't exist."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
            conn.commit()

    def _read(self) -> Optional[dict]:
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT value FROM settings WHERE key = ?", (self.KEY,)
            ).fetchone()
        if row is None:
            return None
        return json.loads(row[0])

    def load(self) -> AppSettings:
        """Return stored settings merged over the defaults."""
        stored = self._read()
        if not stored:
            return AppSettings()
        return AppSettings.from_dict(stored)

    def save(self, settings: AppSettings) -> None:
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
                (self.KEY, json.dumps(settings.to_dict())),
            )
            conn.commit()

    def update(self, changes: dict) -> AppSettings:
        """Apply a partial update and persist the result."""
        merged = self.load().to_dict()
        merged.update(changes)
        settings = AppSettings.from_dict(merged)
        self.save(settings)
        return settings

    def reset(self) -> AppSettings:
        """Drop stored settings and return the defaults."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("DELETE FROM settings WHERE key = ?", (self.KEY,))
            conn.commit()
        return AppSettings()
