"""Storage layers - SQLite analysis history and settings."""

from .history import HistoryStore
from .settings import AppSettings, SettingsStore

__all__ = ["HistoryStore", "AppSettings", "SettingsStore"]
