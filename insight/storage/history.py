"""SQLite-backed analysis history, newest first and capped in size."""

import json
import random
import sqlite3
import string
import time
from pathlib import Path
from typing import Optional

from ..config import MAX_HISTORY_ITEMS
from ..core.models import HistoryItem

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_history_id(timestamp_ms: int) -> str:
    """Build an id of the form analysis-<ms>-<9 base36 chars>."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"analysis-{timestamp_ms}-{suffix}"


class HistoryStore:
    """Manages saved analyses in SQLite."""

    def __init__(
        self,
        db_path: str | Path = "data/insight.db",
        max_items: int = MAX_HISTORY_ITEMS,
    ):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.max_items = max_items
        self._init_db()

    def _init_db(self):
        """Create the history table if it doesn't exist."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS history (
                    id TEXT PRIMARY KEY,
                    timestamp INTEGER NOT NULL,
                    file_name TEXT NOT NULL,
                    file_size INTEGER NOT NULL,
                    data TEXT NOT NULL,
                    notes TEXT
                )
            """)
            conn.commit()

    def _row_to_item(self, row) -> HistoryItem:
        """Convert a database row to a HistoryItem."""
        item = HistoryItem.from_dict(json.loads(row[4]))
        item.id = row[0]
        item.timestamp = row[1]
        item.notes = row[5]
        return item

    def save(self, item: HistoryItem) -> str:
        """Store an analysis and return its new id.

        The oldest entries are dropped once the store holds more than
        max_items.
        """
        item.timestamp = int(time.time() * 1000)
        item.id = generate_history_id(item.timestamp)

        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                INSERT INTO history (id, timestamp, file_name, file_size, data, notes)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (
                item.id,
                item.timestamp,
                item.file_name,
                item.file_size,
                json.dumps(item.to_dict()),
                item.notes,
            ))
            conn.execute("""
                DELETE FROM history WHERE rowid NOT IN (
                    SELECT rowid FROM history
                    ORDER BY timestamp DESC, rowid DESC
                    LIMIT ?
                )
            """, (self.max_items,))
            conn.commit()

        return item.id

    def list_all(self) -> list[HistoryItem]:
        """List all entries, newest first."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                "SELECT id, timestamp, file_name, file_size, data, notes FROM history "
                "ORDER BY timestamp DESC, rowid DESC"
            )
            return [self._row_to_item(row) for row in cursor.fetchall()]

    def get(self, item_id: str) -> Optional[HistoryItem]:
        """Retrieve an entry by id."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                "SELECT id, timestamp, file_name, file_size, data, notes FROM history WHERE id = ?",
                (item_id,)
            )
            row = cursor.fetchone()
            if row:
                return self._row_to_item(row)
            return None

    def delete(self, item_id: str) -> bool:
        """Delete an entry by id. Returns True if deleted."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM history WHERE id = ?", (item_id,))
            conn.commit()
            return cursor.rowcount > 0

    def clear(self) -> int:
        """Delete every entry. Returns the number removed."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM history")
            conn.commit()
            return cursor.rowcount

    def update_notes(self, item_id: str, notes: str) -> bool:
        """Replace the notes of an entry. Returns False if it doesn't exist."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                "UPDATE history SET notes = ? WHERE id = ?", (notes, item_id)
            )
            conn.commit()
            return cursor.rowcount > 0

    def count(self) -> int:
        """Return the number of entries."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute("SELECT COUNT(*) FROM history")
            return cursor.fetchone()[0]

    def export_json(self) -> str:
        """Serialize the whole history as a pretty-printed JSON array."""
        return json.dumps([item.to_dict() for item in self.list_all()], indent=2)
