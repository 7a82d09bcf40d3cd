"""History store for past contract analyses.

The whole history is one JSON document kept in a single named slot of a
key-value storage backend. It is read once when the store is created and
rewritten in full after every mutation.
"""

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional
import msgspec
from msgspec import structs
from loguru import logger

from contrato.models import ChatMessage, HistoryItem, HistorySummary
from contrato.error_handling import HistoryError


DEFAULT_STORAGE_KEY = "contrato_facil_history"


class KeyValueStorage:
    """Durable string storage addressed by key."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class InMemoryKeyValueStorage(KeyValueStorage):
    """Process-local storage, used by tests and ephemeral runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class SQLiteKeyValueStorage(KeyValueStorage):
    """Storage backed by a single SQLite table."""

    def __init__(self, db_path: str = "contrato_facil.db"):
        """Initialize the SQLite storage.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self._ensure_database_exists()
        logger.info(f"SQLiteKeyValueStorage initialized with db_path={db_path}")

    def _ensure_database_exists(self):
        """Create database and table if they don't exist."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS storage (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()

    def get(self, key: str) -> Optional[str]:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT value FROM storage WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT OR REPLACE INTO storage (key, value, updated_at)
                VALUES (?, ?, ?)
            """, (key, value, datetime.utcnow().isoformat()))
            conn.commit()

    def delete(self, key: str) -> None:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM storage WHERE key = ?", (key,))
            conn.commit()


class HistoryStore:
    """Newest-first list of HistoryItem with a single active selection.

    The active selection lives in memory only; after a restart no item is
    active.
    """

    def __init__(self, storage: KeyValueStorage, storage_key: str = DEFAULT_STORAGE_KEY):
        """Initialize the history store and load persisted items.

        Args:
            storage: Storage backend holding the history slot
            storage_key: Name of the slot
        """
        self.storage = storage
        self.storage_key = storage_key
        self.active_id: Optional[str] = None
        self.items: List[HistoryItem] = self._load_items()
        logger.info(f"HistoryStore loaded {len(self.items)} items")

    def _load_items(self) -> List[HistoryItem]:
        """Read the stored list, falling back to an empty list on bad data."""
        try:
            raw = self.storage.get(self.storage_key)
        except Exception as e:
            logger.warning(f"Failed to read stored history, starting empty: {type(e).__name__}")
            return []

        if not raw:
            return []

        try:
            return msgspec.json.decode(raw, type=List[HistoryItem])
        except msgspec.DecodeError as e:
            logger.warning(f"Stored history is malformed, starting empty: {e}")
            return []

    def _persist(self, items: List[HistoryItem]) -> None:
        """Write the given list to storage.

        Raises:
            HistoryError: If the storage write fails
        """
        try:
            self.storage.set(self.storage_key, msgspec.json.encode(items).decode())
        except Exception as e:
            logger.error(f"Failed to write history: {type(e).__name__}")
            raise HistoryError(f"Failed to write history: {str(e)}") from e

    def _find(self, item_id: str) -> Optional[HistoryItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def list_items(self) -> List[HistoryItem]:
        return list(self.items)

    def list_summaries(self) -> List[HistorySummary]:
        return [
            HistorySummary(
                id=item.id,
                created_at=item.created_at,
                contract_type=item.contract_type,
                message_count=len(item.messages),
            )
            for item in self.items
        ]

    def get_active(self) -> Optional[HistoryItem]:
        if self.active_id is None:
            return None
        return self._find(self.active_id)

    def add(self, item: HistoryItem) -> None:
        """Prepend a new item and make it active.

        Raises:
            HistoryError: If the item could not be stored; nothing changes
        """
        items = [item, *self.items]
        self._persist(items)
        self.items = items
        self.active_id = item.id
        logger.info(f"History item added: {item.id}")

    def update_messages(self, item_id: str, messages: List[ChatMessage]) -> None:
        """Replace one item's transcript. Unknown ids are ignored."""
        if self._find(item_id) is None:
            return
        items = [
            structs.replace(item, messages=list(messages)) if item.id == item_id else item
            for item in self.items
        ]
        self._persist(items)
        self.items = items
        logger.debug(f"History item {item_id} now has {len(messages)} messages")

    def update_active_messages(self, messages: List[ChatMessage]) -> None:
        """Replace the active item's transcript. No-op without an active item."""
        if self.active_id is None:
            return
        self.update_messages(self.active_id, messages)

    def load(self, item_id: str) -> HistoryItem:
        """Make an item active and return it.

        Raises:
            HistoryError: If no item has the given id
        """
        item = self._find(item_id)
        if item is None:
            raise HistoryError(f"History item not found: {item_id}")
        self.active_id = item.id
        logger.info(f"History item loaded: {item_id}")
        return item

    def remove(self, item_id: str) -> bool:
        """Delete an item.

        Returns:
            True if the deleted item was the active one
        """
        if self._find(item_id) is None:
            logger.warning(f"History item not found for deletion: {item_id}")
            return False

        items = [item for item in self.items if item.id != item_id]
        self._persist(items)
        self.items = items
        was_active = self.active_id == item_id
        if was_active:
            self.active_id = None
        logger.info(f"History item deleted: {item_id}")
        return was_active

    def clear(self) -> None:
        """Delete every item and clear the active selection."""
        count = len(self.items)
        self._persist([])
        self.items = []
        self.active_id = None
        logger.info(f"History cleared ({count} items)")

    def deactivate(self) -> None:
        self.active_id = None
