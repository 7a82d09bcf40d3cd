"""Memory package for history persistence and chat session tracking."""

from memory.history_store import (
    HistoryStore,
    KeyValueStorage,
    InMemoryKeyValueStorage,
    SQLiteKeyValueStorage,
)
from memory.session_registry import ChatSessionRegistry, contract_key

__all__ = [
    "HistoryStore",
    "KeyValueStorage",
    "InMemoryKeyValueStorage",
    "SQLiteKeyValueStorage",
    "ChatSessionRegistry",
    "contract_key",
]
