"""
Storage Services Package

Provides the abstract key-value interface and its implementations
(in-memory and Google Sheets).
"""

from subsentry.services.storage.interface import (
    SESSION_KEY,
    SUBSCRIPTIONS_KEY_PREFIX,
    USERS_KEY,
    ConnectionError,
    CorruptDataError,
    KeyValueStore,
    StorageError,
    subscriptions_key,
)
from subsentry.services.storage.memory import InMemoryKeyValueStore
from subsentry.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
)

__all__ = [
    # Interface and key conventions
    "KeyValueStore",
    "SESSION_KEY",
    "SUBSCRIPTIONS_KEY_PREFIX",
    "USERS_KEY",
    "subscriptions_key",
    # Exceptions
    "ConnectionError",
    "CorruptDataError",
    "StorageError",
    # Implementations
    "InMemoryKeyValueStore",
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStore",
]
