"""Services package."""

from subsentry.services.storage import (
    ConnectionError,
    CorruptDataError,
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
    InMemoryKeyValueStore,
    KeyValueStore,
    StorageError,
)

__all__ = [
    "ConnectionError",
    "CorruptDataError",
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStore",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "StorageError",
]
