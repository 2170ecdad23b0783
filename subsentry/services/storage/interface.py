"""
Abstract Storage Interface

DESIGN DECISION: SubSentry persists through a plain async key-value store.
This allows us to:
1. Run entirely in memory for tests and local use
2. Swap in Google Sheets (or anything else) without touching business logic
3. Inject the store explicitly instead of relying on a global singleton

The interface is intentionally tiny - no transactions, no listing.
Values are UTF-8 JSON strings; callers own the serialization.
"""

from abc import ABC, abstractmethod
from typing import Optional


# Storage key conventions
SESSION_KEY = "session"
USERS_KEY = "users"
SUBSCRIPTIONS_KEY_PREFIX = "subs_"


def subscriptions_key(user_id: str) -> str:
    """Storage key holding one user's full subscription list."""
    return f"{SUBSCRIPTIONS_KEY_PREFIX}{user_id}"


class KeyValueStore(ABC):
    """
    Abstract async key-value store.

    Any backend (in-memory, Google Sheets, ...) must implement these
    three methods. Every backend failure is raised as StorageError.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under key.

        Returns:
            The stored string, or None if the key is absent

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """
        Store value under key, replacing any previous value.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """
        Remove key. Deleting an absent key is not an error.

        Raises:
            StorageError: If the delete fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class CorruptDataError(StorageError):
    """A stored value could not be decoded into the expected entities."""
    pass
