"""In-memory key-value store for tests and local runs."""

from typing import Optional

from subsentry.services.storage.interface import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """
    Dict-backed store.

    Values are kept as the exact strings written, so tests can inspect
    the serialized JSON just as a real backend would hold it.
    """

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        """Copy of everything stored (for debugging and tests)."""
        return dict(self._data)
