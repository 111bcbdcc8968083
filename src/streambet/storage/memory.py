from __future__ import annotations

import asyncio

from streambet.storage.base import KeyValueStore


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store for development and tests."""

    name = "memory"
    supports_compare_and_set = True
    supports_scan = True

    def __init__(self, data: dict[str, bytes] | None = None) -> None:
        self._data: dict[str, bytes] = dict(data or {})
        self._lock = asyncio.Lock()
        self.available = True

    async def get_data(self, key: str) -> bytes:
        return self._data.get(key, b"")

    async def set_data(self, key: str, value: bytes) -> None:
        async with self._lock:
            self._data[key] = bytes(value)

    async def is_available(self) -> bool:
        return self.available

    async def compare_and_set(self, key: str, expected: bytes, value: bytes) -> bool:
        async with self._lock:
            if self._data.get(key, b"") != expected:
                return False
            self._data[key] = bytes(value)
            return True

    async def scan_keys(self, prefix: str) -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))

    def raw(self) -> dict[str, bytes]:
        return dict(self._data)
