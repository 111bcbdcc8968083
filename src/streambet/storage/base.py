from __future__ import annotations

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """Opaque byte-oriented key/value service the ledger persists through.

    ``get_data`` returns ``b""`` for a key that was never written.
    """

    name: str = "abstract"
    supports_compare_and_set: bool = False
    supports_scan: bool = False

    async def initialize(self) -> None:
        """Open connections. Backends without setup leave this as a no-op."""

    async def close(self) -> None:
        """Release connections."""

    @abstractmethod
    async def get_data(self, key: str) -> bytes: ...

    @abstractmethod
    async def set_data(self, key: str, value: bytes) -> None: ...

    @abstractmethod
    async def is_available(self) -> bool: ...

    async def compare_and_set(self, key: str, expected: bytes, value: bytes) -> bool:
        """Write ``value`` only if the stored bytes equal ``expected``.

        ``expected == b""`` means the key must be absent. Returns False when
        the stored bytes differ.
        """
        raise NotImplementedError(f"{self.name} does not support compare-and-set")

    async def scan_keys(self, prefix: str) -> list[str]:
        raise NotImplementedError(f"{self.name} does not support key scans")
