"""Sequential nonce tracking for the operator account.

Ledger writes are plain contract transactions from a single operator key.
The local counter avoids a round trip per write and keeps concurrent
coroutines from reusing a nonce.
"""
from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class NonceManager:
    def __init__(self, w3, address: str):
        self._w3 = w3
        self._address = address
        self._lock = asyncio.Lock()
        self._next: int | None = None

    async def acquire(self) -> int:
        """Hand out the next nonce, syncing with the pending pool on first use."""
        async with self._lock:
            if self._next is None:
                self._next = await self._w3.eth.get_transaction_count(self._address, "pending")
            nonce = self._next
            self._next += 1
            return nonce

    async def release(self, nonce: int) -> None:
        """Give back a nonce whose transaction never reached the node."""
        async with self._lock:
            if self._next is not None and self._next == nonce + 1:
                self._next = nonce

    async def resync(self) -> None:
        """Forget the local counter; the next acquire re-reads the chain."""
        async with self._lock:
            logger.info("Nonce resync requested", extra={"address": self._address})
            self._next = None
