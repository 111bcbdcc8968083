from __future__ import annotations

from streambet.config import Settings
from streambet.evm.client import KeyValueContractClient
from streambet.storage.base import KeyValueStore


class ContractKeyValueStore(KeyValueStore):
    """Ledger persisted in the generic on-chain key/value contract.

    The contract offers neither compare-and-set nor key enumeration, so
    versioned writes fall back to read-check-write and index reconciliation
    is unavailable.
    """

    name = "contract"

    def __init__(self, settings: Settings | None = None, client: KeyValueContractClient | None = None) -> None:
        self.client = client or KeyValueContractClient(settings)

    async def initialize(self) -> None:
        await self.client.initialize()

    async def close(self) -> None:
        await self.client.close()

    async def get_data(self, key: str) -> bytes:
        return await self.client.get_data(key)

    async def set_data(self, key: str, value: bytes) -> None:
        await self.client.set_data(key, value)

    async def is_available(self) -> bool:
        return await self.client.is_available()
