from __future__ import annotations

from streambet.config import Settings, settings as default_settings
from streambet.storage.adapter import LedgerStoreAdapter
from streambet.storage.base import KeyValueStore
from streambet.storage.contract_store import ContractKeyValueStore
from streambet.storage.memory import MemoryKeyValueStore
from streambet.storage.redis_store import RedisKeyValueStore

_STORE_REGISTRY: dict[str, type[KeyValueStore]] = {
    "memory": MemoryKeyValueStore,
    "redis": RedisKeyValueStore,
    "contract": ContractKeyValueStore,
}


def build_store(settings: Settings | None = None) -> KeyValueStore:
    """Instantiate the backend named by ``settings.store_backend``.

    Raises ValueError if the backend name is not registered.
    """
    s = settings or default_settings
    store_cls = _STORE_REGISTRY.get(s.store_backend)
    if store_cls is None:
        raise ValueError(
            f"Unknown store backend '{s.store_backend}'. Available: {list(_STORE_REGISTRY)}"
        )
    if store_cls is MemoryKeyValueStore:
        return MemoryKeyValueStore()
    return store_cls(settings=s)


__all__ = [
    "KeyValueStore",
    "LedgerStoreAdapter",
    "MemoryKeyValueStore",
    "RedisKeyValueStore",
    "ContractKeyValueStore",
    "build_store",
]
