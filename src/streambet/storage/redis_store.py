from __future__ import annotations

import re

import redis.asyncio as aioredis

from streambet.config import Settings, settings as default_settings
from streambet.storage.base import KeyValueStore

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


class RedisKeyValueStore(KeyValueStore):
    name = "redis"
    supports_compare_and_set = True
    supports_scan = True

    def __init__(self, settings: Settings | None = None, client: aioredis.Redis | None = None) -> None:
        self._settings = settings or default_settings
        self._client = client

    async def initialize(self) -> None:
        if self._client is None:
            self._client = self._connect()

    def _connect(self) -> aioredis.Redis:
        return aioredis.from_url(
            self._settings.redis_url,
            decode_responses=False,
            max_connections=20,
        )

    @property
    def client(self) -> aioredis.Redis:
        if self._client is None:
            # from_url is synchronous, safe to create lazily
            self._client = self._connect()
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get_data(self, key: str) -> bytes:
        value = await self.client.get(key)
        return value or b""

    async def set_data(self, key: str, value: bytes) -> None:
        await self.client.set(key, value)

    async def is_available(self) -> bool:
        return bool(await self.client.ping())

    # --- Lua script helpers ---

    _COMPARE_AND_SET_LUA = """
local current = redis.call('GET', KEYS[1])
if current == false then
    current = ''
end
if current == ARGV[1] then
    redis.call('SET', KEYS[1], ARGV[2])
    return 1
end
return 0
"""

    async def compare_and_set(self, key: str, expected: bytes, value: bytes) -> bool:
        """Atomic swap: only writes when the stored bytes still equal ``expected``."""
        result = await self.client.eval(self._COMPARE_AND_SET_LUA, 1, key, expected, value)
        return int(result) == 1

    async def scan_keys(self, prefix: str) -> list[str]:
        pattern = _GLOB_SPECIAL.sub(r"\\\1", prefix) + "*"
        keys = []
        async for key in self.client.scan_iter(match=pattern, count=500):
            keys.append(key.decode() if isinstance(key, bytes) else key)
        return sorted(keys)
