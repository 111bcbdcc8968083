from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from streambet.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class HealthStatus:
    component: str
    healthy: bool
    latency_ms: float | None = None
    message: str | None = None


async def check_store(store: KeyValueStore) -> HealthStatus:
    component = f"store:{store.name}"
    start = time.monotonic()
    try:
        available = await store.is_available()
    except Exception as e:
        logger.warning("Store health check failed", extra={"backend": store.name, "error": str(e)})
        return HealthStatus(component, False, message=str(e))
    latency = (time.monotonic() - start) * 1000
    if not available:
        return HealthStatus(component, False, latency_ms=latency, message="Store reports unavailable")
    return HealthStatus(component, True, latency_ms=latency)
