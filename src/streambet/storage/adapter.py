"""Ledger persistence on top of an opaque key/value store.

Layout:
  ``bet_keys``     JSON array of bet ids, append-only
  ``bet_<id>``     JSON object per bet (amount, timestamp, better, gameId,
                   prediction, odds, status, version)

Reads are tolerant: absent or malformed payloads come back as empty/None and
are logged, so one corrupt entry cannot hide the rest of the ledger. Store
failures are raised as StoreUnavailableError.

Writes are versioned. A record written with ``version == 0`` must not exist
yet; any other version must replace exactly ``version - 1``. Stores with
compare-and-set make that check atomic; the others re-read before writing,
which narrows but does not close the race.
"""
from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from streambet.config import Settings, settings as default_settings
from streambet.errors import StaleWriteError, StoreUnavailableError, UnsupportedStoreOperationError
from streambet.models import BetRecord
from streambet.monitoring.metrics import malformed_payloads_total, store_requests_total
from streambet.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


def _encode(payload) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


class LedgerStoreAdapter:
    def __init__(self, store: KeyValueStore, settings: Settings | None = None) -> None:
        self.store = store
        self._settings = settings or default_settings
        self._index_cache: tuple[str, ...] = ()

    @property
    def index_key(self) -> str:
        return self._settings.index_key

    def storage_key(self, key: str) -> str:
        return f"{self._settings.record_key_prefix}{key}"

    @property
    def cached_index(self) -> tuple[str, ...]:
        """Index as of the last read or append. Soft cache; never authoritative."""
        return self._index_cache

    # ── Raw store access ──

    async def ensure_available(self) -> None:
        try:
            available = await self.store.is_available()
        except Exception as e:
            store_requests_total.labels(op="is_available", status="error").inc()
            raise StoreUnavailableError(f"Store availability check failed: {e}") from e
        if not available:
            store_requests_total.labels(op="is_available", status="unavailable").inc()
            raise StoreUnavailableError(f"Store '{self.store.name}' reports unavailable")

    async def _get(self, storage_key: str) -> bytes:
        try:
            raw = await self.store.get_data(storage_key)
        except Exception as e:
            store_requests_total.labels(op="get", status="error").inc()
            raise StoreUnavailableError(f"Read of '{storage_key}' failed: {e}", key=storage_key) from e
        store_requests_total.labels(op="get", status="ok").inc()
        return bytes(raw or b"")

    async def _set(self, storage_key: str, value: bytes, expected: bytes) -> None:
        try:
            if self.store.supports_compare_and_set:
                swapped = await self.store.compare_and_set(storage_key, expected, value)
            else:
                await self.store.set_data(storage_key, value)
                swapped = True
        except Exception as e:
            store_requests_total.labels(op="set", status="error").inc()
            raise StoreUnavailableError(f"Write of '{storage_key}' failed: {e}", key=storage_key) from e
        if not swapped:
            store_requests_total.labels(op="set", status="conflict").inc()
            raise StaleWriteError(storage_key, None, None)
        store_requests_total.labels(op="set", status="ok").inc()

    # ── Index ──

    def _parse_index(self, raw: bytes) -> list[str]:
        if not raw.strip():
            return []
        try:
            keys = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            self._report_malformed("index", self.index_key, str(e))
            return []
        if not isinstance(keys, list) or not all(isinstance(k, str) for k in keys):
            self._report_malformed("index", self.index_key, "not a list of strings")
            return []
        # Drop duplicate entries, keeping first position
        return list(dict.fromkeys(keys))

    async def read_index(self) -> list[str]:
        keys = self._parse_index(await self._get(self.index_key))
        self._index_cache = tuple(keys)
        return keys

    async def append_key(self, key: str) -> None:
        """Append ``key`` to the index unless it is already there."""
        raw = await self._get(self.index_key)
        keys = self._parse_index(raw)
        if key in keys:
            self._index_cache = tuple(keys)
            return
        keys.append(key)
        try:
            await self._set(self.index_key, _encode(keys), expected=raw)
        except StaleWriteError:
            logger.warning("Index changed during append", extra={"key": key})
            raise
        self._index_cache = tuple(keys)

    # ── Records ──

    def _parse_record(self, key: str, raw: bytes) -> BetRecord | None:
        if not raw.strip():
            return None
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            self._report_malformed("record", key, str(e))
            return None
        if not isinstance(data, dict):
            self._report_malformed("record", key, "not a JSON object")
            return None
        try:
            return BetRecord.from_payload(key, data)
        except ValidationError as e:
            self._report_malformed("record", key, f"{e.error_count()} invalid field(s)")
            return None

    async def read_record(self, key: str) -> BetRecord | None:
        return self._parse_record(key, await self._get(self.storage_key(key)))

    async def write_record(self, key: str, record: BetRecord) -> None:
        """Write ``record`` under ``key`` if the stored version is the one it follows.

        Version 0 creates and requires an empty slot; version N requires N - 1.
        """
        storage_key = self.storage_key(key)
        raw = await self._get(storage_key)
        current = self._parse_record(key, raw)

        if record.version == 0:
            if raw.strip():
                raise StaleWriteError(key, None, current.version if current else None)
        else:
            expected = record.version - 1
            if current is None or current.version != expected:
                raise StaleWriteError(key, expected, current.version if current else None)

        try:
            await self._set(storage_key, _encode(record.to_payload()), expected=raw)
        except StaleWriteError:
            logger.warning(
                "Concurrent write rejected",
                extra={"key": key, "version": record.version},
            )
            raise StaleWriteError(key, record.version - 1 if record.version else None, None)

    async def scan_record_keys(self) -> list[str]:
        """Every bet id with a stored payload, found by scanning the store."""
        if not self.store.supports_scan:
            raise UnsupportedStoreOperationError(self.store.name, "key scans")
        prefix = self._settings.record_key_prefix
        try:
            storage_keys = await self.store.scan_keys(prefix)
        except Exception as e:
            store_requests_total.labels(op="scan", status="error").inc()
            raise StoreUnavailableError(f"Key scan failed: {e}") from e
        store_requests_total.labels(op="scan", status="ok").inc()
        return [k[len(prefix):] for k in storage_keys if k != self.index_key]

    def _report_malformed(self, kind: str, key: str, reason: str) -> None:
        malformed_payloads_total.labels(kind=kind).inc()
        logger.warning("Malformed stored payload skipped", extra={"kind": kind, "key": key, "reason": reason})
