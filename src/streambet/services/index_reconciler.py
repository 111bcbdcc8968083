"""Rebuilds missing index entries from a full record scan.

Bet creation writes the record and then appends to the index in two separate
store calls. When the second call fails the record exists but is invisible to
``list_bets``. A reconciliation pass:

  - appends every stored, readable record missing from the index, oldest first
  - reports index entries with no stored record (dangling); the index is
    append-only so these are never removed, and listing already skips them

Needs a store that can enumerate keys (memory, redis).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from streambet.errors import StaleWriteError, StoreUnavailableError
from streambet.monitoring.metrics import ledger_ops_total
from streambet.storage.adapter import LedgerStoreAdapter

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    scanned: int = 0
    added: list[str] = field(default_factory=list)
    dangling: list[str] = field(default_factory=list)
    unreadable: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class IndexReconciler:
    def __init__(self, adapter: LedgerStoreAdapter) -> None:
        self._adapter = adapter

    async def reconcile(self) -> ReconcileReport:
        await self._adapter.ensure_available()
        stored_keys = await self._adapter.scan_record_keys()
        index = await self._adapter.read_index()
        indexed = set(index)
        report = ReconcileReport(scanned=len(stored_keys))

        orphans = []
        for key in stored_keys:
            if key in indexed:
                continue
            record = await self._adapter.read_record(key)
            if record is None:
                report.unreadable.append(key)
                continue
            orphans.append(record)

        orphans.sort(key=lambda r: r.timestamp)
        for record in orphans:
            try:
                await self._adapter.append_key(record.id)
            except (StaleWriteError, StoreUnavailableError):
                logger.exception("Error re-indexing bet", extra={"key": record.id})
                report.failed.append(record.id)
                continue
            report.added.append(record.id)
            logger.info("Orphaned bet re-indexed", extra={"key": record.id})

        stored = set(stored_keys)
        report.dangling = [key for key in index if key not in stored]

        ledger_ops_total.labels(
            operation="reconcile", status="ok" if not report.failed else "partial"
        ).inc()
        logger.info(
            "Index reconciliation finished",
            extra={
                "scanned": report.scanned,
                "added": len(report.added),
                "dangling": len(report.dangling),
                "unreadable": len(report.unreadable),
                "failed": len(report.failed),
            },
        )
        return report
