"""Bet status state machine.

    pending ──► won       (amount ← transform(amount, double))
            ├─► lost      (amount unchanged)
            └─► canceled  (amount unchanged)

Terminal states have no outgoing transitions. Every transition is persisted
with a single versioned write carrying both the new status and the new
amount, so a transition is applied completely or not at all.
"""
from __future__ import annotations

import logging

from streambet.codec import ObscuredValueCodec, Operation, codec as default_codec
from streambet.errors import InvalidTransitionError, NotFoundError
from streambet.models import BetRecord, BetStatus
from streambet.monitoring.metrics import ledger_ops_total
from streambet.storage.adapter import LedgerStoreAdapter

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[BetStatus, frozenset[BetStatus]] = {
    BetStatus.PENDING: frozenset({BetStatus.WON, BetStatus.LOST, BetStatus.CANCELED}),
    BetStatus.WON: frozenset(),
    BetStatus.LOST: frozenset(),
    BetStatus.CANCELED: frozenset(),
}

SETTLEMENT_OUTCOMES = frozenset({BetStatus.WON, BetStatus.LOST})

# Fixed payout multiplier; recorded odds do not weight the payout.
PAYOUT_OPERATION = Operation.DOUBLE


def advance(record: BetRecord, target: BetStatus, codec: ObscuredValueCodec) -> BetRecord:
    """Return the record after moving to ``target``. Does not persist."""
    if target not in ALLOWED_TRANSITIONS[record.status]:
        raise InvalidTransitionError(record.id, record.status.value, target.value)
    update: dict = {"status": target, "version": record.version + 1}
    if target is BetStatus.WON:
        update["amount"] = codec.transform(record.amount, PAYOUT_OPERATION)
    return record.model_copy(update=update)


class SettlementStateMachine:
    def __init__(self, adapter: LedgerStoreAdapter, codec: ObscuredValueCodec | None = None) -> None:
        self._adapter = adapter
        self._codec = codec or default_codec

    async def transition(self, record: BetRecord, target: BetStatus) -> BetRecord:
        """Validate, apply and persist one transition of an already-read record."""
        updated = advance(record, target, self._codec)
        await self._adapter.write_record(record.id, updated)
        logger.info(
            "Bet status changed",
            extra={
                "key": record.id,
                "old_status": record.status.value,
                "new_status": target.value,
                "version": updated.version,
            },
        )
        return updated

    async def settle(self, key: str, outcome: BetStatus | str) -> BetRecord:
        target = BetStatus(outcome)
        if target not in SETTLEMENT_OUTCOMES:
            raise ValueError(f"Settlement outcome must be 'won' or 'lost', got '{target.value}'")

        await self._adapter.ensure_available()
        record = await self._adapter.read_record(key)
        if record is None:
            ledger_ops_total.labels(operation="settle", status="not_found").inc()
            raise NotFoundError(key)

        try:
            updated = await self.transition(record, target)
        except InvalidTransitionError:
            ledger_ops_total.labels(operation="settle", status="invalid_transition").inc()
            raise
        ledger_ops_total.labels(operation="settle", status="ok").inc()
        return updated
