from __future__ import annotations

import logging
import math
import random
import string
import time
from numbers import Real
from typing import Callable, Iterable

from streambet.codec import ObscuredValueCodec, codec as default_codec
from streambet.config import Settings, settings as default_settings
from streambet.errors import (
    InvalidBetError,
    NotFoundError,
    NotOwnerError,
    StaleWriteError,
    StoreUnavailableError,
)
from streambet.models import BetRecord, BetStatus, LedgerSummary, is_evm_address
from streambet.monitoring.metrics import ledger_ops_total
from streambet.services.settlement import SettlementStateMachine
from streambet.storage.adapter import LedgerStoreAdapter

logger = logging.getLogger(__name__)

KEY_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
KEY_SUFFIX_LENGTH = 7
MAX_KEY_ATTEMPTS = 5


class BetRecordManager:
    """Owns bet creation, listing and cancellation against the key index."""

    def __init__(
        self,
        adapter: LedgerStoreAdapter,
        settlement: SettlementStateMachine,
        codec: ObscuredValueCodec | None = None,
        settings: Settings | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._adapter = adapter
        self._settlement = settlement
        self._codec = codec or default_codec
        self._settings = settings or default_settings
        self._rng = rng or random.SystemRandom()
        self._clock = clock

    # ── Reads ──

    async def list_bets(self) -> list[BetRecord]:
        """All readable bets, newest first. Unreadable index entries are skipped."""
        await self._adapter.ensure_available()
        bets = []
        for key in await self._adapter.read_index():
            try:
                record = await self._adapter.read_record(key)
            except StoreUnavailableError as e:
                logger.error("Failed to load bet, skipping", extra={"key": key, "error": str(e)})
                continue
            if record is None:
                logger.warning("Indexed bet has no readable record, skipping", extra={"key": key})
                continue
            bets.append(record)
        # sort() is stable, so equal timestamps keep index order
        bets.sort(key=lambda b: b.timestamp, reverse=True)
        return bets

    async def get_bet(self, key: str) -> BetRecord:
        await self._adapter.ensure_available()
        record = await self._adapter.read_record(key)
        if record is None:
            raise NotFoundError(key)
        return record

    # ── Writes ──

    def _validate(self, game_id: str, prediction: str, amount, bettor: str) -> None:
        if not game_id or not game_id.strip():
            raise InvalidBetError("Game id is required")
        if game_id not in self._settings.active_game_list:
            raise InvalidBetError(
                f"Game '{game_id}' is not active. Active: {self._settings.active_game_list}"
            )
        if not prediction or not prediction.strip():
            raise InvalidBetError("Prediction is required")
        if isinstance(amount, bool) or not isinstance(amount, Real):
            raise InvalidBetError("Amount must be a number")
        if not math.isfinite(amount) or amount <= 0:
            raise InvalidBetError("Amount must be a finite number greater than zero")
        if not is_evm_address(bettor):
            raise InvalidBetError("Bettor must be an EVM address (0x + 40 hex chars)")

    def _new_key(self) -> str:
        suffix = "".join(self._rng.choice(KEY_SUFFIX_ALPHABET) for _ in range(KEY_SUFFIX_LENGTH))
        return f"{int(self._clock() * 1000)}-{suffix}"

    def _draw_odds(self) -> float:
        low, high = self._settings.odds_min, self._settings.odds_max
        return low + self._rng.random() * (high - low)

    async def _unused_key(self) -> str:
        for _ in range(MAX_KEY_ATTEMPTS):
            key = self._new_key()
            if await self._adapter.read_record(key) is None:
                return key
        raise StoreUnavailableError(f"Could not find an unused bet key in {MAX_KEY_ATTEMPTS} attempts")

    async def create_bet(self, game_id: str, prediction: str, amount: float, bettor: str) -> str:
        """Store a new pending bet and index it. Returns the new key.

        The record is written before the index. If the index append fails the
        record is orphaned until IndexReconciler runs; the failure is raised
        as StoreUnavailableError carrying the key.
        """
        self._validate(game_id, prediction, amount, bettor)
        await self._adapter.ensure_available()

        key = await self._unused_key()
        record = BetRecord(
            id=key,
            amount=self._codec.encode(amount),
            timestamp=int(self._clock()),
            bettor=bettor,
            game_id=game_id,
            prediction=prediction,
            odds=self._draw_odds(),
            status=BetStatus.PENDING,
        )
        await self._adapter.write_record(key, record)

        try:
            await self._adapter.append_key(key)
        except (StoreUnavailableError, StaleWriteError) as e:
            ledger_ops_total.labels(operation="create", status="index_failed").inc()
            logger.error(
                "Bet record written but index append failed; run index reconciliation",
                extra={"key": key, "error": str(e)},
            )
            raise StoreUnavailableError(f"Bet '{key}' stored but not indexed: {e}", key=key) from e

        ledger_ops_total.labels(operation="create", status="ok").inc()
        logger.info(
            "Bet created",
            extra={"key": key, "game_id": game_id, "bettor": bettor, "odds": round(record.odds, 4)},
        )
        return key

    async def cancel_bet(self, key: str, requester: str) -> BetRecord:
        record = await self.get_bet(key)
        if not record.is_owned_by(requester):
            ledger_ops_total.labels(operation="cancel", status="not_owner").inc()
            raise NotOwnerError(key, requester)
        updated = await self._settlement.transition(record, BetStatus.CANCELED)
        ledger_ops_total.labels(operation="cancel", status="ok").inc()
        return updated


# ── Views ──


def summarize(bets: Iterable[BetRecord]) -> LedgerSummary:
    counts = {status: 0 for status in BetStatus}
    total = 0
    for bet in bets:
        counts[bet.status] += 1
        total += 1
    return LedgerSummary(
        total=total,
        pending=counts[BetStatus.PENDING],
        won=counts[BetStatus.WON],
        lost=counts[BetStatus.LOST],
        canceled=counts[BetStatus.CANCELED],
    )


def filter_bets(bets: Iterable[BetRecord], search: str = "", status: str = "all") -> list[BetRecord]:
    """Case-insensitive match on game id or prediction, plus an optional status."""
    needle = search.lower()
    return [
        bet
        for bet in bets
        if (needle in bet.game_id.lower() or needle in bet.prediction.lower())
        and (status == "all" or bet.status.value == status)
    ]
