"""In-process surface the UI layer drives.

Holds no state of its own beyond the collaborators; every call goes to the
store.
"""
from __future__ import annotations

import logging

from streambet.codec import ObscuredToken
from streambet.models import BetRecord, BetStatus, DisclosureChallenge, DisclosureSession, LedgerSummary
from streambet.services.bet_manager import BetRecordManager, filter_bets, summarize
from streambet.services.disclosure import DisclosureProtocol, Signer
from streambet.services.index_reconciler import IndexReconciler, ReconcileReport
from streambet.services.settlement import SettlementStateMachine
from streambet.storage.adapter import LedgerStoreAdapter

logger = logging.getLogger(__name__)


class BetLedger:
    def __init__(
        self,
        adapter: LedgerStoreAdapter,
        manager: BetRecordManager,
        settlement: SettlementStateMachine,
        disclosure: DisclosureProtocol,
        reconciler: IndexReconciler,
    ) -> None:
        self.adapter = adapter
        self.manager = manager
        self.settlement = settlement
        self.disclosure = disclosure
        self.reconciler = reconciler

    # ── Bets ──

    async def create_bet(self, game_id: str, prediction: str, amount: float, bettor: str) -> str:
        return await self.manager.create_bet(game_id, prediction, amount, bettor)

    async def list_bets(self) -> list[BetRecord]:
        return await self.manager.list_bets()

    async def get_bet(self, key: str) -> BetRecord:
        return await self.manager.get_bet(key)

    async def settle(self, key: str, outcome: BetStatus | str) -> BetRecord:
        return await self.settlement.settle(key, outcome)

    async def cancel_bet(self, key: str, requester: str) -> BetRecord:
        return await self.manager.cancel_bet(key, requester)

    async def summary(self) -> LedgerSummary:
        return summarize(await self.list_bets())

    async def search(self, search: str = "", status: str = "all") -> list[BetRecord]:
        return filter_bets(await self.list_bets(), search=search, status=status)

    async def reconcile_index(self) -> ReconcileReport:
        return await self.reconciler.reconcile()

    # ── Disclosure ──

    def build_challenge(self, session: DisclosureSession) -> DisclosureChallenge:
        return self.disclosure.build_challenge(session)

    async def decrypt_with_authorization(
        self,
        token: ObscuredToken,
        challenge: DisclosureChallenge,
        signer: Signer,
        expected_address: str | None = None,
    ) -> float:
        return await self.disclosure.decrypt_with_authorization(
            token, challenge, signer, expected_address=expected_address
        )

    async def reveal_amount(self, key: str, challenge: DisclosureChallenge, signer: Signer) -> float:
        """Disclose a bet's current amount to the wallet that placed it."""
        record = await self.manager.get_bet(key)
        return await self.disclosure.decrypt_with_authorization(
            record.amount, challenge, signer, expected_address=record.bettor
        )
