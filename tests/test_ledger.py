"""End-to-end flows through the BetLedger facade."""
from __future__ import annotations

import pytest

from streambet.errors import AuthorizationDeclinedError, InvalidTransitionError, NotFoundError
from streambet.models import BetStatus, DisclosureSession
from streambet.services.disclosure import resolve_session
from tests.conftest import DecliningSigner


@pytest.fixture
async def session(store, test_settings, clock) -> DisclosureSession:
    return await resolve_session(store, test_settings, clock=clock)


class TestBettingFlow:
    async def test_place_settle_reveal(self, ledger, session, codec, bettor, bettor_signer):
        key = await ledger.create_bet("LOL", "Team A wins", 1.0, bettor)

        bets = await ledger.list_bets()
        assert len(bets) == 1
        assert bets[0].id == key
        assert bets[0].status is BetStatus.PENDING
        assert 1.5 <= bets[0].odds < 2.0

        await ledger.settle(key, "won")
        settled = await ledger.get_bet(key)
        assert settled.status is BetStatus.WON
        assert codec.decode(settled.amount) == 2.0

        challenge = ledger.build_challenge(session)
        amount = await ledger.decrypt_with_authorization(settled.amount, challenge, bettor_signer)
        assert amount == 2.0

    async def test_reveal_to_owner_only(self, ledger, session, bettor, bettor_signer, other_signer):
        key = await ledger.create_bet("VALORANT", "Sentinels", 3.5, bettor)
        challenge = ledger.build_challenge(session)

        assert await ledger.reveal_amount(key, challenge, bettor_signer) == 3.5
        with pytest.raises(AuthorizationDeclinedError):
            await ledger.reveal_amount(key, challenge, other_signer)

    async def test_declined_reveal(self, ledger, session, bettor):
        key = await ledger.create_bet("PUBG", "Squad 4", 1.0, bettor)
        with pytest.raises(AuthorizationDeclinedError):
            await ledger.reveal_amount(key, ledger.build_challenge(session), DecliningSigner())

    async def test_reveal_missing_bet(self, ledger, session, bettor_signer):
        with pytest.raises(NotFoundError):
            await ledger.reveal_amount("nope", ledger.build_challenge(session), bettor_signer)

    async def test_cancel_then_settle(self, ledger, bettor):
        key = await ledger.create_bet("LOL", "Team A wins", 1.0, bettor)
        await ledger.cancel_bet(key, bettor)
        with pytest.raises(InvalidTransitionError):
            await ledger.settle(key, "won")

    async def test_summary_and_search(self, ledger, bettor):
        k1 = await ledger.create_bet("LOL", "Team A wins", 1.0, bettor)
        await ledger.create_bet("DOTA2", "Radiant", 1.0, bettor)
        await ledger.settle(k1, "lost")

        summary = await ledger.summary()
        assert (summary.total, summary.pending, summary.lost) == (2, 1, 1)
        assert [b.id for b in await ledger.search("team a", status="lost")] == [k1]

    async def test_reconcile_index(self, ledger, adapter, store, bettor):
        key = await ledger.create_bet("LOL", "Team A wins", 1.0, bettor)
        await store.set_data("bet_keys", b"[]")
        report = await ledger.reconcile_index()
        assert report.added == [key]
        assert [b.id for b in await ledger.list_bets()] == [key]
