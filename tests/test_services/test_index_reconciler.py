"""Tests for IndexReconciler."""
from __future__ import annotations

import random

import pytest

from streambet.errors import StoreUnavailableError, UnsupportedStoreOperationError
from streambet.services.bet_manager import BetRecordManager
from streambet.services.index_reconciler import IndexReconciler
from streambet.services.settlement import SettlementStateMachine
from streambet.storage.adapter import LedgerStoreAdapter
from tests.conftest import FlakyStore, PlainStore


class TestReconcile:
    async def test_clean_ledger(self, manager, adapter, bettor):
        await manager.create_bet("LOL", "Team A wins", 1.0, bettor)
        report = await IndexReconciler(adapter).reconcile()
        assert report.scanned == 1
        assert report.added == []
        assert report.dangling == []

    async def test_orphans_reindexed_oldest_first(self, test_settings, codec, clock, bettor):
        store = FlakyStore({"bet_keys"})
        adapter = LedgerStoreAdapter(store, settings=test_settings)
        manager = BetRecordManager(
            adapter, SettlementStateMachine(adapter, codec=codec),
            codec=codec, settings=test_settings, rng=random.Random(9), clock=clock,
        )
        orphans = []
        for _ in range(2):
            with pytest.raises(StoreUnavailableError) as exc:
                await manager.create_bet("LOL", "Team A wins", 1.0, bettor)
            orphans.append(exc.value.key)
            clock.advance(-10)

        store.fail_keys.clear()
        report = await IndexReconciler(adapter).reconcile()

        assert report.added == list(reversed(orphans))
        assert {b.id for b in await manager.list_bets()} == set(orphans)

    async def test_dangling_entries_reported_not_removed(self, manager, adapter, bettor):
        key = await manager.create_bet("LOL", "Team A wins", 1.0, bettor)
        await adapter.append_key("ghost")
        report = await IndexReconciler(adapter).reconcile()
        assert report.dangling == ["ghost"]
        assert await adapter.read_index() == [key, "ghost"]

    async def test_unreadable_records_not_indexed(self, adapter, store):
        await store.set_data("bet_junk", b"{nope")
        report = await IndexReconciler(adapter).reconcile()
        assert report.unreadable == ["junk"]
        assert await adapter.read_index() == []

    async def test_failed_append_reported(self, test_settings, codec, clock, bettor):
        store = FlakyStore({"bet_keys"})
        adapter = LedgerStoreAdapter(store, settings=test_settings)
        manager = BetRecordManager(
            adapter, SettlementStateMachine(adapter, codec=codec),
            codec=codec, settings=test_settings, rng=random.Random(5), clock=clock,
        )
        with pytest.raises(StoreUnavailableError) as exc:
            await manager.create_bet("LOL", "Team A wins", 1.0, bettor)

        report = await IndexReconciler(adapter).reconcile()
        assert report.failed == [exc.value.key]
        assert report.added == []

    async def test_store_without_scan(self, test_settings):
        adapter = LedgerStoreAdapter(PlainStore(), settings=test_settings)
        with pytest.raises(UnsupportedStoreOperationError):
            await IndexReconciler(adapter).reconcile()
