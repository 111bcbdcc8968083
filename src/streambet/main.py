from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from streambet.codec import ObscuredValueCodec
from streambet.config import Settings, settings as default_settings
from streambet.ledger import BetLedger
from streambet.monitoring.logging_config import setup_logging
from streambet.services.bet_manager import BetRecordManager
from streambet.services.disclosure import DisclosureProtocol
from streambet.services.index_reconciler import IndexReconciler
from streambet.services.settlement import SettlementStateMachine
from streambet.storage import LedgerStoreAdapter, build_store
from streambet.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


def create_ledger(settings: Settings | None = None, store: KeyValueStore | None = None) -> BetLedger:
    s = settings or default_settings
    store = store or build_store(s)
    codec = ObscuredValueCodec()
    adapter = LedgerStoreAdapter(store, settings=s)
    settlement = SettlementStateMachine(adapter, codec=codec)
    return BetLedger(
        adapter=adapter,
        manager=BetRecordManager(adapter, settlement, codec=codec, settings=s),
        settlement=settlement,
        disclosure=DisclosureProtocol(codec=codec, settings=s),
        reconciler=IndexReconciler(adapter),
    )


@asynccontextmanager
async def open_ledger(
    settings: Settings | None = None, store: KeyValueStore | None = None
) -> AsyncIterator[BetLedger]:
    s = settings or default_settings
    setup_logging(s)
    ledger = create_ledger(s, store=store)
    await ledger.adapter.store.initialize()
    logger.info("Ledger opened", extra={"backend": ledger.adapter.store.name})
    try:
        yield ledger
    finally:
        await ledger.adapter.store.close()
