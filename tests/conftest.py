"""Shared fixtures.

Every test runs against an in-memory key/value store. Wallet signatures use
real eth_account keys; Redis and the web3 contract are mocked in their own
test modules.
"""
from __future__ import annotations

import random

import pytest

from streambet.codec import ObscuredValueCodec
from streambet.config import Settings
from streambet.ledger import BetLedger
from streambet.services.bet_manager import BetRecordManager
from streambet.services.disclosure import DisclosureProtocol, LocalAccountSigner
from streambet.services.index_reconciler import IndexReconciler
from streambet.services.settlement import SettlementStateMachine
from streambet.storage.adapter import LedgerStoreAdapter
from streambet.storage.memory import MemoryKeyValueStore

BETTOR_KEY = "0x" + "11" * 32
OTHER_KEY = "0x" + "22" * 32
CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
NOW = 1_760_000_000


class FakeClock:
    def __init__(self, start: float = NOW) -> None:
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class DecliningSigner:
    """Wallet that rejects every signature prompt."""

    address = "0x" + "33" * 20

    def __init__(self) -> None:
        self.prompts = 0

    async def sign_message(self, text: str) -> str:
        self.prompts += 1
        raise RuntimeError("User rejected the request")


class FlakyStore(MemoryKeyValueStore):
    """Memory store whose writes to selected keys raise."""

    def __init__(self, fail_keys: set[str] | None = None) -> None:
        super().__init__()
        self.fail_keys = set(fail_keys or ())

    async def set_data(self, key: str, value: bytes) -> None:
        if key in self.fail_keys:
            raise ConnectionError(f"write to {key} timed out")
        await super().set_data(key, value)

    async def compare_and_set(self, key: str, expected: bytes, value: bytes) -> bool:
        if key in self.fail_keys:
            raise ConnectionError(f"write to {key} timed out")
        return await super().compare_and_set(key, expected, value)


class PlainStore(MemoryKeyValueStore):
    """Memory store without compare-and-set or scans, like the contract backend."""

    name = "plain"
    supports_compare_and_set = False
    supports_scan = False


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        store_backend="memory",
        contract_address=CONTRACT,
        chain_id=31337,
        challenge_key_bytes=32,
        disclosure_settle_delay_seconds=0,
        log_format="text",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def codec() -> ObscuredValueCodec:
    return ObscuredValueCodec()


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def adapter(store, test_settings) -> LedgerStoreAdapter:
    return LedgerStoreAdapter(store, settings=test_settings)


@pytest.fixture
def settlement(adapter, codec) -> SettlementStateMachine:
    return SettlementStateMachine(adapter, codec=codec)


@pytest.fixture
def manager(adapter, settlement, codec, test_settings, clock) -> BetRecordManager:
    return BetRecordManager(
        adapter,
        settlement,
        codec=codec,
        settings=test_settings,
        rng=random.Random(1234),
        clock=clock,
    )


@pytest.fixture
def disclosure(codec, test_settings, clock) -> DisclosureProtocol:
    return DisclosureProtocol(codec=codec, settings=test_settings, clock=clock)


@pytest.fixture
def ledger(adapter, manager, settlement, disclosure) -> BetLedger:
    return BetLedger(
        adapter=adapter,
        manager=manager,
        settlement=settlement,
        disclosure=disclosure,
        reconciler=IndexReconciler(adapter),
    )


@pytest.fixture
def bettor_signer() -> LocalAccountSigner:
    return LocalAccountSigner.from_key(BETTOR_KEY)


@pytest.fixture
def other_signer() -> LocalAccountSigner:
    return LocalAccountSigner.from_key(OTHER_KEY)


@pytest.fixture
def bettor(bettor_signer) -> str:
    return bettor_signer.address
