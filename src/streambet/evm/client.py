"""Client for the generic key/value contract the ledger lives in.

Reads are ``eth_call``s; writes are operator-signed transactions. There are
no automatic retries: a failed write raises and the caller decides.
"""
from __future__ import annotations

import logging

from eth_account import Account
from web3 import AsyncWeb3, AsyncHTTPProvider

from streambet.config import Settings, settings as default_settings
from streambet.evm.abi import load_abi
from streambet.evm.nonce_manager import NonceManager
from streambet.monitoring.metrics import chain_tx_total

logger = logging.getLogger(__name__)


class ContractRevertError(RuntimeError):
    """The transaction was mined but the contract reverted it."""


class KeyValueContractClient:
    def __init__(self, settings: Settings | None = None):
        self._settings = settings or default_settings
        self._w3: AsyncWeb3 | None = None
        self._operator = None
        self._contract = None
        self._nonce: NonceManager | None = None
        self._initialized = False

    # ── Lifecycle ──

    async def initialize(self) -> None:
        s = self._settings
        self._w3 = AsyncWeb3(AsyncHTTPProvider(s.rpc_url))
        self._contract = self._w3.eth.contract(
            address=self._w3.to_checksum_address(s.contract_address),
            abi=load_abi(s.contract_abi_path),
        )
        if s.operator_private_key:
            self._operator = Account.from_key(s.operator_private_key)
            self._nonce = NonceManager(self._w3, self._operator.address)
        self._initialized = True
        logger.info(
            "Key/value contract client initialized",
            extra={
                "contract": s.contract_address,
                "operator": self._operator.address if self._operator else None,
            },
        )

    async def close(self) -> None:
        self.reset()

    def reset(self) -> None:
        """Drop refs without awaiting anything."""
        self._w3 = None
        self._contract = None
        self._operator = None
        self._nonce = None
        self._initialized = False

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self.initialize()

    # ── Identity ──

    @property
    def address(self) -> str:
        return AsyncWeb3.to_checksum_address(self._settings.contract_address)

    async def get_chain_id(self) -> int:
        await self._ensure_initialized()
        return int(await self._w3.eth.chain_id)

    async def get_health(self) -> bool:
        await self._ensure_initialized()
        return await self._w3.is_connected()

    # ── Contract calls ──

    async def get_data(self, key: str) -> bytes:
        await self._ensure_initialized()
        return bytes(await self._contract.functions.getData(key).call())

    async def is_available(self) -> bool:
        await self._ensure_initialized()
        return bool(await self._contract.functions.isAvailable().call())

    async def set_data(self, key: str, value: bytes) -> str:
        await self._ensure_initialized()
        fn = self._contract.functions.setData(key, value)
        return await self._send_tx(fn, "set_data")

    async def _send_tx(self, fn_call, instruction_name: str) -> str:
        """Build, sign, send and confirm one transaction."""
        if self._operator is None:
            raise RuntimeError("operator_private_key is not configured; contract is read-only")

        nonce = await self._nonce.acquire()
        sent = False
        try:
            tx = await fn_call.build_transaction(
                {
                    "from": self._operator.address,
                    "nonce": nonce,
                    "chainId": self._settings.chain_id,
                }
            )
            signed = self._operator.sign_transaction(tx)
            tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
            sent = True
            receipt = await self._w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self._settings.confirm_timeout
            )
        except Exception as e:
            chain_tx_total.labels(instruction=instruction_name, status="failure").inc()
            if "nonce too low" in str(e).lower():
                await self._nonce.resync()
            elif not sent:
                await self._nonce.release(nonce)
            raise

        if receipt["status"] != 1:
            chain_tx_total.labels(instruction=instruction_name, status="reverted").inc()
            raise ContractRevertError(f"{instruction_name} reverted in tx {tx_hash.hex()}")

        chain_tx_total.labels(instruction=instruction_name, status="success").inc()
        return tx_hash.hex()
