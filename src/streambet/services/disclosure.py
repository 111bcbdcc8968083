"""Signature-gated disclosure of obscured amounts.

A challenge is built once per session and bound to the ledger contract,
the chain and a validity window. Every decode needs a fresh wallet
signature over the challenge text; authorization is never cached.
"""
from __future__ import annotations

import asyncio
import logging
import secrets
import time
from typing import Awaitable, Callable, Protocol

from eth_account import Account
from eth_account.messages import encode_defunct

from streambet.codec import ObscuredToken, ObscuredValueCodec, codec as default_codec
from streambet.config import Settings, settings as default_settings
from streambet.errors import AuthorizationDeclinedError, ChallengeExpiredError
from streambet.models import DisclosureChallenge, DisclosureSession, same_address
from streambet.monitoring.metrics import disclosures_total
from streambet.storage.base import KeyValueStore
from streambet.storage.contract_store import ContractKeyValueStore

logger = logging.getLogger(__name__)


class Signer(Protocol):
    address: str

    async def sign_message(self, text: str) -> str: ...


class LocalAccountSigner:
    """EIP-191 personal-message signer backed by a local eth_account key."""

    def __init__(self, account) -> None:
        self._account = account
        self.address = account.address

    @classmethod
    def from_key(cls, private_key: str) -> LocalAccountSigner:
        return cls(Account.from_key(private_key))

    async def sign_message(self, text: str) -> str:
        signed = self._account.sign_message(encode_defunct(text=text))
        return "0x" + bytes(signed.signature).hex()


def recover_signer(message: str, signature: str) -> str:
    return Account.recover_message(encode_defunct(text=message), signature=signature)


def generate_public_key(n_bytes: int) -> str:
    return "0x" + secrets.token_hex(n_bytes)


async def resolve_session(
    store: KeyValueStore,
    settings: Settings | None = None,
    clock: Callable[[], float] = time.time,
) -> DisclosureSession:
    """Contract address and chain id the session's challenges are bound to."""
    s = settings or default_settings
    if isinstance(store, ContractKeyValueStore):
        address = store.client.address
        chain_id = await store.client.get_chain_id()
    else:
        address = s.contract_address
        chain_id = s.chain_id
    return DisclosureSession(contract_address=address, chain_id=chain_id, started_at=int(clock()))


class DisclosureProtocol:
    def __init__(
        self,
        codec: ObscuredValueCodec | None = None,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._codec = codec or default_codec
        self._settings = settings or default_settings
        self._clock = clock
        self._sleep = sleep

    def build_challenge(self, session: DisclosureSession) -> DisclosureChallenge:
        return DisclosureChallenge(
            public_key=generate_public_key(self._settings.challenge_key_bytes),
            contract_address=session.contract_address,
            chain_id=session.chain_id,
            start_timestamp=session.started_at,
            duration_days=self._settings.challenge_duration_days,
        )

    async def decrypt_with_authorization(
        self,
        token: ObscuredToken,
        challenge: DisclosureChallenge,
        signer: Signer,
        expected_address: str | None = None,
    ) -> float:
        """Decode ``token`` once ``signer`` has signed the challenge.

        With ``expected_address`` the signature must also recover to that
        wallet. Raises AuthorizationDeclinedError without decoding anything
        if the signature is missing, declined or does not verify.
        """
        if challenge.is_expired(self._clock()):
            disclosures_total.labels(status="expired").inc()
            raise ChallengeExpiredError(
                f"Disclosure challenge expired at {challenge.expires_at}"
            )

        message = challenge.to_message()
        try:
            signature = await signer.sign_message(message)
        except Exception as e:
            disclosures_total.labels(status="declined").inc()
            logger.warning(
                "Signature request declined or failed",
                extra={"signer": getattr(signer, "address", None), "error": str(e)},
            )
            raise AuthorizationDeclinedError("Wallet did not sign the disclosure challenge") from e

        if not signature:
            disclosures_total.labels(status="declined").inc()
            raise AuthorizationDeclinedError("Wallet returned an empty signature")

        if expected_address is not None:
            try:
                recovered = recover_signer(message, signature)
            except Exception as e:
                disclosures_total.labels(status="bad_signature").inc()
                raise AuthorizationDeclinedError("Disclosure signature could not be verified") from e
            if not same_address(recovered, expected_address):
                disclosures_total.labels(status="wrong_signer").inc()
                logger.warning(
                    "Disclosure signed by a different wallet",
                    extra={"expected": expected_address, "recovered": recovered},
                )
                raise AuthorizationDeclinedError("Signature does not belong to the bet owner")

        # Pacing only; stands in for asynchronous proof verification
        delay = self._settings.disclosure_settle_delay_seconds
        if delay > 0:
            await self._sleep(delay)

        value = self._codec.decode(token)
        disclosures_total.labels(status="ok").inc()
        return value
