from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

_EVM_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")

DEFAULT_ODDS = 1.5  # legacy records written without odds


class BetStatus(str, Enum):
    PENDING = "pending"
    WON = "won"
    LOST = "lost"
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self is not BetStatus.PENDING


def is_evm_address(value: str) -> bool:
    return bool(_EVM_ADDRESS_RE.fullmatch(value))


def same_address(a: str, b: str) -> bool:
    return a.lower() == b.lower()


class BetRecord(BaseModel):
    """A single wager as stored under ``bet_<id>``.

    Wire field names (``amount``, ``better``, ``gameId``) are kept for
    compatibility with records already in the store. ``id`` is the index key
    and is never serialized into the payload.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, use_enum_values=False)

    id: str = Field(default="", exclude=True)
    amount: str
    timestamp: int
    bettor: str = Field(alias="better")
    game_id: str = Field(alias="gameId")
    prediction: str
    odds: float = DEFAULT_ODDS
    status: BetStatus = BetStatus.PENDING
    version: int = 0

    @field_validator("bettor")
    @classmethod
    def validate_bettor(cls, v: str) -> str:
        if not is_evm_address(v):
            raise ValueError("Invalid bettor address: must be EVM format (0x + 40 hex chars)")
        return v

    @field_validator("odds", mode="before")
    @classmethod
    def default_empty_odds(cls, v):
        # Older clients wrote null or 0 when odds were never drawn
        return v or DEFAULT_ODDS

    @field_validator("status", mode="before")
    @classmethod
    def default_empty_status(cls, v):
        return v or BetStatus.PENDING

    @field_validator("odds")
    @classmethod
    def validate_odds(cls, v: float) -> float:
        if not v > 0:
            raise ValueError("Odds must be positive")
        return v

    def to_payload(self) -> dict:
        data = self.model_dump(by_alias=True, mode="json")
        data.pop("id", None)
        return data

    @classmethod
    def from_payload(cls, key: str, data: dict) -> BetRecord:
        return cls.model_validate({**data, "id": key})

    def is_owned_by(self, address: str) -> bool:
        return same_address(self.bettor, address)


@dataclass(frozen=True)
class DisclosureSession:
    """Contract context a challenge is bound to."""

    contract_address: str
    chain_id: int
    started_at: int


@dataclass(frozen=True)
class DisclosureChallenge:
    public_key: str
    contract_address: str
    chain_id: int
    start_timestamp: int
    duration_days: int

    @property
    def expires_at(self) -> int:
        return self.start_timestamp + self.duration_days * 86400

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def to_message(self) -> str:
        """Canonical text the wallet signs. Must stay byte-stable."""
        return (
            f"publickey:{self.public_key}\n"
            f"contractAddresses:{self.contract_address}\n"
            f"contractsChainId:{self.chain_id}\n"
            f"startTimestamp:{self.start_timestamp}\n"
            f"durationDays:{self.duration_days}"
        )


@dataclass(frozen=True)
class LedgerSummary:
    total: int
    pending: int
    won: int
    lost: int
    canceled: int
