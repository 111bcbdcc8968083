from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Store backend: memory | redis | contract
    store_backend: str = "memory"

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # Key/value contract
    rpc_url: str = "http://localhost:8545"
    contract_address: str = "0x0000000000000000000000000000000000000000"
    contract_abi_path: str = ""
    chain_id: int = 11155111
    operator_private_key: str = ""
    confirm_timeout: int = 60

    # Ledger layout
    index_key: str = "bet_keys"
    record_key_prefix: str = "bet_"

    # Betting
    active_games: str = "LOL,DOTA2,CSGO,VALORANT,PUBG"
    odds_min: float = 1.5
    odds_max: float = 2.0

    # Disclosure
    challenge_duration_days: int = 30
    challenge_key_bytes: int = 1000
    disclosure_settle_delay_seconds: float = 1.5

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def active_game_list(self) -> list[str]:
        return [g.strip() for g in self.active_games.split(",") if g.strip()]


settings = Settings()
