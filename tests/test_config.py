from __future__ import annotations

from streambet.config import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("STORE_BACKEND", raising=False)
        s = Settings(_env_file=None)
        assert s.store_backend == "memory"
        assert s.index_key == "bet_keys"
        assert s.record_key_prefix == "bet_"
        assert (s.odds_min, s.odds_max) == (1.5, 2.0)
        assert s.challenge_duration_days == 30

    def test_active_game_list(self):
        s = Settings(_env_file=None, active_games=" LOL, DOTA2 ,,CSGO ")
        assert s.active_game_list == ["LOL", "DOTA2", "CSGO"]

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("STORE_BACKEND", "redis")
        monkeypatch.setenv("CHAIN_ID", "8453")
        s = Settings(_env_file=None)
        assert s.store_backend == "redis"
        assert s.chain_id == 8453
