from __future__ import annotations

import pytest

from streambet.storage import (
    ContractKeyValueStore,
    MemoryKeyValueStore,
    RedisKeyValueStore,
    build_store,
)


class TestBuildStore:
    @pytest.mark.parametrize(
        "backend, cls",
        [
            ("memory", MemoryKeyValueStore),
            ("redis", RedisKeyValueStore),
            ("contract", ContractKeyValueStore),
        ],
    )
    def test_known_backends(self, test_settings, backend, cls):
        settings = test_settings.model_copy(update={"store_backend": backend})
        assert isinstance(build_store(settings), cls)

    def test_unknown_backend(self, test_settings):
        settings = test_settings.model_copy(update={"store_backend": "ipfs"})
        with pytest.raises(ValueError, match="ipfs"):
            build_store(settings)
