from __future__ import annotations

import pytest

from pender.config import reset_config_cache


@pytest.fixture(autouse=True)
def _isolated_hash_config(monkeypatch):
    for name in ("PENDER_HASH_CONFIG", "PENDER_HASH_KEY_VERSION", "PENDER_HASH_KEY_HEX"):
        monkeypatch.delenv(name, raising=False)
    reset_config_cache()
    yield
    reset_config_cache()
