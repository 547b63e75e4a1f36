from __future__ import annotations

import json
from pathlib import Path

import pytest

from pender.config import (
    DEFAULT_HASH_KEY,
    HashKey,
    get_hash_key,
    load_hash_config,
    reset_config_cache,
)
from pender.digest import digest


def _write_config(path: Path, **hash_section) -> Path:
    path.write_text(
        json.dumps({"schema_version": "1", "hash": hash_section}), encoding="utf-8"
    )
    return path


def test_default_key() -> None:
    config = load_hash_config()
    assert config.key == DEFAULT_HASH_KEY
    assert config.source == "default"
    assert get_hash_key().version == "1"


def test_load_from_file(tmp_path: Path) -> None:
    path = _write_config(tmp_path / "hash.json", key_version="7", key_hex=b"secret".hex())
    config = load_hash_config(path)
    assert config.key == HashKey(version="7", key=b"secret")
    assert config.source == str(path)


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_hash_config(tmp_path / "nope.json")


def test_config_path_from_env(tmp_path: Path, monkeypatch) -> None:
    path = _write_config(tmp_path / "hash.json", key_version="3", key_hex="00ff")
    monkeypatch.setenv("PENDER_HASH_CONFIG", str(path))
    assert load_hash_config().key == HashKey(version="3", key=b"\x00\xff")


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("PENDER_HASH_KEY_VERSION", "9")
    monkeypatch.setenv("PENDER_HASH_KEY_HEX", b"rotated".hex())
    config = load_hash_config()
    assert config.key == HashKey(version="9", key=b"rotated")
    assert config.source == "env"


def test_cached_key_changes_digests_after_reset(monkeypatch) -> None:
    before = digest(b"foo")
    monkeypatch.setenv("PENDER_HASH_KEY_VERSION", "2")
    monkeypatch.setenv("PENDER_HASH_KEY_HEX", b"rotated".hex())
    assert digest(b"foo") == before
    reset_config_cache()
    assert digest(b"foo") != before


@pytest.mark.parametrize(
    "raw, message",
    [
        ({"schema_version": "2", "hash": {}}, "schema_version"),
        ({"schema_version": "1"}, "hash must be an object"),
        ({"schema_version": "1", "hash": {"algorithm": "md5", "key_version": "1", "key_hex": ""}}, "algorithm"),
        ({"schema_version": "1", "hash": {"key_version": "", "key_hex": ""}}, "key_version"),
        ({"schema_version": "1", "hash": {"key_version": "1", "key_hex": "xyz"}}, "key_hex"),
        ({"schema_version": "1", "hash": {"key_version": "1", "key_hex": "00" * 65}}, "key_hex"),
        ({"schema_version": "1", "hash": {"key_version": "2", "key_hex": ""}}, "key_hex must not be empty"),
        ({"schema_version": "1", "hash": {"key_version": "1", "key_hex": b"rotated".hex()}}, "key version"),
    ],
)
def test_invalid_config_rejected(tmp_path: Path, raw, message: str) -> None:
    path = tmp_path / "hash.json"
    path.write_text(json.dumps(raw), encoding="utf-8")
    with pytest.raises(ValueError, match=message):
        load_hash_config(path)


def test_invalid_env_key_rejected(monkeypatch) -> None:
    monkeypatch.setenv("PENDER_HASH_KEY_VERSION", "2")
    monkeypatch.setenv("PENDER_HASH_KEY_HEX", "not-hex")
    with pytest.raises(ValueError):
        load_hash_config()


def test_hash_key_validation() -> None:
    with pytest.raises(ValueError):
        HashKey(version="", key=b"k")
    with pytest.raises(ValueError):
        HashKey(version="1", key=b"k" * 65)
    with pytest.raises(ValueError):
        HashKey(version="1", key=b"")
    assert "secret" not in repr(HashKey(version="1", key=b"secret"))


def test_env_key_requires_env_version(monkeypatch) -> None:
    monkeypatch.setenv("PENDER_HASH_KEY_HEX", b"rotated".hex())
    with pytest.raises(ValueError, match="PENDER_HASH_KEY_VERSION"):
        load_hash_config()


def test_env_key_rejects_default_version(monkeypatch) -> None:
    monkeypatch.setenv("PENDER_HASH_KEY_VERSION", DEFAULT_HASH_KEY.version)
    monkeypatch.setenv("PENDER_HASH_KEY_HEX", b"rotated".hex())
    with pytest.raises(ValueError, match="key version"):
        load_hash_config()


def test_env_default_key_with_default_version_allowed(monkeypatch) -> None:
    monkeypatch.setenv("PENDER_HASH_KEY_VERSION", DEFAULT_HASH_KEY.version)
    monkeypatch.setenv("PENDER_HASH_KEY_HEX", DEFAULT_HASH_KEY.key.hex())
    assert load_hash_config().key == DEFAULT_HASH_KEY


def test_env_empty_key_rejected(monkeypatch) -> None:
    monkeypatch.setenv("PENDER_HASH_KEY_VERSION", "2")
    monkeypatch.setenv("PENDER_HASH_KEY_HEX", "")
    with pytest.raises(ValueError, match="must not be empty"):
        load_hash_config()
