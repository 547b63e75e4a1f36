"""
Hash key configuration for pender.

Every digest in a deployment is computed under one keyed BLAKE2b
construction. The key is versioned so that a rotation is explicit:
digests produced under different keys never compare equal.

Config is loaded once on first use and immutable afterwards.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping


__all__ = [
    "DEFAULT_HASH_KEY",
    "DIGEST_SIZE",
    "HashConfig",
    "HashKey",
    "get_hash_config",
    "get_hash_key",
    "load_hash_config",
    "reset_config_cache",
]

DIGEST_SIZE = 64

# blake2b accepts keys of at most 64 bytes
_MAX_KEY_LEN = 64


@dataclass(frozen=True)
class HashKey:
    """Versioned key for the keyed BLAKE2b construction."""

    version: str
    key: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.version, str) or self.version.strip() == "":
            raise ValueError("hash key version must be a non-empty string")
        if not isinstance(self.key, bytes):
            raise ValueError("hash key must be bytes")
        # an empty blake2b key is the unkeyed hash
        if len(self.key) == 0:
            raise ValueError("hash key must not be empty")
        if len(self.key) > _MAX_KEY_LEN:
            raise ValueError(f"hash key must be at most {_MAX_KEY_LEN} bytes")

    def __repr__(self) -> str:
        return f"HashKey(version={self.version!r}, key=<{len(self.key)} bytes>)"


# Version 1 matches digests written by earlier pender deployments.
DEFAULT_HASH_KEY = HashKey(version="1", key=b"a key")


@dataclass(frozen=True)
class HashConfig:
    schema_version: str
    key: HashKey
    source: str


def load_hash_config(path: Path | None = None) -> HashConfig:
    """
    Load hash configuration.

    Resolution order: built-in default, then the JSON file given by ``path``
    or ``PENDER_HASH_CONFIG``, then ``PENDER_HASH_KEY_VERSION`` and
    ``PENDER_HASH_KEY_HEX`` environment overrides.

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist.
        ValueError: If the config or an override is invalid.
    """
    config_path = path or _resolve_config_path()
    version = DEFAULT_HASH_KEY.version
    key = DEFAULT_HASH_KEY.key
    schema_version = "1"
    source = "default"

    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Hash config not found: {config_path}")
        with open(config_path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        schema_version, version, key = _parse_config(raw)
        source = str(config_path)

    env_version = os.getenv("PENDER_HASH_KEY_VERSION")
    if env_version is not None and env_version.strip():
        version = env_version.strip()
        source = "env"
    env_key = os.getenv("PENDER_HASH_KEY_HEX")
    if env_key is not None:
        if env_version is None or not env_version.strip():
            raise ValueError("PENDER_HASH_KEY_HEX requires PENDER_HASH_KEY_VERSION")
        key = _decode_key_hex(env_key.strip(), "PENDER_HASH_KEY_HEX")
        source = "env"

    # a rotated key must never report the default version
    if key != DEFAULT_HASH_KEY.key and version == DEFAULT_HASH_KEY.version:
        raise ValueError(
            f"hash key differs from the default, so key version must not be {DEFAULT_HASH_KEY.version!r}"
        )

    return HashConfig(
        schema_version=schema_version,
        key=HashKey(version=version, key=key),
        source=source,
    )


def _resolve_config_path() -> Path | None:
    env_path = os.environ.get("PENDER_HASH_CONFIG")
    if env_path and env_path.strip():
        return Path(env_path.strip())
    return None


def _parse_config(raw: Any) -> tuple[str, str, bytes]:
    if not isinstance(raw, Mapping):
        raise ValueError("hash config must be an object")
    schema_version = raw.get("schema_version")
    if schema_version != "1":
        raise ValueError(f"Unsupported schema_version: {schema_version}")

    section = raw.get("hash")
    if not isinstance(section, Mapping):
        raise ValueError("hash must be an object")

    algorithm = section.get("algorithm", "blake2b")
    if algorithm != "blake2b":
        raise ValueError(f"unsupported hash algorithm: {algorithm}")

    version = section.get("key_version")
    if not isinstance(version, str) or version.strip() == "":
        raise ValueError("hash.key_version must be a non-empty string")

    key_hex = section.get("key_hex")
    if not isinstance(key_hex, str):
        raise ValueError("hash.key_hex must be a hex string")
    return str(schema_version), version.strip(), _decode_key_hex(key_hex, "hash.key_hex")


def _decode_key_hex(value: str, name: str) -> bytes:
    try:
        key = bytes.fromhex(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a hex string") from exc
    if not key:
        raise ValueError(f"{name} must not be empty")
    if len(key) > _MAX_KEY_LEN:
        raise ValueError(f"{name} must decode to at most {_MAX_KEY_LEN} bytes")
    return key


@lru_cache(maxsize=1)
def get_hash_config() -> HashConfig:
    return load_hash_config()


def get_hash_key() -> HashKey:
    """Process-wide hash key, loaded once."""
    return get_hash_config().key


def reset_config_cache() -> None:
    """Reset config cache. Only for testing."""
    get_hash_config.cache_clear()
