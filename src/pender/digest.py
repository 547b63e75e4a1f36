from __future__ import annotations

import hashlib
from dataclasses import dataclass

from .config import DIGEST_SIZE, HashKey, get_hash_key

_REF_PREFIX = "blake2b"


class InvalidDigestError(ValueError):
    pass


@dataclass(frozen=True)
class Digest:
    """64-byte keyed BLAKE2b digest. Compared by exact bytes."""

    raw: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.raw, bytes):
            raise InvalidDigestError("digest must be bytes")
        if len(self.raw) != DIGEST_SIZE:
            raise InvalidDigestError(
                f"digest must be {DIGEST_SIZE} bytes, got {len(self.raw)}"
            )

    @classmethod
    def from_bytes(cls, raw: bytes | bytearray | memoryview) -> Digest:
        return cls(bytes(raw))

    def hex(self) -> str:
        return self.raw.hex()

    @property
    def ref(self) -> str:
        return digest_ref(self)

    def __bytes__(self) -> bytes:
        return self.raw

    def __str__(self) -> str:
        return self.raw.hex()

    def __repr__(self) -> str:
        return f"Digest('{self.raw.hex()}')"


def digest(data: bytes | bytearray | memoryview, *, key: HashKey | None = None) -> Digest:
    hash_key = key if key is not None else get_hash_key()
    hasher = hashlib.blake2b(digest_size=DIGEST_SIZE, key=hash_key.key)
    hasher.update(bytes(data))
    return Digest(hasher.digest())


def digest_ref(value: Digest) -> str:
    return f"{_REF_PREFIX}:{value.hex()}"


def parse_digest_ref(digest_ref: str) -> Digest:
    if not isinstance(digest_ref, str) or ":" not in digest_ref:
        raise InvalidDigestError(f"digest-ref must be {_REF_PREFIX}:<{DIGEST_SIZE * 2} hex>")
    algo, hex_value = digest_ref.split(":", 1)
    if algo != _REF_PREFIX or len(hex_value) != DIGEST_SIZE * 2:
        raise InvalidDigestError(f"digest-ref must be {_REF_PREFIX}:<{DIGEST_SIZE * 2} hex>")
    try:
        raw = bytes.fromhex(hex_value)
    except ValueError as exc:
        raise InvalidDigestError(
            f"digest-ref must be {_REF_PREFIX}:<{DIGEST_SIZE * 2} hex>"
        ) from exc
    return Digest.from_bytes(raw)
