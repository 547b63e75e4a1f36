from __future__ import annotations

from dataclasses import dataclass

from .digest import Digest


@dataclass(frozen=True)
class Checkpoint:
    """
    A labelled blob plus the digest of the newest event it covers.

    Not connected to Fragment or Chain yet; only the value shape exists.
    """

    label: str
    payload: bytes
    digest: Digest

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", bytes(self.payload))
        if not isinstance(self.digest, Digest):
            raise TypeError("checkpoint digest must be a Digest")
