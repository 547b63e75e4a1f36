from __future__ import annotations

from typing import TypedDict


class EventSummary(TypedDict):
    digest: str
    parent: str | None
    origin: bool
    payload_len: int


class FragmentStatus(TypedDict):
    length: int
    head: str | None
    key_version: str
