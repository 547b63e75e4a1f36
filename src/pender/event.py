"""
Hash-linked events.

An event is either an ``Origin`` (the start of a chain, payload only) or a
``Chained`` record carrying the digest of its predecessor. The digest of a
chained event covers its payload followed by the raw bytes of the parent
digest, so changing any ancestor changes every descendant's digest.

    grandma = make_event(b"Aphrodite", None)
    dad = make_event(b"Greg", grandma)
    child = make_event(b"Fitzroy", dad)

    parent_digest(grandma) is None
    parent_digest(dad) == event_digest(grandma)
    parent_digest(child) == event_digest(dad)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .config import HashKey
from .digest import Digest, digest
from .models import EventSummary

__all__ = [
    "Chained",
    "Event",
    "Origin",
    "describe_event",
    "event_digest",
    "is_origin",
    "make_event",
    "parent_digest",
]

Payload = Union[bytes, bytearray, memoryview]


def _own(payload: Payload) -> bytes:
    if not isinstance(payload, (bytes, bytearray, memoryview)):
        raise TypeError(f"payload must be bytes-like, got {type(payload).__name__}")
    return bytes(payload)


@dataclass(frozen=True)
class Origin:
    payload: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", _own(self.payload))


@dataclass(frozen=True)
class Chained:
    payload: bytes
    parent: Digest

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", _own(self.payload))
        if not isinstance(self.parent, Digest):
            raise TypeError("parent must be a Digest")


Event = Union[Origin, Chained]


def make_event(payload: Payload, parent: Event | None, *, key: HashKey | None = None) -> Event:
    """Pass the parent event for a chained record, or None for an origin."""
    if parent is None:
        return Origin(payload)
    return Chained(payload, event_digest(parent, key=key))


def event_digest(event: Event, *, key: HashKey | None = None) -> Digest:
    if isinstance(event, Origin):
        return digest(event.payload, key=key)
    if isinstance(event, Chained):
        return digest(event.payload + event.parent.raw, key=key)
    raise TypeError(f"not an event: {type(event).__name__}")


def parent_digest(event: Event) -> Digest | None:
    if isinstance(event, Origin):
        return None
    if isinstance(event, Chained):
        return event.parent
    raise TypeError(f"not an event: {type(event).__name__}")


def is_origin(event: Event) -> bool:
    if isinstance(event, Origin):
        return True
    if isinstance(event, Chained):
        return False
    raise TypeError(f"not an event: {type(event).__name__}")


def describe_event(event: Event, *, key: HashKey | None = None) -> EventSummary:
    parent = parent_digest(event)
    return {
        "digest": event_digest(event, key=key).ref,
        "parent": parent.ref if parent is not None else None,
        "origin": is_origin(event),
        "payload_len": len(event.payload),
    }
