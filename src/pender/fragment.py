"""
Fragment: one observer's locally known slice of hash-chained history.

A fragment maps digest -> event and tracks the newest event as its head.
An empty fragment has no head.

    frag = Fragment()
    frag.append(b"Stuff happened")
    frag.append(b"More stuff happened")

    chain = frag.summarize("my-summary")
    chain.next_link()   # EventLink(<More stuff happened>)
    chain.next_link()   # EventLink(<Stuff happened>)
    chain.next_link()   # Terminus(None)

Fragments are not synchronized. Callers serialize writers and must not
append while a chain derived from the fragment is being walked.
"""
from __future__ import annotations

import logging
from typing import Iterable, Mapping

from .chain import Chain
from .config import HashKey, get_hash_key
from .digest import Digest, InvalidDigestError
from .event import Event, Payload, event_digest, make_event
from .logs import log_json
from .models import FragmentStatus


class FragmentIntegrityError(Exception):
    pass


class Fragment:
    def __init__(self, *, key: HashKey | None = None) -> None:
        self.key = key if key is not None else get_hash_key()
        self.head: Event | None = None
        self.events: dict[Digest, Event] = {}

    def __len__(self) -> int:
        return len(self.events)

    def __contains__(self, item: object) -> bool:
        return item in self.events

    def __repr__(self) -> str:
        head = self.head_digest
        return f"Fragment(length={len(self.events)}, head={head.hex()[:16] if head else None})"

    @property
    def head_digest(self) -> Digest | None:
        if self.head is None:
            return None
        return event_digest(self.head, key=self.key)

    def get(self, digest: Digest) -> Event | None:
        return self.events.get(digest)

    def append(self, fact: Payload) -> Event:
        """Chain ``fact`` onto the current head, or start a chain if empty."""
        event = make_event(fact, self.head, key=self.key)
        self.append_event(event)
        return event

    def append_event(self, event: Event) -> Digest:
        # same digest means same content, so re-inserting is a no-op
        digest = event_digest(event, key=self.key)
        self.head = event
        self.events[digest] = event
        log_json(
            logging.DEBUG,
            "fragment.append",
            digest=digest.ref,
            length=len(self.events),
        )
        return digest

    def summarize(self, label: str) -> Chain:
        return Chain(self.events, self.head_digest, label)

    def copy(self) -> Fragment:
        clone = Fragment(key=self.key)
        clone.head = self.head
        clone.events = dict(self.events)
        return clone

    def status(self) -> FragmentStatus:
        head = self.head_digest
        return {
            "length": len(self.events),
            "head": head.ref if head is not None else None,
            "key_version": self.key.version,
        }

    @classmethod
    def restore(
        cls,
        entries: Mapping[Digest | bytes, Event] | Iterable[tuple[Digest | bytes, Event]],
        head: Digest | bytes | None,
        *,
        key: HashKey | None = None,
    ) -> Fragment:
        """
        Rebuild a fragment from decoded storage entries.

        Every key must be a 64-byte digest equal to the recomputed digest of
        its event, and ``head`` must name a stored event. Any violation
        rejects the whole fragment.

        Raises:
            FragmentIntegrityError: If any entry or the head fails validation.
        """
        fragment = cls(key=key)
        items = entries.items() if isinstance(entries, Mapping) else entries
        events: dict[Digest, Event] = {}
        for stored_key, event in items:
            stored = _coerce_digest(stored_key, "entry key")
            try:
                recomputed = event_digest(event, key=fragment.key)
            except TypeError as exc:
                _reject("entry is not an event", digest=stored.ref)
                raise FragmentIntegrityError("entry is not an event") from exc
            if recomputed != stored:
                _reject(
                    "digest mismatch",
                    expected_digest=recomputed.ref,
                    actual_digest=stored.ref,
                )
                raise FragmentIntegrityError(f"digest mismatch for {stored.ref}")
            events[stored] = event

        head_event = None
        if head is not None:
            head_digest = _coerce_digest(head, "head")
            head_event = events.get(head_digest)
            if head_event is None:
                _reject("head not in fragment", digest=head_digest.ref)
                raise FragmentIntegrityError(f"head {head_digest.ref} not in fragment")

        fragment.events = events
        fragment.head = head_event
        log_json(logging.DEBUG, "fragment.restored", length=len(events))
        return fragment


def _coerce_digest(value: object, name: str) -> Digest:
    if isinstance(value, Digest):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        try:
            return Digest.from_bytes(value)
        except InvalidDigestError as exc:
            _reject(f"malformed {name}", error=str(exc))
            raise FragmentIntegrityError(f"malformed {name}: {exc}") from exc
    _reject(f"malformed {name}", type=type(value).__name__)
    raise FragmentIntegrityError(f"{name} must be a digest")


def _reject(reason: str, **fields: object) -> None:
    log_json(logging.ERROR, "fragment.integrity_violation", reason=reason, **fields)
