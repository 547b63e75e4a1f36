from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Mapping, Union

from .digest import Digest
from .event import Event, parent_digest
from .logs import log_json


@dataclass(frozen=True)
class EventLink:
    event: Event


@dataclass(frozen=True)
class Terminus:
    """
    End of a walk.

    ``digest`` is None at a true origin. Otherwise it names the first
    ancestor this fragment does not hold: history may continue elsewhere.
    """

    digest: Digest | None = None

    @property
    def is_boundary(self) -> bool:
        return self.digest is not None


Link = Union[EventLink, Terminus]


class Chain:
    """
    One-shot walk from a fragment's head back to its origin.

    Each ``next_link()`` yields the next older event. Once a terminus is
    reached the chain is exhausted and keeps returning that same terminus,
    including a boundary terminus.
    """

    def __init__(self, events: Mapping[Digest, Event], head: Digest | None, label: str) -> None:
        self._events = events
        self._label = label
        self._next = head
        self._terminus: Terminus | None = None if head is not None else Terminus(None)

    @property
    def label(self) -> str:
        return self._label

    @property
    def exhausted(self) -> bool:
        return self._terminus is not None

    @property
    def terminus(self) -> Terminus | None:
        return self._terminus

    def next_link(self) -> Link:
        if self._terminus is not None:
            return self._terminus
        cursor = self._next
        if cursor is None:
            self._terminus = Terminus(None)
            return self._terminus
        event = self._events.get(cursor)
        if event is None:
            self._next = None
            self._terminus = Terminus(cursor)
            log_json(
                logging.INFO,
                "chain.boundary",
                label=self._label,
                missing_digest=cursor.ref,
            )
            return self._terminus
        self._next = parent_digest(event)
        return EventLink(event)

    def events(self) -> Iterator[Event]:
        while True:
            link = self.next_link()
            if isinstance(link, Terminus):
                return
            yield link.event

    def __repr__(self) -> str:
        return f"Chain(label={self._label!r}, exhausted={self.exhausted})"
