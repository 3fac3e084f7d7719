"""Aggregator — owns the current outdated/vulnerability snapshots."""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Optional

import structlog

from depstatus.models import CheckKind, Ecosystem, Record, Snapshot

log = structlog.get_logger("depstatus.aggregator")

SnapshotKey = tuple[Ecosystem, CheckKind]
Listener = Callable[[Optional[SnapshotKey]], None]


class Aggregator:
    """Holds one snapshot per (ecosystem, kind), replaced wholesale on store.

    All mutation happens on the event loop thread; readers get immutable
    :class:`Snapshot` objects, so a query never sees a mix of two stores.

    Overlapping checks for the same key are ordered with request tickets:
    :meth:`begin` hands out increasing tickets and a :meth:`store` carrying a
    ticket older than the one already stored for that key is discarded.
    """

    def __init__(self) -> None:
        self._snapshots: dict[SnapshotKey, Snapshot] = {}
        self._stored_tickets: dict[SnapshotKey, int] = {}
        self._tickets = itertools.count(1)
        self._listeners: list[Listener] = []

    def begin(self, ecosystem: Ecosystem, kind: CheckKind) -> int:
        ticket = next(self._tickets)
        log.debug("aggregator.begin", ecosystem=ecosystem.value, kind=kind.value, ticket=ticket)
        return ticket

    def store(
        self,
        ecosystem: Ecosystem,
        kind: CheckKind,
        packages: Mapping[str, Record],
        display: Iterable[str] = (),
        ticket: int | None = None,
    ) -> bool:
        """Replace the snapshot for (ecosystem, kind). Returns False if discarded."""
        key = (ecosystem, kind)
        if ticket is not None:
            stored = self._stored_tickets.get(key)
            if stored is not None and ticket < stored:
                log.info(
                    "aggregator.stale_discarded",
                    ecosystem=ecosystem.value,
                    kind=kind.value,
                    ticket=ticket,
                    stored_ticket=stored,
                )
                return False
            self._stored_tickets[key] = ticket

        self._snapshots[key] = Snapshot(
            ecosystem=ecosystem,
            kind=kind,
            packages=MappingProxyType(dict(packages)),
            display=tuple(display),
        )
        log.debug(
            "aggregator.stored", ecosystem=ecosystem.value, kind=kind.value, packages=len(packages)
        )
        self._notify(key)
        return True

    def query(self, ecosystem: Ecosystem, kind: CheckKind) -> Snapshot | None:
        return self._snapshots.get((ecosystem, kind))

    def snapshots(self) -> dict[SnapshotKey, Snapshot]:
        return dict(self._snapshots)

    def reset(self) -> None:
        """Clear every snapshot. Ticket ordering survives a reset."""
        self._snapshots.clear()
        log.info("aggregator.reset")
        self._notify(None)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with the changed key (``None`` on reset); returns an unsubscribe."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, key: SnapshotKey | None) -> None:
        for listener in list(self._listeners):
            listener(key)
