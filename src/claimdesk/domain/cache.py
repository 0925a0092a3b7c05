"""In-memory query cache holding the client's view of server state.

Entries are addressed by hierarchical tuple keys such as ``("claims", claim_id)``.
All reads and writes happen on the event loop thread; the only suspension point
is the loader awaited by :meth:`QueryCache.fetch`.

A background read records the entry version when it is issued. When it
completes, its result is dropped if a write has landed on the key in the
meantime. A read that was cancelled without a newer write is still stored,
but the entry stays stale so the next query loads it again.
"""

from __future__ import annotations

import copy
import itertools
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from logging import getLogger
from typing import Any

log = getLogger(__name__)

type QueryKey = tuple[Hashable, ...]
type Updater = Callable[[Any], Any]
type CacheListener = Callable[[QueryKey, Any], None]


def key_matches(candidate: QueryKey, key: QueryKey, *, exact: bool = False) -> bool:
    """Return whether ``candidate`` equals ``key`` or, unless ``exact``, extends it."""

    if exact:
        return candidate == key
    return candidate[: len(key)] == key


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Detached copy of one cache entry, captured before an optimistic write."""

    key: QueryKey
    value: Any
    existed: bool


@dataclass(slots=True)
class _Entry:
    value: Any
    stale: bool = False


@dataclass(slots=True, eq=False)
class _PendingRead:
    key: QueryKey
    issued_version: int
    cancelled: bool = False


class QueryCache:
    """Key/value store of server state with supersedable background reads."""

    def __init__(self) -> None:
        self._entries: dict[QueryKey, _Entry] = {}
        # versions survive removal so a re-created entry never looks unchanged
        self._versions: dict[QueryKey, int] = {}
        self._clock = itertools.count(1)
        self._pending: list[_PendingRead] = []
        self._listeners: list[CacheListener] = []

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def keys(self) -> tuple[QueryKey, ...]:
        return tuple(self._entries)

    def get(self, key: QueryKey) -> Any:
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def set(self, key: QueryKey, value: Any, *, default: Any = None) -> Any:
        """Replace the entry at ``key`` and return the stored value.

        A callable ``value`` is treated as an updater: it receives the previous
        value (``default`` when the entry is absent) and returns the new one.
        Writing ``None`` to an absent entry leaves it absent.
        """

        if callable(value):
            previous = self.get(key) if key in self._entries else default
            value = value(previous)
        if value is None and key not in self._entries:
            return None
        self._write(key, value)
        return value

    def remove(self, key: QueryKey) -> None:
        if self._entries.pop(key, None) is None:
            return
        self._versions[key] = next(self._clock)
        self._notify(key, None)

    def version(self, key: QueryKey) -> int:
        return self._versions.get(key, 0)

    def cancel_in_flight(self, key: QueryKey, *, exact: bool = False) -> int:
        """Supersede pending reads for ``key``; returns how many were cancelled.

        The underlying requests keep running, their results are dropped.
        """

        cancelled = 0
        for read in self._pending:
            if not read.cancelled and key_matches(read.key, key, exact=exact):
                read.cancelled = True
                cancelled += 1
        if cancelled:
            log.debug("Cancelled %s in-flight read(s) for %s", cancelled, key)
        return cancelled

    def invalidate(self, key: QueryKey, *, exact: bool = False) -> None:
        self.cancel_in_flight(key, exact=exact)
        for candidate, entry in self._entries.items():
            if key_matches(candidate, key, exact=exact):
                entry.stale = True

    def is_stale(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        return entry is None or entry.stale

    def is_fetching(self, key: QueryKey) -> bool:
        return any(read.key == key and not read.cancelled for read in self._pending)

    async def fetch(self, key: QueryKey, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Run ``loader`` and store its result unless a write landed on ``key`` meanwhile."""

        read = _PendingRead(key=key, issued_version=self.version(key))
        self._pending.append(read)
        try:
            value = await loader()
        finally:
            self._pending.remove(read)

        if self.version(key) != read.issued_version:
            log.debug("Discarding stale read for %s", key)
            return self.get(key)
        self._write(key, value, stale=read.cancelled)
        return value

    def snapshot(self, key: QueryKey) -> Snapshot:
        entry = self._entries.get(key)
        if entry is None:
            return Snapshot(key=key, value=None, existed=False)
        return Snapshot(key=key, value=copy.deepcopy(entry.value), existed=True)

    def restore(self, snapshot: Snapshot) -> None:
        """Put ``snapshot`` back verbatim, replacing whatever is cached now."""

        if snapshot.existed:
            self._write(snapshot.key, snapshot.value)
        else:
            self.remove(snapshot.key)

    def subscribe(self, listener: CacheListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _write(self, key: QueryKey, value: Any, *, stale: bool = False) -> None:
        self._entries[key] = _Entry(value=value, stale=stale)
        self._versions[key] = next(self._clock)
        self._notify(key, value)

    def _notify(self, key: QueryKey, value: Any) -> None:
        for listener in tuple(self._listeners):
            listener(key, value)
