"""In-process response cache keyed by request target."""

from __future__ import annotations

import threading
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator

from .page import HeadMetadata


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CacheEntry:
    """A rendered response and the moment it was produced."""

    path: str
    body: str
    head: HeadMetadata
    stored_at: datetime
    status_code: int = 200


def is_fresh(entry: CacheEntry, now: datetime, ttl: timedelta) -> bool:
    """Return ``True`` while ``entry`` is younger than ``ttl``; equal age is stale."""

    return now - entry.stored_at < ttl


class ResponseCache:
    """Thread-safe map from request target to :class:`CacheEntry`.

    Entries are only ever replaced by a later successful render of the same
    target or dropped by :meth:`clear`; expiry is decided by the reader via
    :func:`is_fresh`.
    """

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or utc_now
        self._entries: dict[str, CacheEntry] = {}
        self._guard = threading.Lock()
        self._path_locks: defaultdict[str, threading.Lock] = defaultdict(threading.Lock)
        self._path_locks_guard = threading.Lock()

    @property
    def clock(self) -> Callable[[], datetime]:
        return self._clock

    def get(self, path: str) -> CacheEntry | None:
        with self._guard:
            return self._entries.get(path)

    def put(self, path: str, entry: CacheEntry) -> None:
        with self._guard:
            self._entries[path] = entry

    def get_fresh(self, path: str, ttl: timedelta, now: datetime | None = None) -> CacheEntry | None:
        entry = self.get(path)
        if entry is None:
            return None
        moment = self._clock() if now is None else now
        return entry if is_fresh(entry, moment, ttl) else None

    def lock_for(self, path: str) -> threading.Lock:
        """Per-target lock used to coalesce concurrent renders of one path."""

        with self._path_locks_guard:
            return self._path_locks[path]

    def clear(self) -> None:
        with self._guard:
            self._entries.clear()

    def paths(self) -> Iterator[str]:
        with self._guard:
            return iter(tuple(self._entries))

    def __contains__(self, path: object) -> bool:
        with self._guard:
            return path in self._entries

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


__all__ = ["CacheEntry", "ResponseCache", "is_fresh", "utc_now"]
