"""
Log feed — push the logs of a (user, date) to live subscribers.

Every committed change to a day's logs is published as the full list of
that day's logs, so a subscriber can replace its local copy wholesale.

  unsubscribe = feed.subscribe(user_id, day, callback, load=read_day)
  ...
  unsubscribe()   # idempotent; no callback is delivered afterwards

Ordering
--------
A subscriber is registered before its initial snapshot is loaded, so a
write that commits while the subscription is being set up is published to
it. Loading and delivering a snapshot for one (user, date) happen under a
lock shared by `subscribe` and `publish`; snapshots therefore reach a
subscriber in the order they were read, and the last one it receives
reflects every write committed before that read. When a publish reaches a
subscriber while its own initial load is still running (same thread), the
initial snapshot is dropped as older.

Subscribers receive plain `LogRecord` values, never ORM rows, so they can
outlive the request session that produced them. A failing callback is
logged and does not prevent remaining callbacks from running.
"""
from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Optional, Union

logger = logging.getLogger(__name__)

_LOCK_STRIPES = 64


@dataclass(frozen=True)
class LogRecord:
    habit_id: int
    user_id: str
    date: date
    status: str


LogCallback = Callable[[list[LogRecord]], None]
Unsubscribe = Callable[[], None]
SnapshotLoader = Callable[[], Iterable[LogRecord]]


def to_record(log) -> LogRecord:
    status = log.status.value if hasattr(log.status, "value") else str(log.status)
    return LogRecord(habit_id=log.habit_id, user_id=log.user_id, date=log.date, status=status)


class _Subscription:
    __slots__ = ("callback", "published")

    def __init__(self, callback: LogCallback) -> None:
        self.callback = callback
        self.published = False   # a publish has reached this subscriber


class LogFeed:
    """In-process observer keyed by (user_id, date)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._subscribers: dict[tuple[str, date], dict[int, _Subscription]] = {}
        # Re-entrant: a callback or loader may itself publish to the same key.
        self._key_locks = [threading.RLock() for _ in range(_LOCK_STRIPES)]

    def _key_lock(self, key: tuple[str, date]) -> threading.RLock:
        return self._key_locks[hash(key) % _LOCK_STRIPES]

    def subscribe(
        self,
        user_id: str,
        day: date,
        callback: LogCallback,
        load: Optional[SnapshotLoader] = None,
    ) -> Unsubscribe:
        """
        Register `callback` for changes to `user_id`'s logs on `day`.

        When `load` is given it is called after registration and its result is
        delivered right away as the first snapshot. If `load` raises, the
        registration is undone and the error propagates.
        """
        key = (user_id, day)
        sub = _Subscription(callback)
        with self._key_lock(key):
            with self._lock:
                token = next(self._ids)
                self._subscribers.setdefault(key, {})[token] = sub

            def unsubscribe() -> None:
                with self._lock:
                    bucket = self._subscribers.get(key)
                    if bucket is None:
                        return
                    bucket.pop(token, None)
                    if not bucket:
                        del self._subscribers[key]

            if load is not None:
                try:
                    initial = list(load())
                except Exception:
                    unsubscribe()
                    raise
                if not sub.published:
                    self._deliver(key, token, sub, initial)
        return unsubscribe

    def publish(
        self,
        user_id: str,
        day: date,
        records: Union[Iterable[LogRecord], SnapshotLoader],
    ) -> int:
        """
        Send the day's logs to every current subscriber of (user_id, day).

        `records` is either the snapshot itself or a loader that reads it; a
        loader is only called when someone is subscribed. Returns the count reached.
        """
        key = (user_id, day)
        with self._key_lock(key):
            with self._lock:
                targets = list(self._subscribers.get(key, {}).items())
            if not targets:
                return 0
            snapshot = list(records() if callable(records) else records)
            delivered = 0
            for token, sub in targets:
                sub.published = True
                if self._deliver(key, token, sub, snapshot):
                    delivered += 1
            return delivered

    def subscriber_count(self, user_id: str, day: date) -> int:
        with self._lock:
            return len(self._subscribers.get((user_id, day), {}))

    def clear(self) -> None:
        with self._lock:
            self._subscribers.clear()

    def _deliver(self, key, token: int, sub: _Subscription, records: list[LogRecord]) -> bool:
        # re-check: the subscriber may have gone away since the snapshot of targets
        with self._lock:
            if token not in self._subscribers.get(key, {}):
                return False
        try:
            sub.callback(list(records))
        except Exception:
            logger.exception(
                "Log feed callback %s failed for user=%s day=%s",
                getattr(sub.callback, "__name__", sub.callback), key[0], key[1],
            )
            return False
        return True


_feed = LogFeed()


def get_log_feed() -> LogFeed:
    """Return the process-wide feed."""
    return _feed
