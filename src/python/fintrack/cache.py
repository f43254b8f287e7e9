"""Memoized query results, invalidated by topic after writes."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Hashable, Iterable

logger = logging.getLogger(__name__)

TOPIC_ACCOUNTS = "accounts"
TOPIC_TRANSACTIONS = "transactions"
TOPIC_LEDGER = "ledger"
TOPIC_GROUPS = "groups"
TOPIC_SETTINGS = "settings"
TOPIC_GOALS = "goals"
ALL_TOPICS = (
    TOPIC_ACCOUNTS,
    TOPIC_TRANSACTIONS,
    TOPIC_LEDGER,
    TOPIC_GROUPS,
    TOPIC_SETTINGS,
    TOPIC_GOALS,
)


class QueryCache:
    """Cache query results per topic and notify subscribers on invalidation.

    The database stays the only source of truth: entries are dropped, never
    patched, and subscribers reload through the cache.

    A fetch that overlaps an invalidation of its topic is returned to the
    caller but not stored.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, dict[Hashable, Any]] = {}
        self._generations: dict[str, int] = {}
        self._subscribers: dict[str, list[Callable[[str], None]]] = {}

    def get_or_fetch(self, topic: str, key: Hashable, fetch: Callable[[], Any]) -> Any:
        with self._lock:
            bucket = self._entries.get(topic)
            if bucket is not None and key in bucket:
                return bucket[key]
            generation = self._generations.get(topic, 0)
        value = fetch()
        with self._lock:
            if self._generations.get(topic, 0) != generation:
                return value
            self._entries.setdefault(topic, {})[key] = value
        return value

    def invalidate(self, topics: Iterable[str] = ALL_TOPICS) -> None:
        """Drop cached results for ``topics`` and notify their subscribers."""
        topics = list(topics)
        with self._lock:
            for topic in topics:
                self._entries.pop(topic, None)
                self._generations[topic] = self._generations.get(topic, 0) + 1
            callbacks = [
                (topic, callback)
                for topic in topics
                for callback in self._subscribers.get(topic, [])
            ]
        for topic, callback in callbacks:
            try:
                callback(topic)
            except Exception:
                logger.exception("Subscriber for %s failed", topic)

    def subscribe(self, topic: str, callback: Callable[[str], None]) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it."""
        with self._lock:
            self._subscribers.setdefault(topic, []).append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(topic, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe
