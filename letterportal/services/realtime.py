"""
Realtime change feed

Committed inserts, updates and deletes are published per table. Views
subscribe and refetch whenever an event arrives; there is no ordering
guarantee beyond publish order, so the last fetch wins.
"""

import json
import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set

from flask import current_app, has_app_context


@dataclass
class ChangeEvent:
    table: str
    event: str  # INSERT, UPDATE or DELETE
    record_id: Optional[int]
    occurred_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, object]:
        return {
            'table': self.table,
            'event': self.event,
            'record_id': self.record_id,
            'occurred_at': self.occurred_at.isoformat(),
        }


class Subscription:
    """A subscriber's bounded inbox; the oldest event is dropped when full"""

    def __init__(self, feed: 'ChangeFeed', tables: Optional[Set[str]], max_queue: int,
                 callback: Optional[Callable[[ChangeEvent], None]] = None):
        self.feed = feed
        self.tables = tables
        self.callback = callback
        self._queue: 'queue.Queue[ChangeEvent]' = queue.Queue(maxsize=max_queue)

    def wants(self, event: ChangeEvent) -> bool:
        return not self.tables or event.table in self.tables

    def push(self, event: ChangeEvent) -> None:
        if self.callback is not None:
            self.callback(event)
            return
        while True:
            try:
                self._queue.put_nowait(event)
                return
            except queue.Full:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    pass

    def get(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def pending(self) -> List[ChangeEvent]:
        events = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events

    def close(self) -> None:
        self.feed.unsubscribe(self)


class ChangeFeed:
    """In-process publish/subscribe of table change events"""

    def __init__(self, max_queue: int = 100):
        self.max_queue = max_queue
        self._lock = threading.Lock()
        self._subscribers: List[Subscription] = []

    def subscribe(self, tables: Optional[Iterable[str]] = None,
                  callback: Optional[Callable[[ChangeEvent], None]] = None) -> Subscription:
        subscription = Subscription(self, set(tables) if tables else None, self.max_queue, callback)
        with self._lock:
            self._subscribers.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            subscribers = [sub for sub in self._subscribers if sub.wants(event)]
        for subscription in subscribers:
            try:
                subscription.push(event)
            except Exception as e:
                if has_app_context():
                    current_app.logger.warning(f"Change feed subscriber failed: {e}")


def get_change_feed() -> Optional[ChangeFeed]:
    """The current application's feed, if one is registered"""
    if not has_app_context():
        return None
    return current_app.extensions.get('change_feed')


def stream_events(subscription: Subscription, heartbeat: float = 15.0) -> Iterator[str]:
    """Server-Sent Events body for one subscription"""
    try:
        yield 'retry: 3000\n\n'
        while True:
            event = subscription.get(timeout=heartbeat)
            if event is None:
                yield ': keep-alive\n\n'
                continue
            yield f"event: change\ndata: {json.dumps(event.to_dict())}\n\n"
    finally:
        subscription.close()
